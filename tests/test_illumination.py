"""Tests for the day/night illumination model."""

import numpy as np
import pytest

from globe_tracker.illumination import (
    DAY_NIGHT_SHADER, blend_factor, globe_rotation_matrix, intensity,
    polar_to_cartesian, rotated_sun_direction, shader_uniforms, smoothstep,
)
from globe_tracker.solar import GeographicCoordinate


class TestPolarToCartesian:

    @pytest.mark.parametrize("lng, lat, expected", [
        (0.0, 0.0, (0.0, 0.0, 1.0)),
        (90.0, 0.0, (1.0, 0.0, 0.0)),
        (-90.0, 0.0, (-1.0, 0.0, 0.0)),
        (180.0, 0.0, (0.0, 0.0, -1.0)),
        (0.0, 90.0, (0.0, 1.0, 0.0)),
        (45.0, -90.0, (0.0, -1.0, 0.0)),
    ])
    def test_axes(self, lng, lat, expected):
        np.testing.assert_allclose(polar_to_cartesian(lng, lat), expected, atol=1e-12)

    def test_unit_length(self):
        for lng in range(-180, 180, 37):
            for lat in range(-90, 91, 23):
                assert np.linalg.norm(polar_to_cartesian(lng, lat)) == pytest.approx(1.0)


class TestGlobeRotation:

    def test_zero_rotation_is_identity(self):
        np.testing.assert_allclose(globe_rotation_matrix(0.0, 0.0), np.eye(3), atol=1e-12)

    def test_rotation_is_orthonormal(self):
        m = globe_rotation_matrix(-73.0, 41.0)
        np.testing.assert_allclose(m @ m.T, np.eye(3), atol=1e-12)
        assert np.linalg.det(m) == pytest.approx(1.0)

    def test_matches_shader_column_major_literals(self):
        lng, lat = 30.0, 20.0
        inv_lon, inv_lat = np.radians(lng), -np.radians(lat)
        # mat3(...) arguments as written in the shader, read column by column
        rot_x = np.array([
            1, 0, 0,
            0, np.cos(inv_lat), -np.sin(inv_lat),
            0, np.sin(inv_lat), np.cos(inv_lat),
        ], dtype=float).reshape(3, 3).T
        rot_y = np.array([
            np.cos(inv_lon), 0, np.sin(inv_lon),
            0, 1, 0,
            -np.sin(inv_lon), 0, np.cos(inv_lon),
        ], dtype=float).reshape(3, 3).T
        np.testing.assert_allclose(globe_rotation_matrix(lng, lat), rot_x @ rot_y, atol=1e-12)

    @pytest.mark.parametrize("lng, lat", [
        (0.0, 0.0), (30.0, 0.0), (0.0, 23.4), (-120.0, -15.0), (170.0, 10.0),
    ])
    def test_facing_subsolar_point_puts_sun_on_view_axis(self, lng, lat):
        direction = rotated_sun_direction((lng, lat), (lng, lat))
        np.testing.assert_allclose(direction, (0.0, 0.0, 1.0), atol=1e-12)

    def test_default_rotation(self):
        sun = GeographicCoordinate(42.0, -11.0)
        np.testing.assert_allclose(rotated_sun_direction(sun), polar_to_cartesian(42.0, -11.0))


class TestBlend:

    def test_smoothstep_edges(self):
        assert smoothstep(-0.1, 0.1, -0.5) == 0.0
        assert smoothstep(-0.1, 0.1, 0.5) == 1.0
        assert smoothstep(-0.1, 0.1, 0.0) == pytest.approx(0.5)
        assert smoothstep(-0.1, 0.1, 0.05) == pytest.approx(0.84375)

    def test_intensity_normalizes_inputs(self):
        assert intensity((0, 0, 5), (0, 0, 0.2)) == pytest.approx(1.0)
        assert intensity((3, 0, 0), (0, 0, 1)) == pytest.approx(0.0)

    def test_full_day_under_the_sun(self):
        sun_dir = rotated_sun_direction((10.0, 5.0))
        assert blend_factor(polar_to_cartesian(10.0, 5.0), sun_dir) == 1.0

    def test_full_night_at_antipode(self):
        sun_dir = rotated_sun_direction((10.0, 5.0))
        assert blend_factor(polar_to_cartesian(-170.0, -5.0), sun_dir) == 0.0

    def test_half_blend_on_terminator(self):
        sun_dir = rotated_sun_direction((0.0, 0.0))
        assert blend_factor(polar_to_cartesian(90.0, 0.0), sun_dir) == pytest.approx(0.5)


class TestShaderContract:

    def test_fragment_shader_uses_same_threshold(self):
        assert "smoothstep(-0.1, 0.1, intensity)" in DAY_NIGHT_SHADER["fragmentShader"]
        assert "rotX * rotY * Polar2Cartesian(sunPosition)" in DAY_NIGHT_SHADER["fragmentShader"]

    def test_uniforms_are_lng_lat_pairs(self):
        uniforms = shader_uniforms(GeographicCoordinate(-12.5, 22.0), (3.0, -4.0))
        assert uniforms == {"sunPosition": [-12.5, 22.0], "globeRotation": [3.0, -4.0]}
