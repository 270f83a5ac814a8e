import datetime
from typing import NamedTuple

import numpy as np
from skyfield.api import load, EarthSatellite, wgs84
from skyfield.constants import AU_KM
from skyfield.positionlib import Geocentric

# Mean Earth radius. The globe is drawn at an arbitrary scale, so altitudes
# are handed to the renderer as a fraction of this.
EARTH_RADIUS_KM = 6371.0

_timescale = None


def timescale():
    """Shared skyfield timescale, built from skyfield's bundled data files."""
    global _timescale
    if _timescale is None:
        _timescale = load.timescale()
    return _timescale


def to_skyfield_time(t_ms, ts=None):
    ts = ts or timescale()
    dt = datetime.datetime.fromtimestamp(t_ms / 1000.0, tz=datetime.timezone.utc)
    return ts.from_datetime(dt)


class GeodeticPosition(NamedTuple):
    lat: float
    lng: float
    altitude_ratio: float

    @property
    def is_finite(self):
        return bool(np.all(np.isfinite(self)))


class OrbitalPropagator:
    """SGP4 propagation through skyfield.

    propagate() gives the inertial (GCRS) position in km or None when SGP4
    fails; to_geodetic() turns that into latitude/longitude/altitude ratio.
    Skyfield applies the Earth-rotation angle for the instant when moving
    into the Earth-fixed frame.
    """

    def __init__(self, ts=None, reference_radius_km=EARTH_RADIUS_KM):
        self.ts = ts or timescale()
        self.reference_radius_km = reference_radius_km

    def seed(self, name, line1, line2):
        # Raises ValueError on lines SGP4 cannot parse
        return EarthSatellite(line1, line2, name, self.ts)

    def propagate(self, satellite, t_ms):
        return self._propagate_at(satellite, to_skyfield_time(t_ms, self.ts))

    def to_geodetic(self, position_km, t_ms):
        return self._geodetic_at(position_km, to_skyfield_time(t_ms, self.ts))

    def position(self, satellite, t_ms):
        """propagate() followed by to_geodetic(), sharing one time conversion."""
        t = to_skyfield_time(t_ms, self.ts)
        position_km = self._propagate_at(satellite, t)
        if position_km is None:
            return None
        return self._geodetic_at(position_km, t)

    def _propagate_at(self, satellite, t):
        # Skyfield reports SGP4 errors (decay, bad elements) as NaN positions
        position_km = satellite.at(t).position.km
        if not np.all(np.isfinite(position_km)):
            return None
        return position_km

    def _geodetic_at(self, position_km, t):
        geocentric = Geocentric(np.asarray(position_km, dtype=float) / AU_KM, t=t)
        lat, lon = wgs84.latlon_of(geocentric)
        height_km = wgs84.height_of(geocentric).km

        result = GeodeticPosition(
            float(lat.degrees),
            float(lon.degrees),
            float(height_km) / self.reference_radius_km,
        )
        if not result.is_finite:
            return None
        return result
