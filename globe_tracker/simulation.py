"""
Per-frame composition of the simulation core.

Each step advances the simulated time through the frame scheduler, then
derives the sub-solar point, the globe-local sun direction and the selected
satellites' positions, all for that same instant.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from globe_tracker.catalog import SatelliteCatalog, SatelliteState
from globe_tracker.frame_loop import FrameScheduler
from globe_tracker.illumination import rotated_sun_direction, shader_uniforms
from globe_tracker.solar import GeographicCoordinate, sun_position
from globe_tracker.time_controller import (
    Mode, TimeController, format_time_input, parse_time_input, wall_clock_ms,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameState:
    time_ms: float
    target_ms: float
    mode: Mode
    sun: GeographicCoordinate
    sun_direction: Tuple[float, float, float]
    globe_rotation: Tuple[float, float]
    satellites: Tuple[SatelliteState, ...]

    def uniforms(self):
        return shader_uniforms(self.sun, self.globe_rotation)

    def as_dict(self):
        return {
            "time": self.time_ms,
            "time_input": format_time_input(self.time_ms),
            "target": self.target_ms,
            "mode": self.mode.value,
            "sun": {"lng": self.sun.longitude, "lat": self.sun.latitude},
            "sun_direction": list(self.sun_direction),
            "globe_rotation": {"lng": self.globe_rotation[0], "lat": self.globe_rotation[1]},
            "satellites": [s.as_dict() for s in self.satellites],
        }


class GlobeSimulation:
    def __init__(self, catalog: Optional[SatelliteCatalog] = None, clock=wall_clock_ms,
                 initial_time=None, transition_ms=1000.0, snap_threshold_ms=1000.0):
        self.clock = clock
        self.scheduler = FrameScheduler()
        self.time = TimeController(
            self.scheduler, clock, initial_time,
            duration_ms=transition_ms, snap_threshold_ms=snap_threshold_ms,
        )
        self.catalog = catalog if catalog is not None else SatelliteCatalog()
        # Reported by the renderer on zoom/pan; (0, 0) until the first report
        self.globe_rotation = (0.0, 0.0)
        self.last_frame = None
        # Frame loop, HTTP handlers and catalog ingestion run on different threads
        self.lock = self.catalog.lock

    def request_time(self, value):
        """Jump to a time string (local, minute resolution) or Unix ms.

        Strings are parsed before taking the lock, so a malformed one raises
        TimeInputError without touching the controller.
        """
        t_ms = parse_time_input(value) if isinstance(value, str) else float(value)
        with self.lock:
            return self.time.request_time(t_ms)

    def toggle_real_time(self):
        with self.lock:
            return self.time.toggle_real_time()

    def set_globe_rotation(self, lng, lat):
        with self.lock:
            self.globe_rotation = (float(lng), float(lat))

    def step(self, now_ms=None) -> FrameState:
        with self.lock:
            now = self.clock() if now_ms is None else now_ms
            self.scheduler.dispatch(now)

            t = self.time.current_time
            sun = sun_position(t)
            direction = rotated_sun_direction(sun, self.globe_rotation)

            frame = FrameState(
                time_ms=t,
                target_ms=self.time.target_time,
                mode=self.time.mode,
                sun=sun,
                sun_direction=tuple(float(c) for c in direction),
                globe_rotation=self.globe_rotation,
                satellites=tuple(self.catalog.project(t)),
            )
            self.last_frame = frame
        return frame

    def close(self):
        with self.lock:
            self.time.close()
            self.scheduler.clear()
        logger.debug("Simulation closed")
