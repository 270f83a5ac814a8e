"""
Simulated-time controller.

Owns the authoritative simulated time (Unix milliseconds). Explicit time jumps
are animated with a cubic ease over a fixed wall-clock duration, small jumps
snap, and real-time mode follows the wall clock. Work is driven one tick per
animation frame through a FrameScheduler.
"""
import enum
import logging
import time
from datetime import datetime
from typing import NamedTuple, Optional

from globe_tracker.frame_loop import FrameScheduler

logger = logging.getLogger(__name__)

TIME_INPUT_FORMAT = "%Y-%m-%dT%H:%M"


class Mode(enum.Enum):
    IDLE = "idle"
    INTERPOLATING = "interpolating"
    REALTIME = "realtime"


class AnimationState(NamedTuple):
    current_time: float
    target_time: float
    mode: Mode


class TimeInputError(ValueError):
    """Raised for a time string that cannot be turned into a simulated time."""


def wall_clock_ms():
    return time.time() * 1000.0


def ease_in_out_cubic(p):
    if p < 0.5:
        return 4 * p * p * p
    return 1 - (-2 * p + 2) ** 3 / 2


def parse_time_input(value) -> float:
    """Parse a local ``YYYY-MM-DDTHH:MM`` string into Unix milliseconds."""
    if not isinstance(value, str):
        raise TimeInputError(f"Expected a time string, got {type(value).__name__}")
    try:
        dt = datetime.strptime(value.strip(), TIME_INPUT_FORMAT)
    except ValueError as e:
        raise TimeInputError(f"Invalid time '{value}': expected YYYY-MM-DDTHH:MM") from e
    # naive datetime -> interpreted in the local timezone
    return dt.timestamp() * 1000.0


def format_time_input(t_ms) -> str:
    return datetime.fromtimestamp(t_ms / 1000.0).strftime(TIME_INPUT_FORMAT)


class TimeController:
    def __init__(self, scheduler: Optional[FrameScheduler] = None, clock=wall_clock_ms,
                 initial_time: Optional[float] = None, duration_ms=1000.0,
                 snap_threshold_ms=1000.0):
        self.scheduler = scheduler if scheduler is not None else FrameScheduler()
        self.clock = clock
        self.duration_ms = float(duration_ms)
        self.snap_threshold_ms = float(snap_threshold_ms)

        self._current = float(initial_time) if initial_time is not None else float(clock())
        self._target = self._current
        self._mode = Mode.IDLE

        # Captured once when an interpolation starts, never recomputed mid-flight
        self._start_time = None
        self._start_value = None

        self._frame_handle = None

    @property
    def current_time(self):
        return self._current

    @property
    def target_time(self):
        return self._target

    @property
    def mode(self):
        return self._mode

    @property
    def is_real_time(self):
        return self._mode is Mode.REALTIME

    def state(self) -> AnimationState:
        return AnimationState(self._current, self._target, self._mode)

    def request_time(self, new_target) -> bool:
        """Ask for a new simulated time. Returns False if real-time playback ignored it."""
        if self._mode is Mode.REALTIME:
            logger.debug("Time request ignored while real-time playback is on")
            return False

        self._target = float(new_target)

        if abs(self._target - self._current) <= self.snap_threshold_ms:
            self._cancel_frame()
            self._current = self._target
            self._settle()
            return True

        # Restart from wherever we are now, even mid-flight
        self._start_time = self.clock()
        self._start_value = self._current
        self._mode = Mode.INTERPOLATING
        self._schedule()
        return True

    def toggle_real_time(self):
        if self._mode is Mode.REALTIME:
            self._cancel_frame()
            self._target = self._current
            self._settle()
            logger.info("Real-time playback off")
        else:
            self._start_time = None
            self._start_value = None
            self._mode = Mode.REALTIME
            self._current = float(self.clock())
            self._schedule()
            logger.info("Real-time playback on")
        return self._mode

    def tick(self, now=None):
        """Advance the simulated time for one frame and return it."""
        now = float(self.clock() if now is None else now)

        if self._mode is Mode.REALTIME:
            self._current = max(self._current, now)

        elif self._mode is Mode.INTERPOLATING:
            elapsed = now - self._start_time
            if self.duration_ms > 0:
                progress = min(max(elapsed / self.duration_ms, 0.0), 1.0)
            else:
                progress = 1.0

            if progress >= 1.0:
                # exact landing, no residual float error
                self._current = self._target
                self._settle()
            else:
                span = self._target - self._start_value
                self._current = self._start_value + span * ease_in_out_cubic(progress)

        return self._current

    def close(self):
        """Revoke any pending frame and stop animating."""
        self._cancel_frame()
        if self._mode is not Mode.IDLE:
            self._target = self._current
            self._settle()

    def _on_frame(self, timestamp_ms):
        self._frame_handle = None
        self.tick(timestamp_ms)
        if self._mode is not Mode.IDLE:
            self._frame_handle = self.scheduler.request_frame(self._on_frame)

    def _schedule(self):
        # A newer trajectory always replaces the pending callback
        self._cancel_frame()
        self._frame_handle = self.scheduler.request_frame(self._on_frame)

    def _cancel_frame(self):
        if self._frame_handle is not None:
            self.scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = None

    def _settle(self):
        self._mode = Mode.IDLE
        self._start_time = None
        self._start_value = None
