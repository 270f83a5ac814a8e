import itertools
import logging

logger = logging.getLogger(__name__)


class FrameScheduler:
    """
    Animation-frame callback registry.

    Callbacks requested with request_frame() run once, on the next dispatch().
    A callback that wants to keep animating must request another frame from
    inside itself. Anything requested during a dispatch waits for the next one.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self._callbacks = {}  # handle -> callback, insertion ordered

    @property
    def pending(self):
        return len(self._callbacks)

    def request_frame(self, callback):
        handle = next(self._ids)
        self._callbacks[handle] = callback
        return handle

    def cancel_frame(self, handle):
        if handle is None:
            return
        self._callbacks.pop(handle, None)

    def dispatch(self, timestamp_ms):
        """Run every callback registered before this call. Returns how many ran."""
        batch = list(self._callbacks)
        ran = 0
        for handle in batch:
            # an earlier callback in this batch may have cancelled this one
            callback = self._callbacks.pop(handle, None)
            if callback is None:
                continue
            callback(timestamp_ms)
            ran += 1
        return ran

    def clear(self):
        if self._callbacks:
            logger.debug("Dropping %d pending frame callback(s)", len(self._callbacks))
        self._callbacks.clear()
