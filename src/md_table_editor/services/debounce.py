class Debouncer:
    """Coalesce rapid triggers into one call after `delay` seconds.

    Each trigger() discards the pending handle and schedules a new one.
    `scheduler` is anything with call_later(delay, callback) returning a
    handle with cancel(), e.g. an asyncio event loop. Without a scheduler,
    or with a non-positive delay, callbacks run immediately.
    """

    def __init__(self, delay, scheduler=None):
        self.delay = delay
        self.scheduler = scheduler
        self._handle = None
        self._callback = None

    @property
    def pending(self):
        return self._callback is not None

    def trigger(self, callback):
        self.cancel()
        if self.scheduler is None or self.delay <= 0:
            callback()
            return

        self._callback = callback
        self._handle = self.scheduler.call_later(self.delay, self._fire)

    def flush(self):
        """Run the pending callback now, if any."""
        callback = self._callback
        self.cancel()
        if callback is not None:
            callback()

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None

    def _fire(self):
        callback = self._callback
        self._handle = None
        self._callback = None
        if callback is not None:
            callback()
