"""Feed log records into the debug pane."""

import logging
import queue


class DebugChannel(logging.Handler):
    """Logging handler that queues formatted records for the UI loop.

    The UI drains it once per tick without blocking; anything logged after a
    drain is picked up on the next one.
    """

    def __init__(self, level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self._queue: queue.SimpleQueue[str] = queue.SimpleQueue()
        self.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._queue.put_nowait(self.format(record))
        except Exception:
            self.handleError(record)

    def drain(self) -> list[str]:
        """Return every queued message without blocking."""
        messages: list[str] = []
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except queue.Empty:
                return messages
