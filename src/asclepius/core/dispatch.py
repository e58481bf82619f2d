"""
Hand-off of work from background threads to the UI thread.
"""

import logging
import queue
from typing import Any, Callable


class MainThreadDispatcher:
    """Queue of callables posted by worker threads and run on the UI thread.

    Worker threads call ``post``; the UI loop calls ``pump`` periodically
    (``widget.after``) so every posted callable runs on the thread that owns
    the widgets, in the order it was posted.
    """

    def __init__(self):
        self._queue: "queue.Queue[tuple]" = queue.Queue()
        self.logger = logging.getLogger(__name__)

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        """Schedule ``callback(*args)`` on the UI thread. Safe from any thread."""
        self._queue.put((callback, args))

    def pending(self) -> int:
        return self._queue.qsize()

    def pump(self) -> int:
        """Run every callable queued so far and return how many ran."""
        ran = 0
        while True:
            try:
                callback, args = self._queue.get_nowait()
            except queue.Empty:
                break
            try:
                callback(*args)
            except Exception as e:
                self.logger.error(f"Error in dispatched callback {callback!r}: {e}")
            ran += 1
        return ran
