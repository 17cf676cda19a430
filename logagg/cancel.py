"""Process-wide cancellation signal shared by every pipeline stage."""

import logging
import threading
import weakref

logger = logging.getLogger(__name__)


class CancelSignal(threading.Event):
    """One-shot broadcast stop signal.

    Behaves like a ``threading.Event`` (any number of threads may ``wait()`` on
    it or poll ``is_set()``, and observing it never consumes it). In addition,
    conditions registered with :meth:`attach` are notified when the signal
    fires, so threads blocked on a channel hand-off or a follow-mode sleep wake
    up immediately instead of waiting out their timeout.
    """

    def __init__(self):
        super().__init__()
        # RLock: set() may run inside a signal handler on the main thread
        self._listeners_lock = threading.RLock()
        self._listeners: "weakref.WeakSet[threading.Condition]" = weakref.WeakSet()

    def attach(self, cond: threading.Condition):
        """Register ``cond`` to be notified when the signal fires."""
        with self._listeners_lock:
            self._listeners.add(cond)

    def set(self):
        if self.is_set():
            return
        super().set()
        logger.debug("Cancellation signal fired")
        with self._listeners_lock:
            listeners = list(self._listeners)
        for cond in listeners:
            with cond:
                cond.notify_all()
