"""ChangeNotifier: watchdog event handler that wakes followed readers early."""

import logging
import os
import threading

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class ChangeNotifier(FileSystemEventHandler):
    """Calls the registered callbacks whenever a watched file is modified.

    Readers keep their poll interval as an upper bound; a notification only
    ends the current sleep sooner.
    """

    def __init__(self):
        super().__init__()
        self._lock = threading.Lock()
        self._callbacks: dict[str, list] = {}
        self._scheduled: set[str] = set()
        self._observer = None

    def start(self):
        with self._lock:
            self._observer = Observer()
            for path in self._callbacks:
                dir_path = os.path.dirname(path)
                if dir_path not in self._scheduled:
                    self._observer.schedule(self, dir_path, recursive=False)
                    self._scheduled.add(dir_path)
            self._observer.start()
        logger.info("Change notifier started")

    def stop(self):
        with self._lock:
            observer, self._observer = self._observer, None
            self._scheduled.clear()
        if observer is not None:
            observer.stop()
            observer.join(timeout=5)
            logger.info("Change notifier stopped")

    def watch(self, path: str, callback):
        abs_path = os.path.abspath(path)
        dir_path = os.path.dirname(abs_path)
        with self._lock:
            self._callbacks.setdefault(abs_path, []).append(callback)
            observer = self._observer
            if observer is None or dir_path in self._scheduled:
                return
            self._scheduled.add(dir_path)
        # Outside our lock: the observer holds its own lock while dispatching
        # events into notify().
        observer.schedule(self, dir_path, recursive=False)
        logger.debug("Watching directory: %s", dir_path)

    def unwatch(self, path: str, callback):
        abs_path = os.path.abspath(path)
        with self._lock:
            callbacks = self._callbacks.get(abs_path, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._callbacks.pop(abs_path, None)

    def watched_paths(self) -> set[str]:
        with self._lock:
            return set(self._callbacks)

    def notify(self, path: str):
        """Run the callbacks registered for ``path``, if any."""
        abs_path = os.path.abspath(os.fsdecode(path))
        with self._lock:
            callbacks = list(self._callbacks.get(abs_path, []))
        for callback in callbacks:
            callback()

    def on_modified(self, event):
        if not event.is_directory:
            self.notify(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self.notify(event.src_path)

    def on_moved(self, event):
        if not event.is_directory:
            self.notify(event.src_path)
            self.notify(event.dest_path)
