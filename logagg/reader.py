"""Per-file line reader with one-shot and follow (tail) modes."""

import logging
import os
import threading

from logagg.cancel import CancelSignal
from logagg.channel import Channel
from logagg.models import LogLine, Source, SourceError, source_tag

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


def _strip_delimiter(raw: str) -> str:
    if raw.endswith("\n"):
        raw = raw[:-1]
    if raw.endswith("\r"):
        raw = raw[:-1]
    return raw


class LineReader(threading.Thread):
    """Reads a log file and hands each line to ``self.output``.

    Without follow, the reader makes exactly one pass over the current content
    and closes its output at end-of-file. With follow, it sleeps
    ``poll_interval`` seconds at end-of-file and then resumes from its current
    position, until the cancel signal fires. A trailing fragment without a
    newline is held while the file grows and emitted once it has stayed
    unchanged for a full poll interval. Follow mode also handles:
    - File truncation (seek back to start)
    - Log rotation (inode change: drain the old handle, reopen the path)

    A file that cannot be opened or read ends the reader with a single
    ``SourceError`` value; it never takes down the process or other readers.
    """

    def __init__(
        self,
        path: str,
        cancel: CancelSignal,
        follow: bool = False,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        notifier=None,
    ):
        self._tag = source_tag(path)
        super().__init__(daemon=True, name=f"reader:{self._tag}")
        self._path = path
        self._cancel = cancel
        self._follow = follow
        self._poll_interval = poll_interval
        self._notifier = notifier
        self._file = None
        self._inode = None
        self._partial = ""
        self._wake = threading.Condition()
        self._poked = False
        self.lines_emitted = 0
        self.output = Channel(f"reader:{self._tag}")

    def poke(self):
        """Cut the current follow-mode sleep short (the file has changed)."""
        with self._wake:
            self._poked = True
            self._wake.notify_all()

    def run(self):
        if self._notifier is not None and self._follow:
            self._notifier.watch(self._path, self.poke)
        try:
            self._run()
        finally:
            if self._notifier is not None and self._follow:
                self._notifier.unwatch(self._path, self.poke)
            self._close_file()
            self.output.close()
            logger.debug("Reader for %s finished after %d line(s)", self._path, self.lines_emitted)

    def _run(self):
        try:
            self._open_file()
        except OSError as e:
            self._report_failure(f"cannot open file: {e.strerror or e}")
            return

        try:
            if self._follow:
                self._follow_loop()
            else:
                self._read_once()
        except OSError as e:
            self._report_failure(f"read failed: {e.strerror or e}")

    def _read_once(self):
        for raw in self._file:
            if not self._emit(_strip_delimiter(raw)):
                return

    def _follow_loop(self):
        """Main tailing loop: blocks until the cancel signal is set."""
        idle = False
        # Set after a fragment went out early; its late delimiter is not a line.
        flushed = False
        while not self._cancel.is_set():
            chunk = self._file.readline()
            if chunk:
                idle = False
                if not chunk.endswith("\n"):
                    # Line may still be being written; wait for its delimiter.
                    self._partial += chunk
                    continue
                line = self._partial + chunk
                self._partial = ""
                if flushed and line in ("\n", "\r\n"):
                    flushed = False
                    continue
                flushed = False
                if not self._emit(_strip_delimiter(line)):
                    return
                continue

            if self._check_rotation() or self._check_truncation():
                idle = False
                flushed = False
                continue
            if self._partial and idle:
                # No growth for a full interval: the fragment is a final line.
                fragment, self._partial = self._partial, ""
                idle = False
                flushed = True
                if not self._emit(_strip_delimiter(fragment)):
                    return
                continue
            idle = self._pause()

    def _pause(self) -> bool:
        """Sleep up to one poll interval. Returns True if it ran the full interval."""
        with self._wake:
            self._cancel.attach(self._wake)
            woken = self._poked or self._cancel.is_set()
            if not woken:
                woken = self._wake.wait(self._poll_interval)
            self._poked = False
            return not woken

    def _emit(self, text: str) -> bool:
        """Offer one line downstream. Returns False once cancellation wins."""
        if self._cancel.is_set():
            return False
        if not self.output.send(LogLine(source_tag=self._tag, text=text), self._cancel):
            return False
        self.lines_emitted += 1
        return True

    def _report_failure(self, message: str):
        logger.warning("Source %s failed: %s", self._path, message)
        marker = SourceError(source_tag=self._tag, path=self._path, message=message)
        self.output.send(marker, self._cancel)

    def _open_file(self):
        # newline="\n": only LF ends a line; a trailing CR is stripped later.
        self._file = open(self._path, "r", encoding="utf-8", errors="replace", newline="\n")
        self._inode = os.fstat(self._file.fileno()).st_ino
        logger.debug("Opened %s (inode=%d)", self._path, self._inode)

    def _close_file(self):
        if self._file:
            self._file.close()
            self._file = None

    def _check_rotation(self) -> bool:
        """Detect log rotation by comparing inodes. Returns True if rotated."""
        try:
            current_inode = os.stat(self._path).st_ino
        except FileNotFoundError:
            return False

        if current_inode == self._inode:
            return False

        logger.info("File rotation detected for %s", self._path)
        # Whatever is left in the old file is complete, including a fragment.
        for raw in self._file:
            line = self._partial + raw
            self._partial = ""
            if not self._emit(_strip_delimiter(line)):
                return True
        if self._partial:
            fragment, self._partial = self._partial, ""
            if not self._emit(fragment):
                return True
        self._close_file()
        self._open_file()
        return True

    def _check_truncation(self) -> bool:
        """Detect file truncation (e.g., > file). Returns True if truncated."""
        try:
            file_size = os.path.getsize(self._path)
        except FileNotFoundError:
            return False

        if self._file.tell() > file_size:
            logger.info("File truncation detected for %s", self._path)
            self._file.seek(0)
            self._partial = ""
            return True
        return False


def start_reader(
    source: Source,
    cancel: CancelSignal,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    notifier=None,
) -> LineReader:
    """Start a reader thread for ``source`` and return it."""
    reader = LineReader(
        source.path, cancel,
        follow=source.follow,
        poll_interval=poll_interval,
        notifier=notifier,
    )
    reader.start()
    return reader


def read_lines(
    path: str,
    follow: bool,
    cancel: CancelSignal,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> Channel:
    """Stream the lines of ``path`` as LogLine values (SourceError on failure)."""
    return start_reader(Source(path=path, follow=follow), cancel, poll_interval).output
