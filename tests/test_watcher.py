"""Tests for the watchdog-based change notifier."""

import time

from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

from logagg.reader import LineReader
from logagg.watcher import ChangeNotifier


class TestChangeNotifier:
    def test_modified_event_runs_callback(self, tmp_path):
        path = str(tmp_path / "app.log")
        notifier = ChangeNotifier()
        calls = []
        notifier.watch(path, lambda: calls.append("hit"))

        notifier.on_modified(FileModifiedEvent(path))
        notifier.on_created(FileCreatedEvent(path))
        assert calls == ["hit", "hit"]

    def test_other_files_ignored(self, tmp_path):
        notifier = ChangeNotifier()
        calls = []
        notifier.watch(str(tmp_path / "app.log"), lambda: calls.append("hit"))

        notifier.on_modified(FileModifiedEvent(str(tmp_path / "other.log")))
        notifier.on_modified(DirModifiedEvent(str(tmp_path)))
        assert calls == []

    def test_moved_event_notifies_both_ends(self, tmp_path):
        src = str(tmp_path / "app.log")
        dest = str(tmp_path / "app.log.1")
        notifier = ChangeNotifier()
        calls = []
        notifier.watch(src, lambda: calls.append("src"))
        notifier.watch(dest, lambda: calls.append("dest"))

        notifier.on_moved(FileMovedEvent(src, dest))
        assert calls == ["src", "dest"]

    def test_unwatch(self, tmp_path):
        path = str(tmp_path / "app.log")
        notifier = ChangeNotifier()
        calls = []
        callback = lambda: calls.append("hit")  # noqa: E731
        notifier.watch(path, callback)
        notifier.unwatch(path, callback)

        notifier.on_modified(FileModifiedEvent(path))
        assert calls == []
        assert notifier.watched_paths() == set()

    def test_relative_and_absolute_paths_match(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        notifier = ChangeNotifier()
        calls = []
        notifier.watch("app.log", lambda: calls.append("hit"))

        notifier.notify(str(tmp_path / "app.log"))
        assert calls == ["hit"]


class TestReaderIntegration:
    def test_event_wakes_followed_reader(self, tmp_path, cancel, collect):
        f = tmp_path / "app.log"
        f.write_text("")
        notifier = ChangeNotifier()

        reader = LineReader(str(f), cancel, follow=True, poll_interval=30, notifier=notifier)
        reader.start()
        for _ in range(50):
            if notifier.watched_paths():
                break
            time.sleep(0.01)
        time.sleep(0.1)

        with open(f, "a") as fh:
            fh.write("event driven\n")
            fh.flush()
        notifier.on_modified(FileModifiedEvent(str(f)))

        start = time.monotonic()
        line = reader.output.recv()
        assert line.text == "event driven"
        assert time.monotonic() - start < 2.0

        cancel.set()
        collect(reader.output)
        reader.join(timeout=2)
        assert notifier.watched_paths() == set()

    def test_start_and_stop_observer(self, tmp_path):
        notifier = ChangeNotifier()
        notifier.watch(str(tmp_path / "app.log"), lambda: None)
        notifier.start()
        notifier.stop()
        notifier.stop()
