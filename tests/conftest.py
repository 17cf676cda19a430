"""Shared pytest fixtures for the logagg test suite."""

import threading
import time

import pytest

from logagg.cancel import CancelSignal
from logagg.channel import Channel


@pytest.fixture()
def cancel():
    """A fresh cancel signal, fired at teardown so no test leaves threads running."""
    signal = CancelSignal()
    yield signal
    signal.set()


@pytest.fixture()
def collect():
    """Return a function draining a channel into a list, failing if it never closes."""

    def _collect(channel: Channel, timeout: float = 3.0) -> list:
        items = []
        t = threading.Thread(target=lambda: items.extend(channel), daemon=True)
        t.start()
        t.join(timeout)
        assert not t.is_alive(), f"{channel!r} did not close within {timeout}s"
        return items

    return _collect


@pytest.fixture()
def feed():
    """Return a function that sends values into a new channel from a thread, then closes it."""

    def _feed(values, delay: float = 0.0, name: str = "") -> Channel:
        ch = Channel(name)

        def run():
            try:
                for value in values:
                    if delay:
                        time.sleep(delay)
                    ch.send(value)
            finally:
                ch.close()

        threading.Thread(target=run, daemon=True).start()
        return ch

    return _feed
