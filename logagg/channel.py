"""Unbuffered rendezvous channel connecting pipeline stages.

A ``send`` completes only once a ``recv`` has taken the value, so a producer
never runs ahead of its consumer by more than the value it is offering. Both
sides can race the hand-off against a :class:`~logagg.cancel.CancelSignal`.
"""

import threading

from logagg.cancel import CancelSignal
from logagg.errors import ChannelClosed


class Channel:
    def __init__(self, name: str = ""):
        self.name = name
        self._cond = threading.Condition()
        self._slot = None
        self._full = False
        self._closed = False
        self._offered = 0   # ticket of the last value placed in the slot
        self._taken = 0     # ticket of the last value a receiver took

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Channel {self.name or hex(id(self))} {state}>"

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, item, cancel: CancelSignal | None = None) -> bool:
        """Hand ``item`` to a receiver, blocking until one takes it.

        Returns True once the value was taken, False if ``cancel`` fired first
        (the value is withdrawn and never delivered). Raises ChannelClosed if
        the channel is closed.
        """
        with self._cond:
            if cancel is not None:
                cancel.attach(self._cond)

            # Another sender owns the slot until its value is taken.
            while self._full and not self._closed:
                if cancel is not None and cancel.is_set():
                    return False
                self._cond.wait()

            if self._closed:
                raise ChannelClosed(f"send on closed channel {self.name!r}")
            if cancel is not None and cancel.is_set():
                return False

            self._offered += 1
            ticket = self._offered
            self._slot = item
            self._full = True
            self._cond.notify_all()

            while self._taken < ticket:
                if cancel is not None and cancel.is_set():
                    self._slot = None
                    self._full = False
                    self._offered -= 1
                    self._cond.notify_all()
                    return False
                self._cond.wait()
            return True

    def recv(self, cancel: CancelSignal | None = None):
        """Take the next value, blocking until a sender offers one.

        Raises ChannelClosed once the channel is closed and no value is
        pending, or when ``cancel`` fires before a value arrives.
        """
        with self._cond:
            if cancel is not None:
                cancel.attach(self._cond)

            while not self._full:
                if self._closed:
                    raise ChannelClosed(f"recv on closed channel {self.name!r}")
                if cancel is not None and cancel.is_set():
                    raise ChannelClosed(f"recv on {self.name!r} cancelled")
                self._cond.wait()

            item = self._slot
            self._slot = None
            self._full = False
            self._taken = self._offered
            self._cond.notify_all()
            return item

    def close(self):
        """Mark the channel closed. Only the first call has any effect."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __iter__(self):
        while True:
            try:
                yield self.recv()
            except ChannelClosed:
                return
