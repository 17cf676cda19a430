"""Substring filter stage applied to the merged stream."""

import threading

from logagg.channel import Channel
from logagg.models import LogLine, SourceError


def matches(item: LogLine | SourceError, pattern: str) -> bool:
    """True if the rendered line contains ``pattern`` (literal, case-sensitive).

    Failure markers always pass so the consumer sees the diagnostic.
    """
    if isinstance(item, SourceError):
        return True
    return pattern in item.render()


def filter_lines(stream: Channel, pattern: str) -> Channel:
    """Return a channel with the values of ``stream`` that match ``pattern``.

    The output closes exactly when ``stream`` closes. An empty pattern passes
    everything through unchanged.
    """
    out = Channel(f"filter:{pattern}")

    def run():
        try:
            for item in stream:
                if matches(item, pattern):
                    out.send(item)
        finally:
            out.close()

    threading.Thread(target=run, daemon=True, name="filter").start()
    return out
