"""Fan-in: merge many reader streams into one output channel."""

import logging
import threading

from logagg.cancel import CancelSignal
from logagg.channel import Channel
from logagg.errors import ChannelClosed

logger = logging.getLogger(__name__)


def _forward(source: Channel, out: Channel, cancel: CancelSignal):
    """Relay every value from ``source`` to ``out`` until either side stops."""
    relayed = 0
    while True:
        try:
            item = source.recv(cancel)
        except ChannelClosed:
            break
        if not out.send(item, cancel):
            logger.debug("Forwarder for %r abandoned its source", source)
            break
        relayed += 1
    logger.debug("Forwarder for %r done after %d value(s)", source, relayed)


def _close_when_done(forwarders: list[threading.Thread], out: Channel):
    for t in forwarders:
        t.join()
    out.close()


def merge(streams: list[Channel], cancel: CancelSignal) -> Channel:
    """Return one channel carrying every value from ``streams``.

    One forwarder thread per input relays values in that input's order; no
    ordering holds between inputs. The merged channel closes once every
    forwarder has returned, whether its input closed or cancellation fired.
    """
    out = Channel("merged")
    forwarders = [
        threading.Thread(
            target=_forward, args=(source, out, cancel),
            daemon=True, name=f"forward:{source.name}",
        )
        for source in streams
    ]
    for t in forwarders:
        t.start()

    closer = threading.Thread(
        target=_close_when_done, args=(forwarders, out), daemon=True, name="merge-closer",
    )
    closer.start()
    logger.debug("Merging %d stream(s)", len(forwarders))
    return out
