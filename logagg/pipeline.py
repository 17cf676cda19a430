"""Wires readers, aggregator and filter together and drains the result."""

import logging
import sys
from dataclasses import dataclass, field

from logagg.aggregator import merge
from logagg.cancel import CancelSignal
from logagg.channel import Channel
from logagg.config import Config
from logagg.errors import ValidationError
from logagg.filters import filter_lines
from logagg.models import Source, SourceError
from logagg.reader import LineReader, start_reader
from logagg.validator import partition_files

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    output: Channel
    readers: list[LineReader] = field(default_factory=list)
    skipped: list[ValidationError] = field(default_factory=list)


@dataclass
class RunStats:
    lines: int = 0
    failures: list[SourceError] = field(default_factory=list)


def build_pipeline(config: Config, cancel: CancelSignal, notifier=None) -> Pipeline:
    """Validate the configured files and start one reader per valid file.

    Invalid entries are logged and skipped; they never abort the run.
    """
    valid, skipped = partition_files(config.files)
    for err in skipped:
        logger.warning("Skipping %s: %s", err.path, err.reason)

    readers = [
        start_reader(
            Source(path=path, follow=config.follow),
            cancel,
            poll_interval=config.poll_interval,
            notifier=notifier,
        )
        for path in valid
    ]
    logger.info(
        "Monitoring %d file(s)%s%s",
        len(readers),
        " in follow mode" if config.follow else "",
        f", filter={config.filter!r}" if config.filter else "",
    )

    merged = merge([r.output for r in readers], cancel)
    return Pipeline(output=filter_lines(merged, config.filter), readers=readers, skipped=skipped)


def consume(stream: Channel, out=None) -> RunStats:
    """Print every line of ``stream`` as it arrives; log failure markers.

    Returns once the stream closes (exhaustion or cancellation).
    """
    if out is None:
        out = sys.stdout
    stats = RunStats()
    for item in stream:
        if isinstance(item, SourceError):
            logger.warning("%s stopped: %s", item.path, item.message)
            stats.failures.append(item)
            continue
        out.write(item.render() + "\n")
        out.flush()
        stats.lines += 1
    return stats
