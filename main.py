"""Entry point for the log aggregator."""

import logging
import signal
import sys

from logagg.cancel import CancelSignal
from logagg.config import load_config
from logagg.errors import ConfigError
from logagg.pipeline import build_pipeline, consume
from logagg.watcher import ChangeNotifier

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    try:
        config = load_config(argv)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stderr,
    )

    cancel = CancelSignal()

    def signal_handler(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        cancel.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    notifier = None
    if config.follow and config.notify:
        notifier = ChangeNotifier()
        notifier.start()

    try:
        pipeline = build_pipeline(config, cancel, notifier)
        stats = consume(pipeline.output)
    except BrokenPipeError:
        cancel.set()
        return 0
    finally:
        if notifier is not None:
            notifier.stop()

    logger.info(
        "Logs processed: %d line(s), %d file(s) skipped, %d source failure(s)",
        stats.lines, len(pipeline.skipped), len(stats.failures),
    )
    if config.strict and (pipeline.skipped or stats.failures):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
