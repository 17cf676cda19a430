"""Exception types raised by the aggregation pipeline."""


class LogAggError(Exception):
    """Base class for all logagg errors."""


class ValidationError(LogAggError):
    """A requested log file cannot be monitored (missing or a directory)."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{reason}: {path}")
        self.path = path
        self.reason = reason


class ConfigError(LogAggError):
    """Invalid CLI argument, environment value, or YAML config file."""


class ChannelClosed(LogAggError):
    """Raised on send to a closed channel, or recv from a closed, empty one."""
