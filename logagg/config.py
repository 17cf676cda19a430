"""Configuration: frozen dataclass built from env vars, YAML file and CLI args."""

import argparse
import logging
import math
import os
from dataclasses import dataclass, fields

import yaml

from logagg.errors import ConfigError
from logagg.reader import DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    files: tuple[str, ...] = ()
    filter: str = ""
    follow: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL
    notify: bool = False
    log_level: str = "INFO"
    strict: bool = False


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def split_files(values) -> tuple[str, ...]:
    """Flatten repeatable and comma-separated file arguments."""
    if isinstance(values, str):
        values = [values]
    files = []
    for value in values:
        for part in str(value).split(","):
            part = part.strip()
            if part:
                files.append(part)
    return tuple(files)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logagg",
        description="Merge, follow and filter lines from several log files.",
    )
    parser.add_argument(
        "-f", "--files", action="append", default=None, metavar="PATH[,PATH...]",
        help="Log file(s) to monitor; repeatable and comma-separated",
    )
    parser.add_argument(
        "-t", "--filter", default=None,
        help="Only print lines containing this literal text (case-sensitive)",
    )
    parser.add_argument(
        "-F", "--follow", action=argparse.BooleanOptionalAction, default=None,
        help="Keep watching the files for appended lines (like tail -f)",
    )
    parser.add_argument(
        "--poll-interval", type=float, default=None,
        help=f"Seconds between follow-mode polls (default: {DEFAULT_POLL_INTERVAL})",
    )
    parser.add_argument(
        "--notify", action=argparse.BooleanOptionalAction, default=None,
        help="Wake followed readers on filesystem events instead of only polling",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to a YAML config file with the same keys",
    )
    parser.add_argument(
        "--log-level", default=None, type=str.upper, choices=LOG_LEVELS,
        help="Diagnostic log level on stderr (default: INFO)",
    )
    parser.add_argument(
        "--strict", action=argparse.BooleanOptionalAction, default=None,
        help="Exit non-zero if any file was skipped or failed while reading",
    )
    return parser


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping")

    known = {f.name for f in fields(Config)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown key(s) in {path}: {', '.join(unknown)}")
    logger.debug("Loaded YAML config from %s", path)
    return data


def _env_settings() -> dict:
    settings: dict = {}
    if "LOGAGG_FILES" in os.environ:
        settings["files"] = os.environ["LOGAGG_FILES"]
    if "LOGAGG_FILTER" in os.environ:
        settings["filter"] = os.environ["LOGAGG_FILTER"]
    if "LOGAGG_FOLLOW" in os.environ:
        settings["follow"] = os.environ["LOGAGG_FOLLOW"]
    if "LOGAGG_POLL_INTERVAL" in os.environ:
        settings["poll_interval"] = os.environ["LOGAGG_POLL_INTERVAL"]
    if "LOGAGG_NOTIFY" in os.environ:
        settings["notify"] = os.environ["LOGAGG_NOTIFY"]
    if "LOGAGG_LOG_LEVEL" in os.environ:
        settings["log_level"] = os.environ["LOGAGG_LOG_LEVEL"]
    if "LOGAGG_STRICT" in os.environ:
        settings["strict"] = os.environ["LOGAGG_STRICT"]
    return settings


def _coerce(settings: dict) -> Config:
    kwargs: dict = {}
    try:
        if "files" in settings:
            kwargs["files"] = split_files(settings["files"] or ())
        if "filter" in settings:
            kwargs["filter"] = "" if settings["filter"] is None else str(settings["filter"])
        for key in ("follow", "notify", "strict"):
            if key in settings:
                kwargs[key] = _parse_bool(settings[key])
        if "poll_interval" in settings:
            kwargs["poll_interval"] = float(settings["poll_interval"])
        if "log_level" in settings:
            kwargs["log_level"] = str(settings["log_level"]).strip().upper()
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid setting: {e}") from e

    config = Config(**kwargs)
    if not math.isfinite(config.poll_interval) or config.poll_interval <= 0:
        raise ConfigError(f"poll_interval must be a positive number of seconds, got {config.poll_interval}")
    if config.log_level not in LOG_LEVELS:
        raise ConfigError(f"unknown log level {config.log_level!r}")
    return config


def load_config(argv: list[str] | None = None) -> Config:
    """Build Config from defaults <- env vars <- YAML file <- CLI args (highest priority)."""
    args = build_cli_parser().parse_args(argv)

    settings = _env_settings()
    settings.update(load_yaml_config(args.config))

    cli = {
        "files": args.files,
        "filter": args.filter,
        "follow": args.follow,
        "poll_interval": args.poll_interval,
        "notify": args.notify,
        "log_level": args.log_level,
        "strict": args.strict,
    }
    settings.update({key: value for key, value in cli.items() if value is not None})

    return _coerce(settings)
