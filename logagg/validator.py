"""Pre-flight checks run on every requested file before a reader starts."""

import os
import stat

from logagg.errors import ValidationError


def validate_file(path: str) -> None:
    """Raise ValidationError unless ``path`` exists and is not a directory.

    Symbolic links are followed, so a link to a regular file is accepted.
    """
    try:
        info = os.stat(path)
    except FileNotFoundError:
        raise ValidationError(path, "file not found") from None
    except OSError as e:
        raise ValidationError(path, f"cannot stat file ({e.strerror})") from None

    if stat.S_ISDIR(info.st_mode):
        raise ValidationError(path, "path is a directory, not a file")


def partition_files(paths) -> tuple[list[str], list[ValidationError]]:
    """Split ``paths`` into (valid, rejected), dropping duplicate entries.

    Duplicates are detected by resolved path so a file is only read once.
    """
    valid: list[str] = []
    rejected: list[ValidationError] = []
    seen: set[str] = set()

    for path in paths:
        key = os.path.realpath(path)
        if key in seen:
            continue
        seen.add(key)
        try:
            validate_file(path)
        except ValidationError as e:
            rejected.append(e)
            continue
        valid.append(path)

    return valid, rejected
