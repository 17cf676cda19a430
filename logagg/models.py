"""Values that flow through the aggregation pipeline."""

import os
from dataclasses import dataclass


def source_tag(path: str) -> str:
    """Tag printed in front of every line read from ``path``."""
    return os.path.basename(path)


@dataclass(frozen=True)
class LogLine:
    source_tag: str   # basename of the file the line came from
    text: str         # line content without its delimiter

    def render(self) -> str:
        return f"[{self.source_tag}] - {self.text}"

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class SourceError:
    """Failure marker emitted as the last value of a reader that broke."""

    source_tag: str
    path: str
    message: str

    def render(self) -> str:
        return f"[{self.source_tag}] ! {self.message}"

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class Source:
    path: str
    follow: bool = False
