"""Colored terminal output for the CLI."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, fields
from typing import Optional, TextIO


@dataclass
class CLIColors:
    """ANSI color codes for CLI output."""

    reset: str = "\033[0m"
    bold: str = "\033[1m"
    dim: str = "\033[2m"
    blue: str = "\033[34m"
    cyan: str = "\033[36m"
    green: str = "\033[32m"
    yellow: str = "\033[33m"
    red: str = "\033[31m"
    magenta: str = "\033[35m"

    @classmethod
    def plain(cls) -> "CLIColors":
        """Palette with every code blanked (for non-TTY output)."""
        return cls(**{f.name: "" for f in fields(cls)})


def colors_enabled(stream: TextIO) -> bool:
    """Colors are used only on a TTY and only when ``NO_COLOR`` is unset."""
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class Console:
    """Writes user-facing messages.

    Args:
        stream: Output stream (default: stdout at call time).
        color: Force colors on or off; None auto-detects.
    """

    def __init__(self, stream: Optional[TextIO] = None, color: Optional[bool] = None):
        self._stream = stream
        if color is None:
            color = colors_enabled(self.stream)
        self.c = CLIColors() if color else CLIColors.plain()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def log(self, msg: str = "") -> None:
        print(msg, file=self.stream)

    def success(self, msg: str) -> None:
        self.log(f"{self.c.green}{self.c.bold}{msg}{self.c.reset}")

    def info(self, msg: str) -> None:
        self.log(f"{self.c.cyan}{msg}{self.c.reset}")

    def warn(self, msg: str) -> None:
        self.log(f"{self.c.yellow}{msg}{self.c.reset}")

    def error(self, msg: str) -> None:
        self.log(f"{self.c.red}{msg}{self.c.reset}")

    def dim(self, msg: str) -> None:
        self.log(f"{self.c.dim}{msg}{self.c.reset}")

    def heading(self, title: str, note: str = "") -> None:
        suffix = f" {note}" if note else ""
        self.log(f"\n{self.c.bold}{title}{self.c.reset}{suffix}\n")
