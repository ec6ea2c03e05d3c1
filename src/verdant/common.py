"""Terminal helpers shared by the CLI client and the server launchers."""

import os
import sys
from enum import Enum
from typing import (
    Any,
    TextIO,
)

RESET = "\033[0m"


class AnsiColors(Enum):
    """ANSI colour codes used for console output."""

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"


def use_color(stream: TextIO | None = None) -> bool:
    """False when ``NO_COLOR`` is set or *stream* is not a terminal."""
    if os.environ.get("NO_COLOR"):
        return False
    stream = stream or sys.stdout
    return bool(getattr(stream, "isatty", lambda: False)())


def colorize(text: str, color: AnsiColors, enabled: bool = True) -> str:
    return f"{color.value}{text}{RESET}" if enabled else text


def status_color(success: bool) -> AnsiColors:
    """Green for a successful tool result, red otherwise."""
    return AnsiColors.GREEN if success else AnsiColors.RED


def colored_print(text: str, color: AnsiColors, *args: Any, **kwargs: Any) -> None:
    """
    Print text in color.

    Args:
        text: The text to print
        color: The color to use (AnsiColors enum)
        args: Additional positional arguments for print
        kwargs: Additional keyword arguments for print; ``file`` also decides whether
            escape codes are emitted
    """
    enabled = use_color(kwargs.get("file"))
    print(colorize(text, color, enabled), *args, **kwargs)
