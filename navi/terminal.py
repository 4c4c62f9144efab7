"""Terminal width detection and ANSI colours."""

import os
import re
import sys
from dataclasses import dataclass
from typing import Optional

FALLBACK_WIDTH = 80

_RESET = "\x1b[0m"
_U8 = re.compile(r"\+?[0-9]+")

_NAMED_COLORS = {
    "black": 0,
    "dark_grey": 8,
    "red": 9,
    "dark_red": 1,
    "green": 10,
    "dark_green": 2,
    "yellow": 11,
    "dark_yellow": 3,
    "blue": 12,
    "dark_blue": 4,
    "magenta": 13,
    "dark_magenta": 5,
    "cyan": 14,
    "dark_cyan": 6,
    "white": 15,
    "grey": 7,
}


@dataclass(frozen=True)
class Color:
    """A colour from the 256-colour ANSI palette."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 255:
            raise ValueError("Invalid color")

    def paint(self, text: object) -> str:
        """Return ``text`` wrapped in escape codes for this foreground colour."""
        return f"\x1b[38;5;{self.value}m{text}{_RESET}"


CYAN = Color(_NAMED_COLORS["cyan"])
BLUE = Color(_NAMED_COLORS["blue"])


def width() -> int:
    """Return the terminal's width in columns, or 80 when it cannot be found."""
    for stream in (sys.stdout, sys.stderr):
        try:
            return os.get_terminal_size(stream.fileno()).columns
        except (OSError, ValueError, AttributeError):
            continue
    return FALLBACK_WIDTH


def parse_ansi(ansi: str) -> Optional[Color]:
    """Parse a palette index such as ``"14"``; None if it is not one."""
    if not _U8.fullmatch(ansi):
        return None
    value = int(ansi)
    if value > 255:
        return None
    return Color(value)


def parse_color(text: str) -> Color:
    """Parse a colour name such as ``"cyan"`` or ``"dark_blue"``."""
    try:
        return Color(_NAMED_COLORS[text.lower()])
    except KeyError:
        raise ValueError(f"Invalid color: {text}") from None