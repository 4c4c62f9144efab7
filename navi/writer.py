"""Formatting of cheatsheet items into finder lines."""

import re
from typing import Optional, Tuple

from .structures import Item
from .terminal import width as terminal_width

NEWLINE_ESCAPE_CHAR = "\x15"
LINE_SEPARATOR = " \x15 "
DELIMITER = "  \u2800"

NEWLINE_REGEX = re.compile(r"\\\s+")
VAR_REGEX = re.compile(r"\\?<(\w[\w\d\-_]*)>")


def with_new_lines(text: str) -> str:
    """Turn line separators back into real newlines."""
    return text.replace(LINE_SEPARATOR, "\n")


def fix_newlines(text: str) -> str:
    """Flatten a multi-line snippet into one line for display."""
    if NEWLINE_ESCAPE_CHAR in text:
        return NEWLINE_REGEX.sub("", text.replace(LINE_SEPARATOR, "  "))
    return text


def limit_str(text: str, length: int) -> str:
    """Truncate ``text`` with an ellipsis, or pad it with spaces, to ``length``."""
    if len(text.encode("utf-8")) > length:
        return text[: max(length - 1, 0)] + "…"
    return text.ljust(length)


def get_widths(config, width: Optional[int] = None) -> Tuple[int, int]:
    """Return the display widths of the tag and comment columns."""
    if width is None:
        width = terminal_width()
    tag_width = max(config.tag_min_width(), width * config.tag_width_percentage() // 100)
    comment_width = max(
        config.comment_min_width(), width * config.comment_width_percentage() // 100
    )
    return tag_width, comment_width


def _trim_end(text: str, suffix: str) -> str:
    while suffix and text.endswith(suffix):
        text = text[: -len(suffix)]
    return text


def write(item: Item, config, widths: Optional[Tuple[int, int]] = None) -> str:
    """Return the finder line for ``item``, ending in a newline."""
    tag_width, comment_width = widths if widths is not None else get_widths(config)
    fields = (
        config.tag_color().paint(limit_str(item.tags, tag_width)),
        config.comment_color().paint(limit_str(item.comment, comment_width)),
        config.snippet_color().paint(fix_newlines(item.snippet)),
        item.tags,
        item.comment,
        _trim_end(item.snippet, LINE_SEPARATOR),
        str(item.file_index),
    )
    return "".join(field + DELIMITER for field in fields) + "\n"