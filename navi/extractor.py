"""Splitting the finder's selection back into its parts."""

import re
from typing import NamedTuple, Optional

from .writer import DELIMITER

_USIZE = re.compile(r"\+?[0-9]+")


class Extraction(NamedTuple):
    """The pressed key and the selected item's fields."""

    key: str
    tags: str
    comment: str
    snippet: str
    file_index: Optional[int]


class ExtractionError(ValueError):
    """The selection does not hold the expected parts."""


def extract_from_selections(raw_snippet: str, is_single: bool) -> Extraction:
    """Parse the finder output for a snippet selection."""
    lines = iter(raw_snippet.split("\n"))
    if is_single:
        key = "enter"
    else:
        key = next(lines, None)
        if key is None:
            raise ExtractionError("Key was promised but not present in `selections`")

    line = next(lines, None)
    if line is None:
        raise ExtractionError("No more parts in `selections`")

    parts = line.split(DELIMITER)[3:]
    parts += [""] * (4 - len(parts))
    tags, comment, snippet, index_text = parts[:4]
    file_index = int(index_text) if _USIZE.fullmatch(index_text) else None
    return Extraction(key, tags, comment, snippet, file_index)