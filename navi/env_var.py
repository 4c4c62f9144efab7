"""Names of the environment variables navi reads and writes, and helpers."""

import os
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

PREVIEW_INITIAL_SNIPPET = "NAVI_PREVIEW_INITIAL_SNIPPET"
PREVIEW_TAGS = "NAVI_PREVIEW_TAGS"
PREVIEW_COMMENT = "NAVI_PREVIEW_COMMENT"
PREVIEW_COLUMN = "NAVI_PREVIEW_COLUMN"
PREVIEW_DELIMITER = "NAVI_PREVIEW_DELIMITER"
PREVIEW_MAP = "NAVI_PREVIEW_MAP"

PATH = "NAVI_PATH"
FZF_OVERRIDES = "NAVI_FZF_OVERRIDES"
FZF_OVERRIDES_VAR = "NAVI_FZF_OVERRIDES_VAR"
FINDER = "NAVI_FINDER"

CONFIG = "NAVI_CONFIG"
CONFIG_YAML = "NAVI_CONFIG_YAML"


def parse(name: str, convert: Callable[[str], T]) -> Optional[T]:
    """Return the variable converted by ``convert``, or None if unset or invalid."""
    value = os.environ.get(name)
    if value is None:
        return None
    try:
        return convert(value)
    except (ValueError, TypeError):
        return None


def must_get(name: str) -> str:
    """Return the variable's value, raising KeyError if it is not set."""
    try:
        return os.environ[name]
    except KeyError:
        raise KeyError(f"{name} not set") from None


def escape(name: str) -> str:
    """Turn a snippet variable name into a valid environment variable name."""
    return name.replace("-", "_")