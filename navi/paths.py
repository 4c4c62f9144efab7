"""Locations of cheatsheets and configuration, and path-list handling."""

import os
import re
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple, Union

import platformdirs

from .fs import pathbuf_to_string

_VAR_PATTERN = re.compile(r"\$\{?[a-zA-Z_][a-zA-Z_0-9]*")

PathLike = Union[str, "os.PathLike[str]"]


def _walk_dir(directory: str, ancestors: Set[str]) -> Iterator[str]:
    try:
        entries = list(os.scandir(directory))
    except OSError:
        return
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=True)
        except OSError:
            continue
        if is_dir:
            real = os.path.realpath(entry.path)
            if real in ancestors:
                continue
            yield entry.path
            yield from _walk_dir(entry.path, ancestors | {real})
        else:
            yield entry.path


def _walk(root: str) -> Iterator[str]:
    if not os.path.exists(root):
        return
    yield root
    if os.path.isdir(root):
        yield from _walk_dir(root, {os.path.realpath(root)})


def all_cheat_files(path: PathLike) -> List[str]:
    """Return every path beneath ``path`` ending in ``.cheat``, following links."""
    return [found for found in _walk(os.fspath(path)) if found.endswith(".cheat")]


def paths_from_path_param(value: str) -> List[str]:
    """Split a colon-separated path list, dropping empty entries."""
    return [folder for folder in value.split(":") if folder]


def default_cheat_pathbuf() -> Path:
    """Return the default directory holding cheatsheets."""
    return Path(platformdirs.user_data_dir(roaming=True)) / "navi" / "cheats"


def default_config_pathbuf() -> Path:
    """Return the default location of the configuration file."""
    return Path(platformdirs.user_config_dir(roaming=True)) / "navi" / "config.yaml"


def cheat_paths(path: Optional[str]) -> str:
    """Return ``path`` if given, otherwise the default cheatsheet directory."""
    if path is not None:
        return path
    return pathbuf_to_string(default_cheat_pathbuf())


def tmp_pathbuf() -> Path:
    """Return the scratch directory used while importing repositories."""
    return default_cheat_pathbuf() / "tmp"


def interpolate_paths(paths: str) -> str:
    """Replace ``$VAR`` and ``${VAR}`` with environment values where they are set."""
    result = paths
    for match in _VAR_PATTERN.finditer(paths):
        name = match.group(0).replace("$", "").replace("{", "").replace("}", "")
        value = os.environ.get(name)
        if value is not None:
            result = result.replace(f"${name}", value).replace(f"${{{name}}}", value)
    return result


def gen_lists(
    tag_rules: Optional[str],
) -> Tuple[Optional[List[str]], Optional[List[str]]]:
    """Split comma-separated tag rules into an allowlist and a denylist.

    Rules starting with ``!`` go to the denylist without the ``!``.
    """
    if tag_rules is None:
        return None, None
    words = tag_rules.split(",")
    allowlist = [word for word in words if not word.startswith("!")]
    denylist = [word[1:] for word in words if word.startswith("!")]
    return allowlist, denylist