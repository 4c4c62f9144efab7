"""Filesystem helpers: reading files, locating the executable, directories."""

import os
import shutil
import sys
from pathlib import Path
from typing import Iterator, Optional, TextIO, Union

PathLike = Union[str, "os.PathLike[str]"]


class InvalidPath(Exception):
    """A path that cannot be represented as valid UTF-8 text."""

    def __init__(self, path: PathLike) -> None:
        super().__init__(f"Invalid path `{os.fspath(path)!s}`")
        self.path = path


class UnreadableDir(Exception):
    """A directory whose contents could not be read."""

    def __init__(self, dir: PathLike, source: Optional[BaseException] = None) -> None:
        super().__init__(f"Unable to read directory `{os.fspath(dir)!s}`")
        self.dir = dir
        self.source = source
        self.__cause__ = source


def pathbuf_to_string(path: PathLike) -> str:
    """Return ``path`` as text, raising InvalidPath if it is not valid UTF-8."""
    text = os.fspath(path)
    if isinstance(text, bytes):
        try:
            return text.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidPath(os.fsdecode(text)) from None
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidPath(text) from None
    return text


def _display(path: PathLike) -> str:
    try:
        return pathbuf_to_string(path)
    except InvalidPath as error:
        return f"Unable to get path string: {error}"


def _lines(handle: TextIO) -> Iterator[str]:
    with handle:
        for line in handle:
            if line.endswith("\n"):
                line = line[:-1]
                if line.endswith("\r"):
                    line = line[:-1]
            yield line


def read_lines(path: PathLike) -> Iterator[str]:
    """Open ``path`` and return an iterator over its lines without line endings."""
    try:
        handle = open(path, encoding="utf-8", newline="\n")
    except OSError as error:
        raise OSError(error.errno, f"Failed to open file {_display(path)}") from error
    return _lines(handle)


def _exe_path() -> Path:
    argv0 = sys.argv[0] if sys.argv else ""
    if argv0:
        candidate = Path(argv0)
        if (
            candidate.is_file()
            and candidate.suffix != ".py"
            and os.access(candidate, os.X_OK)
        ):
            return candidate.resolve()
    found = shutil.which("navi")
    if found is None:
        raise FileNotFoundError("Unable to acquire executable's path")
    return Path(found).resolve()


def exe_string() -> str:
    """Return the absolute path of the navi executable, or ``navi`` if unknown."""
    try:
        return pathbuf_to_string(_exe_path())
    except (OSError, InvalidPath):
        return "navi"


def create_dir(path: PathLike) -> None:
    """Create ``path`` and any missing parents."""
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as error:
        raise OSError(
            error.errno, f"Failed to create directory `{pathbuf_to_string(path)}`"
        ) from error


def remove_dir(path: PathLike) -> None:
    """Remove ``path`` and everything beneath it."""
    try:
        shutil.rmtree(path)
    except OSError as error:
        raise OSError(
            error.errno, f"Failed to remove directory `{pathbuf_to_string(path)}`"
        ) from error