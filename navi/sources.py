"""Cheatsheet sources: .cheat files on disk, tldr pages and cheat.sh."""

import re
import subprocess
import sys
from contextlib import closing
from pathlib import Path
from typing import IO, List, Optional

from . import parser
from .fs import InvalidPath
from .fs import read_lines as read_file_lines
from .paths import (
    all_cheat_files,
    cheat_paths,
    gen_lists,
    interpolate_paths,
    paths_from_path_param,
)
from .structures import Fetcher, VariableMap

VAR_TLDR_REGEX = re.compile(r"\{\{(.*?)\}\}")
NON_VAR_CHARS_REGEX = re.compile(r"[^\da-zA-Z_]")

_ANSI_ESCAPE = re.compile(
    rb"\x1b(?:\[[0-?]*[ -/]*[@-~]|\][^\x07\x1b]*(?:\x07|\x1b\\)|[@-Z\\-_])"
)
_ASCII_DIGITS = "0123456789"

_SPAWN_FAILURE_EXIT_CODE = 34
_FAILURE_EXIT_CODE = 35

VERSION_DISCLAIMER = (
    "The tldr client written in C (the default one in Homebrew) doesn't support "
    "markdown files, so navi can't use it.\n"
    "The client written in Rust is recommended. The one available in npm works, too."
)


class SourceError(SystemExit):
    """A cheatsheet source could not be used; ``code`` is the exit status."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(code)
        self.message = message

    def __str__(self) -> str:
        return self.message


def _fail(message: str, code: int) -> SourceError:
    print(message, file=sys.stderr)
    return SourceError(message, code)


def _lines(text: str) -> List[str]:
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def _decode(data: bytes, fallback: str) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return fallback


# ------------------------------------------------------------------- cheat.sh


def cheatsh_lines(query: str, markdown: str) -> List[str]:
    """Cheatsheet lines for a cheat.sh page, headed by its tags."""
    return [
        line.strip().rstrip(":") for line in _lines(f"% {query}, cheat.sh\n{markdown}")
    ]


def fetch_cheatsh(query: str) -> str:
    """Download the cheat.sh page for ``query`` with ANSI escapes removed."""
    args = ["-qO-", f"cheat.sh/{query}"]
    try:
        result = subprocess.run(
            ["wget", *args], stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, check=False
        )
    except OSError:
        raise _fail(
            "navi was unable to call wget.\nMake sure wget is correctly installed.",
            _SPAWN_FAILURE_EXIT_CODE,
        ) from None

    if result.returncode != 0:
        output = _decode(result.stdout, "Unable to get output message")
        raise _fail(
            f"Failed to call:\nwget {' '.join(args)}\n\nOutput:\n{output}\n",
            _FAILURE_EXIT_CODE,
        )

    plain = _ANSI_ESCAPE.sub(b"", result.stdout)
    try:
        return plain.decode("utf-8")
    except UnicodeDecodeError as error:
        raise ValueError("Output is invalid utf8") from error


class CheatshFetcher(Fetcher):
    """Cheatsheets for a query from cheat.sh."""

    def __init__(self, query: str, config) -> None:
        self.query = query
        self.config = config

    def fetch(self, stdin: IO[str], files: List[str]) -> Optional[VariableMap]:
        cheat = fetch_cheatsh(self.query)
        if cheat.startswith("Unknown topic."):
            raise _fail(
                f"`{self.query}` not found in cheatsh.\n\nOutput:\n{cheat}\n",
                _FAILURE_EXIT_CODE,
            )
        variables = VariableMap()
        parser.read_lines(
            cheatsh_lines(self.query, cheat),
            "cheat.sh",
            0,
            variables,
            set(),
            stdin,
            self.config,
        )
        return variables


# ----------------------------------------------------------------------- tldr


def convert_tldr_vars(line: str) -> str:
    """Turn ``{{placeholder}}`` into ``<placeholder>`` with a valid variable name."""
    new_line = line
    for match in VAR_TLDR_REGEX.finditer(line):
        braced = match.group(0)
        name = NON_VAR_CHARS_REGEX.sub("_", braced[2:-2])
        if name and name[0] in _ASCII_DIGITS:
            name = f"example_{name}"
        new_line = new_line.replace(braced, f"<{name}>")
    return new_line


def convert_tldr(line: str) -> str:
    """Convert one line of a tldr markdown page into a cheatsheet line."""
    line = line.strip()
    if line.startswith("-"):
        return "# " + line[2:-1]
    if line.startswith("`"):
        return convert_tldr_vars(line[1:-1])
    if line.startswith("%"):
        return line
    return ""


def tldr_lines(query: str, markdown: str) -> List[str]:
    """Cheatsheet lines for a tldr page, headed by its tags."""
    return [convert_tldr(line) for line in _lines(f"% {query}, tldr\n {markdown}")]


def fetch_tldr(query: str) -> str:
    """Return the tldr page for ``query`` in markdown."""
    args = [query, "--markdown"]
    try:
        result = subprocess.run(
            ["tldr", *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except OSError:
        raise _fail(
            "navi was unable to call tldr.\n"
            "Make sure tldr is correctly installed.\n\n"
            f"Note:\n{VERSION_DISCLAIMER}\n",
            _SPAWN_FAILURE_EXIT_CODE,
        ) from None

    if result.returncode != 0:
        output = _decode(result.stdout, "Unable to get output message")
        error = _decode(result.stderr, "Unable to get error message")
        raise _fail(
            f"Failed to call: \ntldr {' '.join(args)}\n \n"
            f"Output:\n{output}\n\nError:\n{error}\n\n"
            "Note:\nPlease make sure you're using a version that supports the --markdown flag.\n"
            "If you are already using a supported version you can ignore this message. \n"
            f"{VERSION_DISCLAIMER}\n",
            _FAILURE_EXIT_CODE,
        )

    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError as error:
        raise ValueError("Output is invalid utf8") from error


class TldrFetcher(Fetcher):
    """Cheatsheets for a query from the tldr client."""

    def __init__(self, query: str, config) -> None:
        self.query = query
        self.config = config

    def fetch(self, stdin: IO[str], files: List[str]) -> Optional[VariableMap]:
        markdown = fetch_tldr(self.query)
        variables = VariableMap()
        parser.read_lines(
            tldr_lines(self.query, markdown),
            "markdown",
            0,
            variables,
            set(),
            stdin,
            self.config,
        )
        return variables


# ----------------------------------------------------------------- filesystem


def _home() -> Optional[str]:
    try:
        return str(Path.home())
    except (RuntimeError, KeyError):
        return None


class FilesystemFetcher(Fetcher):
    """Cheatsheets from ``.cheat`` files in a colon-separated list of folders."""

    def __init__(self, path: Optional[str], tag_rules: Optional[str], config) -> None:
        self.path = path
        self.config = config
        self.allowlist, self.denylist = gen_lists(tag_rules)

    def fetch(self, stdin: IO[str], files: List[str]) -> Optional[VariableMap]:
        try:
            paths = cheat_paths(self.path)
        except InvalidPath:
            return None

        variables = VariableMap()
        visited_lines: set = set()
        found_something = False
        home = _home()

        for folder in paths_from_path_param(interpolate_paths(paths)):
            if home is not None and folder.startswith("~"):
                folder = home + folder[1:]
            for file in all_cheat_files(folder):
                files.append(file)
                index = len(files) - 1
                with closing(read_file_lines(file)) as lines:
                    try:
                        parser.read_lines(
                            lines,
                            file,
                            index,
                            variables,
                            visited_lines,
                            stdin,
                            self.config,
                            self.allowlist,
                            self.denylist,
                        )
                    except (parser.ParseError, OSError, UnicodeDecodeError):
                        continue
                found_something = True

        return variables if found_something else None