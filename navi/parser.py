"""Parsing of .cheat files into finder lines and variable suggestions."""

import re
import shlex
from typing import IO, Iterable, List, Optional, Set, Tuple

from . import writer
from .fs import exe_string
from .hashing import fnv
from .structures import Item, Opts, Suggestion, SuggestionType, VariableMap, var_default

VAR_LINE_REGEX = re.compile(r"^\$\s*([^:]+):(.*)")

_U8 = re.compile(r"\+?[0-9]+")


class ParseError(ValueError):
    """A cheatsheet line or its finder options could not be parsed."""


def _parse_u8(value: str, flag: str) -> int:
    if _U8.fullmatch(value) and int(value) <= 255:
        return int(value)
    raise ParseError(f"Value for `{flag}` is invalid u8")


def _apply_flag(opts: Opts, flag: str, value: str) -> None:
    if flag in ("--headers", "--header-lines"):
        opts.header_lines = _parse_u8(value, "--headers")
    elif flag == "--column":
        opts.column = _parse_u8(value, "--column")
    elif flag == "--map":
        opts.map = value
    elif flag == "--delimiter":
        opts.delimiter = value
    elif flag == "--query":
        opts.query = value
    elif flag == "--filter":
        opts.filter = value
    elif flag == "--preview":
        opts.preview = value
    elif flag == "--preview-window":
        opts.preview_window = value
    elif flag == "--header":
        opts.header = value
    elif flag == "--fzf-overrides":
        opts.overrides = value


def parse_opts(text: str, config) -> Opts:
    """Parse the finder options written after ``---`` on a variable line."""
    try:
        parts = shlex.split(text)
    except ValueError:
        raise ParseError("Given options are missing a closing quote") from None

    opts = var_default(config)
    multi = False
    prevent_extra = False
    pairs: List[str] = []
    for part in parts:
        if part == "--multi":
            multi = True
        elif part == "--prevent-extra":
            prevent_extra = True
        elif part == "--expand":
            opts.map = f"{exe_string()} fn map::expand"
        else:
            pairs.append(part)

    try:
        for start in range(0, len(pairs), 2):
            chunk = pairs[start : start + 2]
            if len(chunk) == 1:
                raise ParseError(f"No value provided for the flag `{chunk[0]}`")
            _apply_flag(opts, chunk[0], chunk[1])
    except ParseError as error:
        raise ParseError(f"Failed to parse finder options: {error}") from error

    if multi:
        opts.suggestion_type = SuggestionType.MULTIPLE_SELECTIONS
    elif prevent_extra:
        opts.suggestion_type = SuggestionType.SINGLE_SELECTION
    else:
        opts.suggestion_type = SuggestionType.SINGLE_RECOMMENDATION
    return opts


def parse_variable_line(line: str, config) -> Tuple[str, str, Optional[Opts]]:
    """Split ``$ name: command --- options`` into its name, command and options."""
    match = VAR_LINE_REGEX.match(line)
    if match is None:
        raise ParseError(f"No variables, command, and options found in the line `{line}`")
    variable = match.group(1).strip()
    command_plus_opts = match.group(2).split("---")
    command = command_plus_opts[0]
    opts = parse_opts(command_plus_opts[1], config) if len(command_plus_opts) > 1 else None
    return variable, command, opts


def without_prefix(line: str) -> str:
    """Drop a two-character prefix such as ``% `` and surrounding whitespace."""
    if len(line) > 2:
        return line[2:].strip()
    return ""


def _write_cmd(
    item: Item,
    out: IO[str],
    config,
    widths: Tuple[int, int],
    allowlist: Optional[List[str]],
    denylist: Optional[List[str]],
    visited_lines: Set[int],
) -> bool:
    """Write ``item`` to ``out`` if it qualifies; return False if writing failed."""
    if not item.comment or not item.snippet.strip():
        return True

    key = fnv(f"{item.comment}{item.snippet}")
    if key in visited_lines:
        return True
    visited_lines.add(key)

    if denylist is not None and any(tag in item.tags for tag in denylist):
        return True
    if allowlist is not None and not any(tag in item.tags for tag in allowlist):
        return True

    try:
        out.write(writer.write(item, config, widths))
    except OSError:
        return False
    return True


def read_lines(
    lines: Iterable[str],
    id: str,
    file_index: int,
    variables: VariableMap,
    visited_lines: Set[int],
    out: IO[str],
    config,
    allowlist: Optional[List[str]] = None,
    denylist: Optional[List[str]] = None,
) -> None:
    """Parse cheatsheet ``lines``, writing items to ``out`` and recording variables."""
    widths = writer.get_widths(config)
    item = Item(file_index=file_index)
    should_break = False
    variable_cmd = ""

    def emit() -> bool:
        return not _write_cmd(item, out, config, widths, allowlist, denylist, visited_lines)

    for line_nr, line in enumerate(lines):
        if should_break:
            break

        if not line:
            if item.snippet:
                item.snippet += writer.LINE_SEPARATOR
        elif line.startswith("%"):
            should_break = emit()
            item.snippet = ""
            item.tags = without_prefix(line)
        elif line.startswith("@"):
            variables.insert_dependency(item.tags, without_prefix(line))
        elif line.startswith(";"):
            pass
        elif line.startswith("#"):
            should_break = emit()
            item.snippet = ""
            item.comment = without_prefix(line)
        elif variable_cmd or (line.startswith("$") and ":" in line):
            should_break = emit()
            item.snippet = ""
            variable_cmd += line.rstrip("\\")
            if not line.endswith("\\"):
                try:
                    variable, command, opts = parse_variable_line(variable_cmd, config)
                except ParseError as error:
                    raise ParseError(
                        "Failed to parse variable line. "
                        f"See line number {line_nr + 1} in cheatsheet `{id}`: {error}"
                    ) from error
                variable_cmd = ""
                variables.insert_suggestion(item.tags, variable, Suggestion(command, opts))
        else:
            if item.snippet:
                item.snippet += writer.LINE_SEPARATOR
            item.snippet += line

    if not should_break:
        emit()