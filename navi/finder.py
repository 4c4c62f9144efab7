"""Running the fuzzy finder and post-processing what it returns."""

import io
import os
import re
import subprocess
import sys
from typing import IO, Callable, Iterator, List, NamedTuple, Optional

from . import writer
from .shell import EOF
from .shell import out as shell_out
from .structures import FinderChoice, Opts, SuggestionType, VariableMap

_DEFAULT_COLUMN_DELIMITER = r"\s\s+"
_ACCEPTED_EXIT_CODES = (0, 1, 2)
_INTERRUPTED_EXIT_CODE = 130
_SPAWN_FAILURE_EXIT_CODE = 33

StdinFn = Callable[[IO[str], List[str]], Optional[VariableMap]]


class FinderError(Exception):
    """The finder, or the processing of its output, failed."""


class FinderResult(NamedTuple):
    """What the finder returned, with what the input writer produced."""

    output: str
    variables: Optional[VariableMap]
    files: List[str]


def _lines(text: str) -> List[str]:
    """Split on newlines, dropping a final empty line and trailing carriage returns."""
    if not text:
        return []
    parts = text.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


def parse_output_single(text: str, suggestion_type: SuggestionType) -> str:
    """Reduce the finder's raw output to the selected value."""
    if suggestion_type is SuggestionType.SINGLE_SELECTION:
        lines = _lines(text)
        if not lines:
            raise FinderError("No sufficient data for single selection")
        return lines[0]

    if suggestion_type is SuggestionType.SINGLE_RECOMMENDATION:
        lines = _lines(text)
        if len(lines) >= 3 and lines[1] in ("enter", ""):
            return lines[0] if lines[2] == "" else lines[2]
        if len(lines) == 2 and lines[1] in ("enter", ""):
            return lines[0]
        if len(lines) >= 2 and lines[1] == "tab":
            return lines[0]
        return ""

    if len(text.encode("utf-8")) > 1:
        return text[:-1]
    return text


def _split(pattern: "re.Pattern[str]", line: str) -> Iterator[str]:
    last = 0
    for match in pattern.finditer(line):
        yield line[last : match.start()]
        last = match.end()
    yield line[last:]


def _field(pattern: "re.Pattern[str]", line: str, index: int) -> str:
    for position, piece in enumerate(_split(pattern, line)):
        if position == index:
            return piece
    return ""


def get_column(text: str, column: Optional[int], delimiter: Optional[str]) -> str:
    """Keep only the ``column``-th field (1-based) of each non-empty line."""
    if column is None:
        return text
    if column < 1:
        raise ValueError("column must be at least 1")
    pattern = re.compile(delimiter if delimiter is not None else _DEFAULT_COLUMN_DELIMITER)
    return "\n".join(_field(pattern, line, column - 1) for line in text.split("\n") if line)


def _apply_map(text: str, map_fn: Optional[str], config) -> str:
    if map_fn is None:
        return text
    if "fish" in config.shell():
        command = f'printf "%s" "{text}" | {map_fn}'
    else:
        command = (
            "_navi_input() {\n"
            f"cat <<'{EOF}'\n"
            f"{text}\n"
            f"{EOF}\n"
            "}\n"
            "\n"
            "_navi_map_fn() {\n"
            f"  {map_fn}\n"
            "}\n"
            "\n"
            "_navi_nonewline() {\n"
            '  printf "%s" "$(cat)"\n'
            "}\n"
            "\n"
            "_navi_input | _navi_map_fn | _navi_nonewline"
        )
    try:
        result = subprocess.run(
            [*shell_out(config), command], stdout=subprocess.PIPE, check=False
        )
    except OSError as error:
        raise FinderError("Failed to execute map function") from error
    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError as error:
        raise FinderError("Invalid utf8 output for map function") from error


def process(
    text: str,
    column: Optional[int],
    delimiter: Optional[str],
    map_fn: Optional[str],
    config,
) -> str:
    """Select the column, then pipe the result through the map command if any."""
    return _apply_map(get_column(text, column, delimiter), map_fn, config)


def build_command(choice: FinderChoice, opts: Opts) -> List[str]:
    """Return the argument list that starts the finder with ``opts``."""
    is_fzf = choice is FinderChoice.FZF
    preview_height = 3 if choice is FinderChoice.SKIM else 2
    bindings = (
        ",ctrl-r:toggle-all"
        if opts.suggestion_type is SuggestionType.MULTIPLE_SELECTIONS
        else ""
    )

    args = [
        choice.executable,
        "--preview",
        "",
        "--preview-window",
        f"up:{preview_height}:nohidden",
        "--with-nth",
        "1,2,3",
        "--delimiter",
        writer.DELIMITER,
        "--ansi",
        "--bind",
        f"ctrl-j:down,ctrl-k:up{bindings}",
        "--exact",
    ]

    if not opts.prevent_select1 and is_fzf:
        args.append("--select-1")

    kind = opts.suggestion_type
    if kind is SuggestionType.MULTIPLE_SELECTIONS:
        args.append("--multi")
    elif kind is SuggestionType.DISABLED:
        if is_fzf:
            args += ["--print-query", "--no-select-1"]
    elif kind is SuggestionType.SNIPPET_SELECTION:
        args += ["--expect", "ctrl-y,ctrl-o,enter"]
    elif kind is SuggestionType.SINGLE_RECOMMENDATION:
        args += ["--print-query", "--expect", "tab,enter"]

    for flag, value in (
        ("--preview", opts.preview),
        ("--query", opts.query),
        ("--filter", opts.filter),
        ("--delimiter", opts.delimiter),
        ("--header", opts.header),
        ("--prompt", opts.prompt),
        ("--preview-window", opts.preview_window),
    ):
        if value is not None:
            args += [flag, value]

    if opts.header_lines > 0:
        args += ["--header-lines", str(opts.header_lines)]

    if opts.overrides is not None:
        args += [word for word in opts.overrides.split(" ") if word]

    return args


def _close_quietly(stream) -> None:
    try:
        stream.close()
    except OSError:
        pass


def _abandon(proc: "subprocess.Popen[bytes]", stdin: IO[str]) -> None:
    proc.kill()
    _close_quietly(stdin)
    if proc.stdout is not None:
        _close_quietly(proc.stdout)
    proc.wait()


def _decode_output(raw: bytes, code: int) -> str:
    if code in _ACCEPTED_EXIT_CODES:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as error:
            raise FinderError("Invalid utf8 received from finder") from error
    if code == _INTERRUPTED_EXIT_CODE:
        raise SystemExit(_INTERRUPTED_EXIT_CODE)
    raise FinderError(f"External command failed with exit status {code}")


def call(choice: FinderChoice, opts: Opts, stdin_fn: StdinFn, config) -> FinderResult:
    """Run the finder, feed it through ``stdin_fn`` and return the selection."""
    args = build_command(choice, opts)
    env = dict(os.environ, SHELL=config.finder_shell())
    try:
        proc = subprocess.Popen(
            args, stdin=subprocess.PIPE, stdout=subprocess.PIPE, env=env
        )
    except OSError:
        print(
            f"navi was unable to call {choice.executable}.\n"
            "Please make sure it's correctly installed.",
            file=sys.stderr,
        )
        raise SystemExit(_SPAWN_FAILURE_EXIT_CODE) from None

    assert proc.stdin is not None and proc.stdout is not None
    stdin = io.TextIOWrapper(proc.stdin, encoding="utf-8", newline="\n")
    files: List[str] = []
    try:
        variables = stdin_fn(stdin, files)
    except Exception as error:
        _abandon(proc, stdin)
        raise FinderError("Failed to pass data to finder") from error
    except BaseException:
        _abandon(proc, stdin)
        raise

    _close_quietly(stdin)
    with proc.stdout:
        raw = proc.stdout.read()
    code = proc.wait()

    text = _decode_output(raw, code)
    selected = parse_output_single(text, opts.suggestion_type)
    output = process(selected, opts.column, opts.delimiter, opts.map, config)
    return FinderResult(output, variables, files)