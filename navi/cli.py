"""Command dispatch and the program's entry point."""

import sys
from pathlib import Path
from typing import IO, Callable, List, Optional, Sequence

from . import actor, preview, repo, shell
from .config import (
    CheatshSource,
    FilesystemSource,
    FnCommand,
    Func,
    Info,
    InfoCommand,
    PreviewCommand,
    PreviewVarCommand,
    PreviewVarStdinCommand,
    RepoAddCommand,
    RepoBrowseCommand,
    TldrSource,
    load_config,
)
from .extractor import ExtractionError, extract_from_selections
from .finder import call as finder_call
from .fs import pathbuf_to_string
from .parser import read_lines
from .paths import default_cheat_pathbuf, default_config_pathbuf
from .sources import CheatshFetcher, FilesystemFetcher, TldrFetcher
from .structures import Fetcher, VariableMap, snippet_default

_DATA_DIR = Path(__file__).resolve().parent
WELCOME_CHEAT = _DATA_DIR / "navi.cheat"
CHEAT_EXAMPLE = _DATA_DIR / "cheat_example.cheat"
CONFIG_EXAMPLE = _DATA_DIR / "config_file_example.yaml"

StdinFn = Callable[[IO[str], List[str]], Optional[VariableMap]]


class FileAnIssue(Exception):
    """Wraps any failure that reaches the top level."""

    def __init__(self, source: BaseException) -> None:
        super().__init__(
            "\rHey, listen! navi encountered a problem.\n"
            "Do you think this is a bug? File an issue."
        )
        self.source = source
        self.__cause__ = source


def _fetcher_for(source, config) -> Fetcher:
    if isinstance(source, CheatshSource):
        return CheatshFetcher(source.query, config)
    if isinstance(source, TldrSource):
        return TldrFetcher(source.query, config)
    if isinstance(source, FilesystemSource):
        return FilesystemFetcher(source.path, source.tag_rules, config)
    raise TypeError(f"Unknown cheatsheet source: {source!r}")


def _populate_welcome(stdin: IO[str], config) -> None:
    """Write the bundled welcome cheatsheet to the finder, if it is installed."""
    if not WELCOME_CHEAT.is_file():
        return
    text = WELCOME_CHEAT.read_text(encoding="utf-8")
    read_lines(text.split("\n"), "welcome", 0, VariableMap(), set(), stdin, config)


def _select_and_act(config, stdin_fn: StdinFn) -> None:
    while True:
        result = finder_call(config.finder(), snippet_default(config), stdin_fn, config)
        try:
            extraction = extract_from_selections(result.output, config.best_match())
        except ExtractionError:
            continue
        actor.act(extraction, result.files, result.variables, config)
        return


def run_core(config) -> None:
    """Let the user pick a snippet from the configured source and act on it."""
    fetcher = _fetcher_for(config.source(), config)

    def feed(stdin: IO[str], files: List[str]) -> Optional[VariableMap]:
        try:
            variables = fetcher.fetch(stdin, files)
        except Exception as error:
            raise RuntimeError("Failed to parse variables intended for finder") from error
        if variables is not None:
            return variables
        _populate_welcome(stdin, config)
        return VariableMap()

    _select_and_act(config, feed)


def _welcome(config) -> None:
    def feed(stdin: IO[str], files: List[str]) -> Optional[VariableMap]:
        _populate_welcome(stdin, config)
        return VariableMap()

    _select_and_act(config, feed)


def run_func(func: Func, args: Sequence[str], config) -> None:
    """Run one of the internal functions exposed through ``navi fn``."""
    if func is Func.URL_OPEN:
        shell.open_url(config, list(args))
    elif func is Func.WELCOME:
        _welcome(config)
    elif func is Func.WIDGET_LAST_COMMAND:
        print(shell.widget_last_command(sys.stdin.read()))
    elif func is Func.MAP_EXPAND:
        shell.map_expand(config)
    else:
        raise ValueError(f"Unknown function: {func!r}")


def _read_bundled(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as error:
        raise FileNotFoundError(f"Bundled file `{path.name}` is not available") from error


def show_info(info: Info) -> str:
    """Return the text shown by ``navi info``."""
    if info is Info.CHEATS_EXAMPLE:
        return _read_bundled(CHEAT_EXAMPLE)
    if info is Info.CHEATS_PATH:
        return pathbuf_to_string(default_cheat_pathbuf())
    if info is Info.CONFIG_PATH:
        return pathbuf_to_string(default_config_pathbuf())
    if info is Info.CONFIG_EXAMPLE:
        return _read_bundled(CONFIG_EXAMPLE)
    raise ValueError(f"Unknown info: {info!r}")


def handle(config) -> None:
    """Run the command selected on the command line."""
    cmd = config.cmd()
    if cmd is None:
        run_core(config)
    elif isinstance(cmd, PreviewCommand):
        print(preview.render_preview(cmd.line, config))
    elif isinstance(cmd, PreviewVarStdinCommand):
        preview.preview_var_stdin(sys.stdin.read(), config)
    elif isinstance(cmd, PreviewVarCommand):
        print(preview.render_preview_var(cmd.selection, cmd.query, cmd.variable, config))
    elif isinstance(cmd, FnCommand):
        try:
            run_func(cmd.func, cmd.args, config)
        except Exception as error:
            raise RuntimeError(f"Failed to execute function `{cmd.func}`") from error
    elif isinstance(cmd, InfoCommand):
        try:
            print(show_info(cmd.info))
        except Exception as error:
            raise RuntimeError(f"Failed to fetch info `{cmd.info}`") from error
    elif isinstance(cmd, RepoAddCommand):
        try:
            repo.add(cmd.uri, config)
        except Exception as error:
            raise RuntimeError(f"Failed to import cheatsheets from `{cmd.uri}`") from error
        run_core(config)
    elif isinstance(cmd, RepoBrowseCommand):
        try:
            uri = repo.browse(config)
        except Exception as error:
            raise RuntimeError("Failed to browse featured cheatsheets") from error
        try:
            repo.add(uri, config)
        except Exception as error:
            raise RuntimeError(f"Failed to import cheatsheets from `{uri}`") from error
        run_core(config)
    else:
        raise ValueError(f"Unknown command: {cmd!r}")


def _describe(error: BaseException) -> str:
    lines = []
    current: Optional[BaseException] = error
    while current is not None:
        lines.append(f"    {current}")
        current = current.__cause__
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse the command line, run the command and return the exit status."""
    try:
        config = load_config(argv)
        handle(config)
    except Exception as error:
        issue = FileAnIssue(error)
        print(f"Error: {issue}\n\nCaused by:\n{_describe(error)}", file=sys.stderr)
        return 1
    return 0