"""Filling in a selected snippet's variables and acting on the result."""

import os
import shlex
import subprocess
import sys
from dataclasses import replace
from typing import List, Optional, Sequence

from . import env_var, shell, writer
from .config import Action
from .extractor import Extraction
from .finder import call as finder_call
from .fs import exe_string
from .shell import EOF, ShellSpawnError
from .structures import Opts, Suggestion, SuggestionType, VariableMap, var_default


def _preview_command(variable_name: str, extra_preview: Optional[str], config) -> str:
    exe = exe_string()
    if sys.platform == "win32":
        return (
            f"(@echo.{{+}}{EOF}{{q}}{EOF}{variable_name}{EOF}{extra_preview or ''})"
            f" | {exe} preview-var-stdin"
        )
    extra = f" echo; {extra_preview}" if extra_preview is not None else ""
    if "fish" in config.shell():
        return f'{exe} preview-var "{{+}}" "{{q}}" "{variable_name}"; {extra}'
    return (
        f'{exe} preview-var "$(cat <<{EOF}\n{{+}}\n{EOF}\n)" '
        f'"$(cat <<{EOF}\n{{q}}\n{EOF}\n)" "{variable_name}"; {extra}'
    )


def _run_suggestion(command: str, config) -> str:
    try:
        result = subprocess.run(
            [*shell.out(config), command], stdout=subprocess.PIPE, check=False
        )
    except OSError as error:
        raise ShellSpawnError(command, error) from error
    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError as error:
        raise ValueError("Suggestions are invalid utf8") from error


def _prompt_finder(
    variable_name: str,
    suggestion: Optional[Suggestion],
    variable_count: int,
    config,
) -> str:
    for name in (env_var.PREVIEW_COLUMN, env_var.PREVIEW_DELIMITER, env_var.PREVIEW_MAP):
        os.environ.pop(name, None)

    extra_preview: Optional[str] = None
    initial_opts: Optional[Opts] = None
    if suggestion is not None:
        command, initial_opts = suggestion
        if initial_opts is not None:
            if initial_opts.column is not None:
                os.environ[env_var.PREVIEW_COLUMN] = str(initial_opts.column)
            if initial_opts.delimiter is not None:
                os.environ[env_var.PREVIEW_DELIMITER] = initial_opts.delimiter
            if initial_opts.map is not None:
                os.environ[env_var.PREVIEW_MAP] = initial_opts.map
            if initial_opts.preview is not None:
                extra_preview = initial_opts.preview
        suggestions = _run_suggestion(command, config)
    else:
        suggestions = "\n"

    base = initial_opts if initial_opts is not None else var_default(config)
    opts = replace(
        base,
        preview=_preview_command(variable_name, extra_preview, config),
        query=os.environ.get(f"{variable_name}__query"),
    )

    best = os.environ.get(f"{variable_name}__best")
    if best is not None:
        opts = replace(opts, filter=best, suggestion_type=SuggestionType.SINGLE_SELECTION)

    if opts.preview_window is None:
        window = f"up:{variable_count + 3}" if extra_preview is None else "right:50%"
        opts = replace(opts, preview_window=window)

    if suggestion is None:
        opts = replace(opts, suggestion_type=SuggestionType.DISABLED)

    def feed(stdin, files):
        stdin.write(suggestions)
        return None

    return finder_call(config.finder(), opts, feed, config).output


def unique_result_count(results: Sequence[str]) -> int:
    """Return the number of distinct entries in ``results``."""
    return len(set(results))


def replace_variables_from_snippet(
    snippet: str, tags: str, variables: VariableMap, config
) -> str:
    """Replace every ``<variable>`` in ``snippet``, prompting for unknown values."""
    interpolated = snippet
    found: List[str] = [match.group(0) for match in writer.VAR_REGEX.finditer(snippet)]
    variable_count = unique_result_count(found)

    for bracketed in found:
        variable_name = bracketed[1:-1]
        env_name = env_var.escape(variable_name)
        value = os.environ.get(env_name)

        if value is None:
            suggestion = variables.get_suggestion(tags, variable_name)
            if suggestion is not None:
                command, opts = suggestion
                command = replace_variables_from_snippet(command, tags, variables, config)
                value = _prompt_finder(
                    variable_name, Suggestion(command, opts), variable_count, config
                )
            else:
                value = _prompt_finder(variable_name, None, variable_count, config)

        os.environ[env_name] = value
        interpolated = interpolated.replace(bracketed, "" if value == "\n" else value, 1)

    return interpolated


def with_absolute_path(snippet: str) -> str:
    """Replace a leading ``navi `` with the absolute path of the executable."""
    prefix = "navi "
    if snippet.startswith(prefix):
        return f"{exe_string()} {snippet[len(prefix):]}"
    return snippet


def _edit_file(path: str) -> None:
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR")
    if not editor:
        editor = "notepad" if sys.platform == "win32" else "vi"
    try:
        subprocess.run([*shlex.split(editor), path], check=True)
    except (OSError, subprocess.CalledProcessError) as error:
        raise OSError("Could not open file in external editor") from error


def act(
    extraction: Extraction,
    files: Sequence[str],
    variables: Optional[VariableMap],
    config,
) -> None:
    """Open, print, copy or run the selected snippet, depending on key and config."""
    key, tags, comment, snippet, file_index = extraction

    if key == "ctrl-o":
        if file_index is None:
            raise ValueError("No files found")
        _edit_file(files[file_index])
        return

    os.environ[env_var.PREVIEW_INITIAL_SNIPPET] = snippet
    os.environ[env_var.PREVIEW_TAGS] = tags
    os.environ[env_var.PREVIEW_COMMENT] = comment

    if variables is None:
        raise ValueError("No variables received from finder")

    interpolated = replace_variables_from_snippet(snippet, tags, variables, config)
    interpolated = writer.with_new_lines(with_absolute_path(interpolated))

    if config.action() is Action.PRINT:
        print(interpolated)
    elif key == "ctrl-y":
        shell.copy(config, interpolated)
    else:
        shell.run(config, interpolated)