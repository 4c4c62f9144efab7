"""Previews shown by the finder while selecting snippets and variable values."""

import os
import re
import sys
from typing import List, Mapping, NamedTuple, Optional, Tuple

from . import env_var, shell, writer
from .finder import process
from .shell import EOF

_U8 = re.compile(r"\+?[0-9]+")


class StdinPayload(NamedTuple):
    """The parts of a preview request read from standard input."""

    selection: str
    query: str
    variable: str
    extra: Optional[str]


def extract_elements(line: str) -> Tuple[str, str, str]:
    """Return the tags, comment and snippet from a finder line."""
    parts = line.split(writer.DELIMITER)[3:]
    for index, name in enumerate(("tags", "comment", "snippet")):
        if len(parts) <= index:
            raise ValueError(f"No `{name}` element provided.")
    return parts[0], parts[1], parts[2]


def render_preview(line: str, config) -> str:
    """Return the preview of a snippet line."""
    tags, comment, snippet = extract_elements(line)
    return (
        f"{config.comment_color().paint(comment)} "
        f"{config.tag_color().paint(f'[{tags}]')} \n"
        f"{config.snippet_color().paint(writer.fix_newlines(snippet))}"
    )


def _must_get(environ: Mapping[str, str], name: str) -> str:
    try:
        return environ[name]
    except KeyError:
        raise KeyError(f"{name} not set") from None


def _parse_u8(text: Optional[str]) -> Optional[int]:
    if text is None or not _U8.fullmatch(text):
        return None
    value = int(text)
    return value if value <= 255 else None


def render_preview_var(
    selection: str,
    query: str,
    variable: str,
    config,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Return the preview shown while a value for ``variable`` is being chosen."""
    if environ is None:
        environ = os.environ
    snippet = _must_get(environ, env_var.PREVIEW_INITIAL_SNIPPET)
    tags = _must_get(environ, env_var.PREVIEW_TAGS)
    comment = _must_get(environ, env_var.PREVIEW_COMMENT)
    column = _parse_u8(environ.get(env_var.PREVIEW_COLUMN))
    delimiter = environ.get(env_var.PREVIEW_DELIMITER)
    map_fn = environ.get(env_var.PREVIEW_MAP)

    active_color = config.tag_color()
    inactive_color = config.comment_color()

    header = (
        f"{config.comment_color().paint(comment)} "
        f"{config.tag_color().paint(f'[{tags}]')}"
    )

    bracketed_current = f"<{variable}>"
    if bracketed_current in snippet:
        bracketed_variables: List[str] = [
            match.group(0) for match in writer.VAR_REGEX.finditer(snippet)
        ]
    else:
        bracketed_variables = [bracketed_current]

    colored_snippet = snippet
    visited = set()
    variables = ""

    for bracketed in bracketed_variables:
        name = bracketed[1:-1]
        if name in visited:
            continue
        visited.add(name)

        is_current = name == variable
        color = active_color if is_current else inactive_color

        if is_current:
            value = selection.strip("'") or query.strip("'")
        else:
            value = environ.get(env_var.escape(name), "")

        colored_snippet = colored_snippet.replace(bracketed, color.paint(bracketed))
        processed = process(value, column, delimiter, map_fn, config)
        variables = f"{variables}\n{color.paint(name)} = {processed}"

    return f"{header}\n{writer.fix_newlines(colored_snippet)}\n{variables}"


def split_stdin_payload(text: str) -> StdinPayload:
    """Split ``selection``, ``query``, ``variable`` and optional extra command."""
    parts = text.split(EOF)
    if len(parts) < 3:
        raise ValueError("Unable to get selection, query and variable")
    extra = parts[3] if len(parts) > 3 else None
    return StdinPayload(parts[0], parts[1], parts[2].strip(), extra)


def preview_var_stdin(text: str, config) -> None:
    """Print the variable preview described by ``text`` and run its extra command."""
    payload = split_stdin_payload(text)
    print(render_preview_var(payload.selection, payload.query, payload.variable, config))
    if payload.extra:
        sys.stdout.flush()
        shell.run(config, payload.extra)