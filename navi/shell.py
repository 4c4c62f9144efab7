"""Running shell commands, the last-command widget, clipboard and URLs."""

import shlex
import subprocess
from typing import List, Sequence

EOF = "NAVIEOF"

_REPLACEMENTS = (("||", "ග"), ("|", "ඛ"), ("&&", "ඝ"))

_CLIPBOARD_CODE = r"""
exst() {
   type "$1" &>/dev/null
}

_copy() {
   if exst pbcopy; then
      pbcopy
   elif exst xclip; then
      xclip -selection clipboard
   elif exst clip.exe; then
      clip.exe
   else
      exit 55
   fi
}"""

_URL_CODE = r"""
exst() {
   type "$1" &>/dev/null
}

_open_url() { 
    local -r url="$1"
    if exst xdg-open; then
        xdg-open "$url" &disown
    elif exst open; then
        echo "$url" | xargs -I% open "%"
    else
        exit 55
    fi
}"""

_MAP_EXPAND = r"""sed -e 's/^.*$/"&"/' | tr '\n' ' '"""


class ShellSpawnError(OSError):
    """The shell could not be started to run a command."""

    def __init__(self, command: str, source: BaseException) -> None:
        super().__init__(f"Failed to spawn child process `bash` to execute `{command}`")
        self.command = command
        self.source = source


def out(config) -> List[str]:
    """Return the argument list that runs a command string in the configured shell."""
    words_str = config.shell()
    words = shlex.split(words_str)
    if not words:
        raise ValueError("absent shell binary")
    dash_c = "/c" if "cmd.exe" in words_str else "-c"
    return [*words, dash_c]


def run(config, command: str) -> int:
    """Run ``command`` in the configured shell and return its exit status."""
    try:
        return subprocess.run([*out(config), command], check=False).returncode
    except OSError as error:
        raise ShellSpawnError(command, error) from error


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def widget_last_command(text: str) -> str:
    """Return the last command of a pipeline or command list in ``text``."""
    try:
        parts = shlex.split(text)
    except ValueError:
        parts = text.split("|")

    for part in parts:
        for pattern, escaped in _REPLACEMENTS:
            if pattern in part and part != pattern and part != pattern * 2:
                text = text.replace(part, part.replace(pattern, escaped))

    extracted = text
    for pattern, _ in _REPLACEMENTS:
        attempt = text.rsplit(pattern, 1)[-1]
        if _byte_len(attempt) <= _byte_len(extracted):
            extracted = attempt

    for pattern, escaped in _REPLACEMENTS:
        extracted = extracted.replace(escaped, pattern)

    return extracted.lstrip()


def copy(config, text: str) -> int:
    """Copy ``text`` to the system clipboard."""
    script = (
        f"{_CLIPBOARD_CODE} \n"
        f"        read -r -d '' x <<'{EOF}'\n"
        f"{text}\n"
        f"{EOF}\n"
        "\n"
        'echo -n "$x" | _copy'
    )
    return run(config, script)


def open_url(config, args: Sequence[str]) -> int:
    """Open the first argument as a URL in the desktop's browser."""
    if not args:
        raise ValueError("No URL specified")
    url = args[0]
    script = (
        f"{_URL_CODE}\n"
        "                \n"
        f"read -r -d '' url <<'{EOF}'\n"
        f"{url}\n"
        f"{EOF}\n"
        "\n"
        '_open_url "$url"'
    )
    return run(config, script)


def map_expand(config) -> int:
    """Quote each input line and join them with spaces."""
    return run(config, _MAP_EXPAND)