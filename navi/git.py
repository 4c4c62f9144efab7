"""Git helpers for importing cheatsheet repositories."""

import subprocess
from typing import Tuple


def shallow_clone(uri: str, target: str) -> None:
    """Clone ``uri`` into ``target`` keeping only the latest commit."""
    try:
        subprocess.run(["git", "clone", uri, target, "--depth", "1"], check=False)
    except OSError as error:
        raise OSError("Failed to spawn child process to execute `git clone`") from error


def meta(uri: str) -> Tuple[str, str, str]:
    """Return the full URI, the user and the repository name for ``uri``.

    A bare ``user/repo`` is taken to live on GitHub.
    """
    if "://" in uri or "@" in uri:
        actual_uri = uri
    else:
        actual_uri = f"https://github.com/{uri}"

    parts = actual_uri.replace(":", "/").split("/")
    user = parts[-2]
    repo = parts[-1].replace(".git", "")
    return actual_uri, user, repo