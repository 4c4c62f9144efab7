"""Importing cheatsheets from git repositories."""

import os
import shutil
import sys
from pathlib import Path

from . import git
from .finder import FinderError
from .finder import call as finder_call
from .fs import create_dir, pathbuf_to_string, remove_dir
from .paths import all_cheat_files, default_cheat_pathbuf, tmp_pathbuf
from .structures import FinderChoice, Opts, SuggestionType

FEATURED_REPOS = "denisidoro/cheats"


def ask_if_should_import_all(finder: FinderChoice, config) -> bool:
    """Ask in the finder whether every file of the repository should be imported."""
    opts = Opts(column=1, header="Do you want to import all files from this repo?")

    def feed(stdin, files):
        stdin.write("Yes\nNo")
        return None

    response = finder_call(finder, opts, feed, config).output
    return response.lower().startswith("y")


def target_filename(file: str, tmp_path: str) -> str:
    """Flatten a cloned file's path into a single file name."""
    return file.replace(f"{tmp_path}{os.sep}", "").replace(os.sep, "__")


def _remove_quietly(path: Path) -> None:
    try:
        remove_dir(path)
    except OSError:
        pass


def add(uri: str, config) -> Path:
    """Clone ``uri`` and copy chosen .cheat files; return the destination folder."""
    finder = config.finder()
    try:
        should_import_all = ask_if_should_import_all(finder, config)
    except FinderError:
        should_import_all = False

    actual_uri, user, repo = git.meta(uri)

    cheat_path = Path(default_cheat_pathbuf())
    tmp_path = Path(tmp_pathbuf())
    tmp_path_str = pathbuf_to_string(tmp_path)

    _remove_quietly(tmp_path)
    create_dir(tmp_path)

    print(f"Cloning {actual_uri} into {tmp_path_str}...\n", file=sys.stderr)
    git.shallow_clone(actual_uri, tmp_path_str)

    all_files = "\n".join(all_cheat_files(tmp_path))

    if should_import_all:
        files = all_files
    else:
        opts = Opts(
            suggestion_type=SuggestionType.MULTIPLE_SELECTIONS,
            preview=f"cat '{tmp_path_str}/{{}}'",
            header=(
                "Select the cheatsheets you want to import with <TAB> then hit <Enter>\n"
                "Use Ctrl-R for (de)selecting all"
            ),
            preview_window="right:30%",
        )

        def feed(stdin, _files):
            stdin.write(all_files)
            return None

        files = finder_call(finder, opts, feed, config).output

    to_folder = cheat_path / f"{user}__{repo}"

    for file in files.split("\n"):
        source = tmp_path / file
        destination = to_folder / target_filename(file, tmp_path_str)
        try:
            os.makedirs(to_folder, exist_ok=True)
        except OSError:
            pass
        try:
            shutil.copy(source, destination)
        except OSError as error:
            raise OSError(
                error.errno, f"Failed to copy `{source}` to `{destination}`"
            ) from error

    remove_dir(tmp_path)

    print(
        "The following .cheat files were imported successfully:\n"
        f"{files}\n\nThey are now located at {pathbuf_to_string(to_folder)}",
        file=sys.stderr,
    )
    return to_folder


def browse(config) -> str:
    """Let the user pick one of the featured repositories; return its URI."""
    finder = config.finder()
    repo_path = Path(tmp_pathbuf()) / "featured"
    repo_path_str = pathbuf_to_string(repo_path)

    _remove_quietly(repo_path)
    create_dir(repo_path)

    repo_url = git.meta(FEATURED_REPOS)[0]
    git.shallow_clone(repo_url, repo_path_str)

    featured_file = repo_path / "featured_repos.txt"
    try:
        repos = featured_file.read_text(encoding="utf-8")
    except OSError as error:
        raise OSError(error.errno, "Unable to fetch featured repositories") from error

    opts = Opts(column=1, suggestion_type=SuggestionType.SINGLE_SELECTION)

    def feed(stdin, files):
        stdin.write(repos)
        return None

    repo = finder_call(finder, opts, feed, config).output
    remove_dir(repo_path)
    return repo