import io
import os

import pytest

from navi.config import Config
from navi.sources import (
    CheatshFetcher,
    FilesystemFetcher,
    SourceError,
    TldrFetcher,
    cheatsh_lines,
    convert_tldr,
    convert_tldr_vars,
    fetch_cheatsh,
    fetch_tldr,
    tldr_lines,
)
from navi.writer import DELIMITER

CHEAT = "% git\n\n# Commit\ngit commit -m <msg>\n\n$ msg: echo hi\n"


@pytest.fixture
def install(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ['PATH']}")

    def _install(name, body):
        script = bin_dir / name
        script.write_text("#!/bin/sh\n" + body + "\n")
        script.chmod(0o755)
        return script

    return _install


@pytest.fixture
def no_programs(tmp_path, monkeypatch):
    empty = tmp_path / "empty"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))


def fields(output):
    return output.split(DELIMITER)[3:7]


# ---------------------------------------------------------------------- tldr


def test_convert_tldr_vars_replaces_non_identifier_chars():
    assert convert_tldr_vars("ls {{path/to/dir}}") == "ls <path_to_dir>"


def test_convert_tldr_vars_prefixes_leading_digit():
    assert convert_tldr_vars("sleep {{5}}") == "sleep <example_5>"


def test_convert_tldr_vars_without_placeholders_is_identity():
    assert convert_tldr_vars("echo hi") == "echo hi"


def test_convert_tldr_comment():
    text = "List all files"
    assert convert_tldr(f"  - {text}:  ") == f"# {text}"


def test_convert_tldr_code_and_tags():
    assert convert_tldr("`ls -la`") == "ls -la"
    assert convert_tldr("% tar, tldr") == "% tar, tldr"


@pytest.mark.parametrize("line", ["> Archiving utility.", "# tar", ""])
def test_convert_tldr_drops_other_lines(line):
    assert convert_tldr(line) == ""


def test_tldr_lines():
    markdown = "- Create:\n\n`tar cf {{x}}`"
    assert tldr_lines("tar", markdown) == [
        "% tar, tldr",
        convert_tldr("- Create:"),
        "",
        convert_tldr_vars("tar cf {{x}}"),
    ]


def test_tldr_fetcher_writes_items(install):
    install(
        "tldr",
        "cat <<'EOF'\n# tar\n\n> Archiving utility.\n\n- Create an archive:\n\n"
        "`tar cf {{target.tar}} {{file1}}`\nEOF",
    )
    out = io.StringIO()
    files = []
    variables = TldrFetcher("tar", Config()).fetch(out, files)
    assert fields(out.getvalue())[:3] == [
        "tar, tldr",
        "Create an archive",
        convert_tldr_vars("tar cf {{target.tar}} {{file1}}"),
    ]
    assert files == []
    assert variables.get_suggestion("tar, tldr", "file1") is None


def test_fetch_tldr_missing_program(no_programs, capsys):
    with pytest.raises(SourceError) as info:
        fetch_tldr("tar")
    assert info.value.code == 34
    assert "tldr" in capsys.readouterr().err


def test_fetch_tldr_failure(install):
    install("tldr", "echo oops >&2\nexit 1")
    with pytest.raises(SourceError) as info:
        fetch_tldr("tar")
    assert info.value.code == 35
    assert "oops" in str(info.value)


# ------------------------------------------------------------------ cheat.sh


def test_cheatsh_lines_trims_and_strips_colons():
    assert cheatsh_lines("git", "  commit::  \ngit commit") == [
        "% git, cheat.sh",
        "commit",
        "git commit",
    ]


def test_fetch_cheatsh_strips_ansi(install):
    install("wget", "printf '\\033[1;31mhello\\033[0m world\\n'")
    assert fetch_cheatsh("git") == "hello world\n"


def test_fetch_cheatsh_passes_arguments(install):
    install("wget", "printf '%s ' \"$@\"")
    assert fetch_cheatsh("git") == "-qO- cheat.sh/git "


def test_fetch_cheatsh_missing_program(no_programs):
    with pytest.raises(SourceError) as info:
        fetch_cheatsh("git")
    assert info.value.code == 34


def test_fetch_cheatsh_failure(install):
    install("wget", "exit 4")
    with pytest.raises(SourceError) as info:
        fetch_cheatsh("git")
    assert info.value.code == 35


def test_cheatsh_fetcher_unknown_topic(install):
    install("wget", "printf 'Unknown topic.\\n'")
    with pytest.raises(SourceError) as info:
        CheatshFetcher("nope", Config()).fetch(io.StringIO(), [])
    assert info.value.code == 35
    assert "`nope` not found in cheatsh" in str(info.value)


def test_cheatsh_fetcher_writes_items(install):
    install("wget", "printf '# list files\\nls -la\\n'")
    out = io.StringIO()
    files = []
    variables = CheatshFetcher("ls", Config()).fetch(out, files)
    assert fields(out.getvalue())[:3] == ["ls, cheat.sh", "list files", "ls -la"]
    assert files == []
    assert variables.get_suggestion("ls, cheat.sh", "x") is None


# ---------------------------------------------------------------- filesystem


def test_filesystem_fetcher_reads_cheat_files(tmp_path):
    folder = tmp_path / "cheats"
    folder.mkdir()
    cheat = folder / "git.cheat"
    cheat.write_text(CHEAT)
    out = io.StringIO()
    files = []
    variables = FilesystemFetcher(str(folder), None, Config()).fetch(out, files)
    assert files == [str(cheat)]
    assert fields(out.getvalue()) == ["git", "Commit", "git commit -m <msg>", "0"]
    assert variables.get_suggestion("git", "msg").command == " echo hi"


def test_filesystem_fetcher_denylist_hides_items(tmp_path):
    folder = tmp_path / "cheats"
    folder.mkdir()
    (folder / "git.cheat").write_text(CHEAT)
    out = io.StringIO()
    variables = FilesystemFetcher(str(folder), "!git", Config()).fetch(out, [])
    assert out.getvalue() == ""
    assert variables.get_suggestion("git", "msg").command == " echo hi"


def test_filesystem_fetcher_allowlist_filters(tmp_path):
    folder = tmp_path / "cheats"
    folder.mkdir()
    (folder / "git.cheat").write_text(CHEAT)
    out = io.StringIO()
    FilesystemFetcher(str(folder), "docker", Config()).fetch(out, [])
    assert out.getvalue() == ""


def test_filesystem_fetcher_without_files_returns_none(tmp_path):
    files = []
    assert FilesystemFetcher(str(tmp_path), None, Config()).fetch(io.StringIO(), files) is None
    assert files == []


def test_filesystem_fetcher_interpolates_environment(tmp_path, monkeypatch):
    folder = tmp_path / "cheats"
    folder.mkdir()
    cheat = folder / "git.cheat"
    cheat.write_text(CHEAT)
    monkeypatch.setenv("NAVI_TEST_CHEATS", str(folder))
    files = []
    out = io.StringIO()
    FilesystemFetcher("$NAVI_TEST_CHEATS:", None, Config()).fetch(out, files)
    assert files == [str(cheat)]
    assert fields(out.getvalue())[1] == "Commit"


def test_filesystem_fetcher_skips_unparsable_file(tmp_path):
    folder = tmp_path / "cheats"
    folder.mkdir()
    bad = folder / "bad.cheat"
    bad.write_text("% x\n# c\n$ v: echo --- --column\n")
    files = []
    assert FilesystemFetcher(str(folder), None, Config()).fetch(io.StringIO(), files) is None
    assert files == [str(bad)]