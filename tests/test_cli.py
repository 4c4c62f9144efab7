import io

import pytest

from navi.cli import FileAnIssue, main, run_func, show_info
from navi.config import Func, Info
from navi.fs import pathbuf_to_string
from navi.paths import default_cheat_pathbuf, default_config_pathbuf


def test_file_an_issue_keeps_source():
    source = ValueError("boom")
    issue = FileAnIssue(source)
    assert issue.source is source
    assert issue.__cause__ is source
    assert "navi encountered a problem" in str(issue)


def test_show_info_config_path():
    assert show_info(Info.CONFIG_PATH) == pathbuf_to_string(default_config_pathbuf())


def test_show_info_cheats_path():
    assert show_info(Info.CHEATS_PATH) == pathbuf_to_string(default_cheat_pathbuf())


def test_show_info_paths_point_into_navi_folder():
    assert "navi" in show_info(Info.CONFIG_PATH)
    assert show_info(Info.CONFIG_PATH).endswith("config.yaml")
    assert show_info(Info.CHEATS_PATH).endswith("cheats")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("ls -la | grep foo", "grep foo"),
        ("make && make install", "make install"),
        ("echo single", "echo single"),
    ],
)
def test_run_func_widget_last_command(monkeypatch, capsys, text, expected):
    monkeypatch.setattr("sys.stdin", io.StringIO(text))
    run_func(Func.WIDGET_LAST_COMMAND, [], None)
    assert capsys.readouterr().out == expected + "\n"


def test_run_func_url_open_without_url_raises():
    with pytest.raises(ValueError, match="No URL specified"):
        run_func(Func.URL_OPEN, [], None)


def test_main_reports_failure(capsys):
    status = main(["fn", "url::open"])
    assert status == 1
    assert "navi encountered a problem" in capsys.readouterr().err


def test_main_prints_config_path(capsys):
    status = main(["info", "config-path"])
    assert status == 0
    assert capsys.readouterr().out == pathbuf_to_string(default_config_pathbuf()) + "\n"


def test_main_preview_shows_comment_and_tags(capsys):
    delimiter = "  \u2800"
    fields = ["short tags", "short comment", "short snippet", "git", "show log", "git log", "0"]
    line = delimiter.join(fields) + delimiter
    status = main(["preview", line])
    out = capsys.readouterr().out
    assert status == 0
    assert "show log" in out
    assert "[git]" in out
    assert "git log" in out