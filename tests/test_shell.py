import pytest

from navi.config import Config, ShellSection, YamlConfig
from navi.shell import ShellSpawnError, open_url, out, run, widget_last_command


def _config(shell):
    return Config(yaml=YamlConfig(shell=ShellSection(command=shell)))


def test_out_appends_dash_c():
    assert out(_config("bash")) == ["bash", "-c"]


def test_out_splits_shell_words():
    assert out(_config("zsh -l")) == ["zsh", "-l", "-c"]


def test_out_uses_slash_c_for_cmd_exe():
    assert out(_config("cmd.exe")) == ["cmd.exe", "/c"]


def test_out_rejects_empty_shell():
    with pytest.raises(ValueError):
        out(_config(""))


def test_run_returns_exit_status():
    assert run(_config("sh"), "exit 3") == 3


def test_run_raises_when_shell_missing():
    with pytest.raises(ShellSpawnError) as info:
        run(_config("navi-missing-shell-binary"), "echo hi")
    assert info.value.command == "echo hi"


def test_widget_last_command_pipeline():
    assert widget_last_command("echo foo | grep bar") == "grep bar"


def test_widget_last_command_ignores_quoted_pipe():
    assert widget_last_command("echo 'a|b' | wc") == "wc"


def test_widget_last_command_after_and():
    assert widget_last_command("ls && echo 'x|y'") == "echo 'x|y'"


def test_widget_last_command_single_command():
    assert widget_last_command("  git status") == "git status"


def test_open_url_requires_argument():
    with pytest.raises(ValueError):
        open_url(_config("sh"), [])