import pytest

from navi.config import (
    Action,
    Cheats,
    CheatshSource,
    ClapConfig,
    ColorWidth,
    Config,
    ConfigError,
    EnvConfig,
    FilesystemSource,
    FinderSection,
    FnCommand,
    Func,
    Info,
    InfoCommand,
    PreviewCommand,
    PreviewVarCommand,
    PreviewVarStdinCommand,
    RepoAddCommand,
    RepoBrowseCommand,
    Search,
    ShellSection,
    TldrSource,
    YamlConfig,
    load_config,
    load_env_config,
    load_yaml_config,
    parse_args,
    yaml_from_path,
    yaml_from_str,
)
from navi.structures import FinderChoice
from navi.terminal import Color


@pytest.mark.parametrize("value", ["bash", "zsh", "fish", "elvish"][:0] + ["cheats-example", "cheats-path", "config-path", "config-example"])
def test_info_possible_values(value):
    assert Info(value).value == value


@pytest.mark.parametrize("value", ["url::open", "welcome", "widget::last_command", "map::expand"])
def test_func_possible_values(value):
    assert Func(value).value == value


@pytest.mark.parametrize("value", ["fzf", "skim"])
def test_finder_possible_values(value):
    assert FinderChoice(value).value == value


def test_parse_args_defaults():
    assert parse_args([]) == ClapConfig()


def test_parse_args_options():
    clap = parse_args(
        ["--path", "/a:/b", "--print", "--best-match", "-q", "git", "--tag-rules", "git,!checkout"]
    )
    assert clap.path == "/a:/b"
    assert clap.print is True
    assert clap.best_match is True
    assert clap.query == "git"
    assert clap.tag_rules == "git,!checkout"
    assert clap.cmd is None


def test_parse_args_allows_hyphen_values():
    clap = parse_args(["--fzf-overrides", "--with-nth 1,2", "--fzf-overrides-var", "--no-select-1"])
    assert clap.fzf_overrides == "--with-nth 1,2"
    assert clap.fzf_overrides_var == "--no-select-1"


def test_parse_args_equals_form():
    assert parse_args(["--tag-rules=git,!checkout"]).tag_rules == "git,!checkout"


def test_parse_args_finder_ignores_case():
    assert parse_args(["--finder", "SKIM"]).finder is FinderChoice.SKIM


def test_parse_args_invalid_finder():
    with pytest.raises(SystemExit):
        parse_args(["--finder", "peco"])


def test_parse_args_sources():
    assert parse_args(["--tldr", "docker"]).tldr == "docker"
    assert parse_args(["--cheatsh", "tar"]).cheatsh == "tar"


def test_parse_fn_command():
    clap = parse_args(["fn", "URL::OPEN", "https://example.com", "--x"])
    assert clap.cmd == FnCommand(Func.URL_OPEN, ["https://example.com", "--x"])


def test_parse_fn_invalid_function():
    with pytest.raises(SystemExit):
        parse_args(["fn", "nope"])


def test_parse_repo_commands():
    assert parse_args(["repo", "add", "user/repo"]).cmd == RepoAddCommand("user/repo")
    assert parse_args(["repo", "browse"]).cmd == RepoBrowseCommand()


def test_parse_repo_add_requires_uri():
    with pytest.raises(SystemExit):
        parse_args(["repo", "add"])


def test_parse_preview_commands():
    assert parse_args(["preview", "a line"]).cmd == PreviewCommand("a line")
    assert parse_args(["preview-var", "-sel", "", "name"]).cmd == PreviewVarCommand("-sel", "", "name")
    assert parse_args(["preview-var-stdin"]).cmd == PreviewVarStdinCommand()


def test_parse_info_command_with_options_first():
    clap = parse_args(["--print", "info", "Config-Path"])
    assert clap.print is True
    assert clap.cmd == InfoCommand(Info.CONFIG_PATH)


def test_parse_unknown_command():
    with pytest.raises(SystemExit):
        parse_args(["bogus"])


def test_load_env_config():
    env = load_env_config(
        {
            "NAVI_CONFIG_YAML": "finder: {}",
            "NAVI_CONFIG": "/tmp/config.yaml",
            "NAVI_PATH": "/cheats",
            "NAVI_FINDER": "skim",
            "NAVI_FZF_OVERRIDES": "--a",
            "NAVI_FZF_OVERRIDES_VAR": "--b",
        }
    )
    assert env == EnvConfig("finder: {}", "/tmp/config.yaml", "/cheats", FinderChoice.SKIM, "--a", "--b")


def test_load_env_config_invalid_finder_is_ignored():
    assert load_env_config({"NAVI_FINDER": "SKIM"}).finder is None
    assert load_env_config({}) == EnvConfig()


def test_yaml_defaults():
    config = yaml_from_str("")
    assert config.style.tag == ColorWidth(Color(14), 26, 20)
    assert config.style.comment == ColorWidth(Color(12), 42, 45)
    assert config.style.snippet == ColorWidth(Color(12), 26, 20)
    assert config.finder.command is FinderChoice.FZF
    assert config.shell == ShellSection("bash", None)
    assert config.cheats == Cheats(None, [])


def test_yaml_partial_column_uses_column_defaults():
    config = yaml_from_str("style:\n  tag:\n    width_percentage: 30\n")
    assert config.style.tag == ColorWidth(Color(12), 30, 20)


def test_yaml_full_document():
    text = """
style:
  tag: {color: red, width_percentage: 10, min_width: 5}
finder:
  command: Skim
  overrides: --no-exact
  overrides_var: --exact
cheats:
  paths: [/a, /b]
search:
  tags: git
shell:
  command: zsh
  finder_command: bash
"""
    config = yaml_from_str(text)
    assert config.style.tag == ColorWidth(Color(9), 10, 5)
    assert config.finder == FinderSection(FinderChoice.SKIM, "--no-exact", "--exact")
    assert config.cheats.paths == ["/a", "/b"]
    assert config.search == Search("git")
    assert config.shell == ShellSection("zsh", "bash")


@pytest.mark.parametrize(
    "text",
    [
        "style: {tag: {color: not_a_color}}",
        "finder: {command: peco}",
        "style: {tag: {min_width: 70000}}",
        "cheats: {paths: /a}",
        "key: [unclosed",
    ],
)
def test_yaml_invalid(text):
    with pytest.raises(ConfigError):
        yaml_from_str(text)


def test_yaml_from_path(tmp_path):
    file = tmp_path / "config.yaml"
    file.write_text("shell:\n  command: fish\n", encoding="utf-8")
    assert yaml_from_path(file).shell.command == "fish"


def test_yaml_from_missing_path(tmp_path):
    with pytest.raises(ConfigError):
        yaml_from_path(tmp_path / "missing.yaml")


def test_load_yaml_config_prefers_inline_text(tmp_path):
    file = tmp_path / "config.yaml"
    file.write_text("shell:\n  command: fish\n", encoding="utf-8")
    env = EnvConfig(config_yaml="shell:\n  command: zsh\n", config_path=str(file))
    assert load_yaml_config(env).shell.command == "zsh"
    assert load_yaml_config(EnvConfig(config_path=str(file))).shell.command == "fish"


def test_path_precedence():
    yaml_config = YamlConfig(cheats=Cheats(path="/single", paths=["/a", "/b"]))
    assert Config(yaml=yaml_config, clap=ClapConfig(path="/flag"), env=EnvConfig(path="/env")).path() == "/flag"
    assert Config(yaml=yaml_config, env=EnvConfig(path="/env")).path() == "/env"
    assert Config(yaml=yaml_config).path() == "/a:/b"
    assert Config(yaml=YamlConfig(cheats=Cheats(path="/single"))).path() == "/single"
    assert Config().path() is None


def test_finder_precedence():
    yaml_config = YamlConfig(finder=FinderSection(command=FinderChoice.SKIM))
    assert Config(yaml=yaml_config).finder() is FinderChoice.SKIM
    assert Config(yaml=yaml_config, env=EnvConfig(finder=FinderChoice.FZF)).finder() is FinderChoice.FZF
    assert Config(clap=ClapConfig(finder=FinderChoice.SKIM), env=EnvConfig(finder=FinderChoice.FZF)).finder() is FinderChoice.SKIM


def test_overrides_precedence():
    yaml_config = YamlConfig(finder=FinderSection(overrides="--yaml", overrides_var="--yaml-var"))
    config = Config(yaml=yaml_config, env=EnvConfig(fzf_overrides="--env"))
    assert config.fzf_overrides() == "--env"
    assert config.fzf_overrides_var() == "--yaml-var"
    config = Config(yaml=yaml_config, clap=ClapConfig(fzf_overrides_var="--flag"))
    assert config.fzf_overrides_var() == "--flag"


def test_shell_and_finder_shell():
    assert Config().finder_shell() == "bash"
    config = Config(yaml=YamlConfig(shell=ShellSection("zsh", "dash")))
    assert config.shell() == "zsh"
    assert config.finder_shell() == "dash"


def test_tag_rules_and_source():
    config = Config(yaml=YamlConfig(search=Search("git")), clap=ClapConfig(path="/p"))
    assert config.tag_rules() == "git"
    assert config.source() == FilesystemSource("/p", "git")
    assert Config(clap=ClapConfig(tldr="tar", cheatsh="ls")).source() == TldrSource("tar")
    assert Config(clap=ClapConfig(cheatsh="ls")).source() == CheatshSource("ls")


def test_style_accessors():
    config = Config()
    assert config.tag_color() == Color(14)
    assert config.comment_color() == Color(12)
    assert config.snippet_color() == Color(12)
    assert (config.tag_width_percentage(), config.comment_width_percentage()) == (26, 42)
    assert (config.tag_min_width(), config.comment_min_width()) == (20, 45)


def test_action():
    assert Config(clap=ClapConfig(print=True)).action() is Action.PRINT
    assert Config().action() is Action.EXECUTE


def test_get_query():
    assert Config(clap=ClapConfig(query="git")).get_query() == "git"
    assert Config().get_query() is None
    assert Config(clap=ClapConfig(best_match=True)).get_query() == ""
    assert Config(clap=ClapConfig(best_match=True, tldr="docker")).get_query() == "docker"
    assert Config(clap=ClapConfig(best_match=True, cheatsh="tar")).get_query() == "tar"


def test_load_config_falls_back_on_bad_yaml(monkeypatch, capsys):
    monkeypatch.setenv("NAVI_CONFIG_YAML", "finder: {command: peco}")
    config = load_config(["--print"])
    assert config.yaml == YamlConfig()
    assert config.clap.print is True
    assert "Fallbacking to default one" in capsys.readouterr().err


def test_load_config_reads_environment(monkeypatch):
    monkeypatch.setenv("NAVI_CONFIG_YAML", "shell: {command: zsh}")
    monkeypatch.setenv("NAVI_PATH", "/env/cheats")
    config = load_config([])
    assert config.shell() == "zsh"
    assert config.path() == "/env/cheats"