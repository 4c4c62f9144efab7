"""Configuration from command-line arguments, the environment and a YAML file."""

import argparse
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, List, Mapping, NoReturn, Optional, Sequence, Tuple, Type, TypeVar, Union

import yaml

from . import env_var
from .paths import default_config_pathbuf
from .structures import FinderChoice
from .terminal import BLUE, CYAN, Color, parse_color

E = TypeVar("E", bound=Enum)

_U16_MAX = 0xFFFF


class Func(Enum):
    """Internal functions reachable through ``navi fn``."""

    URL_OPEN = "url::open"
    WELCOME = "welcome"
    WIDGET_LAST_COMMAND = "widget::last_command"
    MAP_EXPAND = "map::expand"


class Info(Enum):
    """Pieces of information shown by ``navi info``."""

    CHEATS_EXAMPLE = "cheats-example"
    CHEATS_PATH = "cheats-path"
    CONFIG_PATH = "config-path"
    CONFIG_EXAMPLE = "config-example"


class Action(Enum):
    """What to do with the selected snippet."""

    PRINT = "print"
    EXECUTE = "execute"


@dataclass(frozen=True)
class FilesystemSource:
    """Cheatsheets read from ``.cheat`` files on disk."""

    path: Optional[str] = None
    tag_rules: Optional[str] = None


@dataclass(frozen=True)
class TldrSource:
    """Cheatsheets produced by the tldr client."""

    query: str


@dataclass(frozen=True)
class CheatshSource:
    """Cheatsheets downloaded from cheat.sh."""

    query: str


Source = Union[FilesystemSource, TldrSource, CheatshSource]


@dataclass
class FnCommand:
    """Call an internal function with arguments."""

    func: Func
    args: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RepoAddCommand:
    """Import cheatsheets from a git repository."""

    uri: str


@dataclass(frozen=True)
class RepoBrowseCommand:
    """Browse the featured cheatsheet repositories."""


@dataclass(frozen=True)
class PreviewCommand:
    """Render the finder preview of a snippet line."""

    line: str


@dataclass(frozen=True)
class PreviewVarCommand:
    """Render the finder preview while a variable is being chosen."""

    selection: str
    query: str
    variable: str


@dataclass(frozen=True)
class PreviewVarStdinCommand:
    """Like PreviewVarCommand, with its arguments read from standard input."""


@dataclass(frozen=True)
class InfoCommand:
    """Show a piece of information."""

    info: Info


Command = Union[
    FnCommand,
    RepoAddCommand,
    RepoBrowseCommand,
    PreviewCommand,
    PreviewVarCommand,
    PreviewVarStdinCommand,
    InfoCommand,
]


@dataclass
class ClapConfig:
    """Settings given on the command line."""

    path: Optional[str] = None
    print: bool = False
    best_match: bool = False
    tldr: Optional[str] = None
    tag_rules: Optional[str] = None
    cheatsh: Optional[str] = None
    query: Optional[str] = None
    fzf_overrides: Optional[str] = None
    fzf_overrides_var: Optional[str] = None
    finder: Optional[FinderChoice] = None
    cmd: Optional[Command] = None


@dataclass
class EnvConfig:
    """Settings taken from environment variables."""

    config_yaml: Optional[str] = None
    config_path: Optional[str] = None
    path: Optional[str] = None
    finder: Optional[FinderChoice] = None
    fzf_overrides: Optional[str] = None
    fzf_overrides_var: Optional[str] = None


@dataclass
class ColorWidth:
    """Colour and width of one column in the finder."""

    color: Color = BLUE
    width_percentage: int = 26
    min_width: int = 20


@dataclass
class Style:
    """Styles of the tag, comment and snippet columns."""

    tag: ColorWidth = field(default_factory=lambda: ColorWidth(CYAN, 26, 20))
    comment: ColorWidth = field(default_factory=lambda: ColorWidth(BLUE, 42, 45))
    snippet: ColorWidth = field(default_factory=ColorWidth)


@dataclass
class FinderSection:
    """The ``finder`` section of the configuration file."""

    command: FinderChoice = FinderChoice.FZF
    overrides: Optional[str] = None
    overrides_var: Optional[str] = None


@dataclass
class Cheats:
    """The ``cheats`` section of the configuration file."""

    path: Optional[str] = None
    paths: List[str] = field(default_factory=list)


@dataclass
class Search:
    """The ``search`` section of the configuration file."""

    tags: Optional[str] = None


@dataclass
class ShellSection:
    """The ``shell`` section of the configuration file."""

    command: str = "bash"
    finder_command: Optional[str] = None


@dataclass
class YamlConfig:
    """Settings read from the YAML configuration file."""

    style: Style = field(default_factory=Style)
    finder: FinderSection = field(default_factory=FinderSection)
    cheats: Cheats = field(default_factory=Cheats)
    search: Search = field(default_factory=Search)
    shell: ShellSection = field(default_factory=ShellSection)


class ConfigError(Exception):
    """The configuration file could not be read or is invalid."""


# ---------------------------------------------------------------- command line

_EPILOG = """\
ENVIRONMENT VARIABLES:
    NAVI_CONFIG            # path to config file
    NAVI_CONFIG_YAML       # config file content

FEATURE STABILITY:
    experimental           # may be removed or changed at any time
    deprecated             # may be removed in 3 months after first being deprecated

COMMANDS:
    fn <function> [args...]    [Experimental] Calls internal functions
                               (url::open, welcome, widget::last_command, map::expand)
    repo add <uri>             Imports cheatsheets from a repo
    repo browse                Browses for featured cheatsheet repos
    info <info>                Shows info
                               (cheats-example, cheats-path, config-path, config-example)

EXAMPLES:
    navi                                         # default behavior
    navi fn welcome                              # show cheatsheets for navi itself
    navi --print                                 # doesn't execute the snippet
    navi --tldr docker                           # search for docker cheatsheets using tldr
    navi --cheatsh docker                        # search for docker cheatsheets using cheatsh
    navi --path '/some/dir:/other/dir'           # use .cheat files from custom paths
    navi --query git                             # filter results by "git"
    navi --query 'create db' --best-match        # autoselect the snippet that best matches a query
    db=my navi --query 'create db' --best-match  # same, but set the value for the <name> variable
    navi repo add denisidoro/cheats              # import cheats from a git repository
    navi --finder 'skim'                         # set skim as finder, instead of fzf
    navi --fzf-overrides '--with-nth 1,2'        # show only the comment and tag columns
    navi --fzf-overrides '--no-select-1'         # prevent autoselection in case of single line
    navi --fzf-overrides-var '--no-select-1'     # same, but for variable selection
    navi --fzf-overrides '--nth 1,2'             # only consider the first two columns for search
    navi --fzf-overrides '--no-exact'            # use looser search algorithm
    navi --tag-rules='git,!checkout'             # show non-checkout git snippets only
"""

_VALUE_OPTIONS = {
    "-p": "--path",
    "--path": "--path",
    "--tldr": "--tldr",
    "--tag-rules": "--tag-rules",
    "--cheatsh": "--cheatsh",
    "-q": "--query",
    "--query": "--query",
    "--fzf-overrides": "--fzf-overrides",
    "--fzf-overrides-var": "--fzf-overrides-var",
    "--finder": "--finder",
}


def _version() -> str:
    try:
        return metadata.version("navi")
    except metadata.PackageNotFoundError:
        return "unknown"


def _finder_choice(text: str) -> FinderChoice:
    try:
        return FinderChoice(text.lower())
    except ValueError:
        choices = ", ".join(choice.value for choice in FinderChoice)
        raise argparse.ArgumentTypeError(
            f"invalid choice: {text!r} (choose from {choices})"
        ) from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="navi",
        usage="navi [options] [command ...]",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {_version()}")
    parser.add_argument("-p", "--path", help="Colon-separated list of paths containing .cheat files")
    parser.add_argument(
        "--print", action="store_true", help="Instead of executing a snippet, prints it to stdout"
    )
    parser.add_argument("--best-match", action="store_true", help="Returns the best match")
    parser.add_argument("--tldr", help="Searches for cheatsheets using the tldr-pages repository")
    parser.add_argument(
        "--tag-rules",
        help="[Experimental] Comma-separated list that acts as filter for tags. "
        "Parts starting with ! represent negation",
    )
    parser.add_argument("--cheatsh", help="Searches for cheatsheets using the cheat.sh repository")
    parser.add_argument("-q", "--query", help="Prepopulates the search field")
    parser.add_argument("--fzf-overrides", help="Finder overrides for snippet selection")
    parser.add_argument("--fzf-overrides-var", help="Finder overrides for variable selection")
    parser.add_argument(
        "--finder", type=_finder_choice, help="Finder application to use (fzf, skim)"
    )
    return parser


def _split_argv(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split into option tokens and command tokens.

    Options taking a value are joined with it, so values may start with a hyphen.
    """
    options: List[str] = []
    tokens = iter(argv)
    for token in tokens:
        if token in _VALUE_OPTIONS:
            value = next(tokens, None)
            if value is None:
                options.append(token)
                break
            options.append(f"{_VALUE_OPTIONS[token]}={value}")
        elif token == "--":
            return options, list(tokens)
        elif token == "-" or not token.startswith("-"):
            return options, [token, *tokens]
        else:
            options.append(token)
    return options, []


def _enum_choice(parser: argparse.ArgumentParser, enum_cls: Type[E], text: str, what: str) -> E:
    try:
        return enum_cls(text.lower())
    except ValueError:
        choices = ", ".join(str(member.value) for member in enum_cls)
        _fail(parser, f"invalid {what} {text!r} (choose from {choices})")


def _fail(parser: argparse.ArgumentParser, message: str) -> NoReturn:
    parser.error(message)
    raise SystemExit(2)


def _expect(parser: argparse.ArgumentParser, name: str, args: List[str], count: int) -> None:
    if len(args) != count:
        _fail(parser, f"{name}: expected {count} argument(s), got {len(args)}")


def _parse_command(parser: argparse.ArgumentParser, tokens: List[str]) -> Command:
    name, args = tokens[0], tokens[1:]
    if name == "fn":
        if not args:
            _fail(parser, "fn: missing function name")
        return FnCommand(_enum_choice(parser, Func, args[0], "function"), list(args[1:]))
    if name == "repo":
        if not args:
            _fail(parser, "repo: missing subcommand (add, browse)")
        sub, rest = args[0], args[1:]
        if sub == "add":
            _expect(parser, "repo add", rest, 1)
            return RepoAddCommand(rest[0])
        if sub == "browse":
            _expect(parser, "repo browse", rest, 0)
            return RepoBrowseCommand()
        _fail(parser, f"repo: unknown subcommand {sub!r} (choose from add, browse)")
    if name == "preview":
        _expect(parser, "preview", args, 1)
        return PreviewCommand(args[0])
    if name == "preview-var":
        _expect(parser, "preview-var", args, 3)
        return PreviewVarCommand(args[0], args[1], args[2])
    if name == "preview-var-stdin":
        _expect(parser, "preview-var-stdin", args, 0)
        return PreviewVarStdinCommand()
    if name == "info":
        _expect(parser, "info", args, 1)
        return InfoCommand(_enum_choice(parser, Info, args[0], "info"))
    _fail(parser, f"unknown command {name!r}")


def parse_args(argv: Optional[Sequence[str]] = None) -> ClapConfig:
    """Parse command-line arguments; exits with status 2 on invalid input."""
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    options, command_tokens = _split_argv(argv)
    namespace = parser.parse_args(options)
    cmd = _parse_command(parser, command_tokens) if command_tokens else None
    return ClapConfig(
        path=namespace.path,
        print=namespace.print,
        best_match=namespace.best_match,
        tldr=namespace.tldr,
        tag_rules=namespace.tag_rules,
        cheatsh=namespace.cheatsh,
        query=namespace.query,
        fzf_overrides=namespace.fzf_overrides,
        fzf_overrides_var=namespace.fzf_overrides_var,
        finder=namespace.finder,
        cmd=cmd,
    )


# ----------------------------------------------------------------- environment


def load_env_config(environ: Optional[Mapping[str, str]] = None) -> EnvConfig:
    """Read navi's settings from ``environ`` (the process environment by default)."""
    if environ is None:
        environ = os.environ
    finder_text = environ.get(env_var.FINDER)
    finder: Optional[FinderChoice] = None
    if finder_text is not None:
        try:
            finder = FinderChoice(finder_text)
        except ValueError:
            finder = None
    return EnvConfig(
        config_yaml=environ.get(env_var.CONFIG_YAML),
        config_path=environ.get(env_var.CONFIG),
        path=environ.get(env_var.PATH),
        finder=finder,
        fzf_overrides=environ.get(env_var.FZF_OVERRIDES),
        fzf_overrides_var=environ.get(env_var.FZF_OVERRIDES_VAR),
    )


# ------------------------------------------------------------------------ YAML


def _mapping(value: Any, where: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"`{where}`: expected a mapping")
    return value


def _optional_str(value: Any, where: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"`{where}`: expected a string")
    return value


def _str(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"`{where}`: expected a string")
    return value


def _u16(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U16_MAX:
        raise ConfigError(f"`{where}`: expected an integer between 0 and {_U16_MAX}")
    return value


def _color(value: Any, where: str) -> Color:
    text = _str(value, where)
    try:
        return parse_color(text)
    except ValueError:
        raise ConfigError(f"Failed to deserialize color: {text}") from None


def _color_width(value: Any, where: str) -> ColorWidth:
    data = _mapping(value, where)
    base = ColorWidth()
    return ColorWidth(
        color=_color(data["color"], f"{where}.color") if "color" in data else base.color,
        width_percentage=(
            _u16(data["width_percentage"], f"{where}.width_percentage")
            if "width_percentage" in data
            else base.width_percentage
        ),
        min_width=(
            _u16(data["min_width"], f"{where}.min_width") if "min_width" in data else base.min_width
        ),
    )


def _style(value: Any) -> Style:
    data = _mapping(value, "style")
    base = Style()
    return Style(
        tag=_color_width(data["tag"], "style.tag") if "tag" in data else base.tag,
        comment=_color_width(data["comment"], "style.comment") if "comment" in data else base.comment,
        snippet=_color_width(data["snippet"], "style.snippet") if "snippet" in data else base.snippet,
    )


def _finder(value: Any) -> FinderSection:
    data = _mapping(value, "finder")
    command = FinderChoice.FZF
    if "command" in data:
        text = _str(data["command"], "finder.command")
        try:
            command = FinderChoice(text.lower())
        except ValueError:
            raise ConfigError(f"Failed to deserialize finder: {text}") from None
    return FinderSection(
        command=command,
        overrides=_optional_str(data.get("overrides"), "finder.overrides"),
        overrides_var=_optional_str(data.get("overrides_var"), "finder.overrides_var"),
    )


def _cheats(value: Any) -> Cheats:
    data = _mapping(value, "cheats")
    raw_paths = data.get("paths")
    if raw_paths is None:
        paths: List[str] = []
    elif isinstance(raw_paths, list):
        paths = [_str(item, "cheats.paths") for item in raw_paths]
    else:
        raise ConfigError("`cheats.paths`: expected a list")
    return Cheats(path=_optional_str(data.get("path"), "cheats.path"), paths=paths)


def _search(value: Any) -> Search:
    data = _mapping(value, "search")
    return Search(tags=_optional_str(data.get("tags"), "search.tags"))


def _shell(value: Any) -> ShellSection:
    data = _mapping(value, "shell")
    return ShellSection(
        command=_str(data["command"], "shell.command") if "command" in data else "bash",
        finder_command=_optional_str(data.get("finder_command"), "shell.finder_command"),
    )


def yaml_from_str(text: str) -> YamlConfig:
    """Parse the configuration file's content."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as error:
        raise ConfigError(str(error)) from error
    data = _mapping(data, "config")
    return YamlConfig(
        style=_style(data.get("style")),
        finder=_finder(data.get("finder")),
        cheats=_cheats(data.get("cheats")),
        search=_search(data.get("search")),
        shell=_shell(data.get("shell")),
    )


def yaml_from_path(path: Union[str, "os.PathLike[str]"]) -> YamlConfig:
    """Read and parse the configuration file at ``path``."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as error:
        raise ConfigError(f"Failed to open file {os.fspath(path)}") from error
    return yaml_from_str(text)


def load_yaml_config(env: EnvConfig) -> YamlConfig:
    """Load the YAML configuration named by ``env``, or the default file if present."""
    if env.config_yaml is not None:
        return yaml_from_str(env.config_yaml)
    if env.config_path is not None:
        return yaml_from_path(Path(env.config_path))
    default_path = default_config_pathbuf()
    if default_path.exists():
        return yaml_from_path(default_path)
    return YamlConfig()


# ---------------------------------------------------------------------- merged


@dataclass
class Config:
    """Settings merged from the command line, the environment and the file."""

    yaml: YamlConfig = field(default_factory=YamlConfig)
    clap: ClapConfig = field(default_factory=ClapConfig)
    env: EnvConfig = field(default_factory=EnvConfig)

    def best_match(self) -> bool:
        return self.clap.best_match

    def cmd(self) -> Optional[Command]:
        return self.clap.cmd

    def source(self) -> Source:
        """Where cheatsheets come from: tldr, cheat.sh or the filesystem."""
        if self.clap.tldr is not None:
            return TldrSource(self.clap.tldr)
        if self.clap.cheatsh is not None:
            return CheatshSource(self.clap.cheatsh)
        return FilesystemSource(self.path(), self.tag_rules())

    def path(self) -> Optional[str]:
        """The cheatsheet path list, by precedence: flag, environment, file."""
        if self.clap.path is not None:
            return self.clap.path
        if self.env.path is not None:
            return self.env.path
        if self.yaml.cheats.paths:
            return ":".join(self.yaml.cheats.paths)
        return self.yaml.cheats.path

    def finder(self) -> FinderChoice:
        if self.clap.finder is not None:
            return self.clap.finder
        if self.env.finder is not None:
            return self.env.finder
        return self.yaml.finder.command

    def fzf_overrides(self) -> Optional[str]:
        for value in (self.clap.fzf_overrides, self.env.fzf_overrides, self.yaml.finder.overrides):
            if value is not None:
                return value
        return None

    def fzf_overrides_var(self) -> Optional[str]:
        for value in (
            self.clap.fzf_overrides_var,
            self.env.fzf_overrides_var,
            self.yaml.finder.overrides_var,
        ):
            if value is not None:
                return value
        return None

    def shell(self) -> str:
        return self.yaml.shell.command

    def finder_shell(self) -> str:
        if self.yaml.shell.finder_command is not None:
            return self.yaml.shell.finder_command
        return self.yaml.shell.command

    def tag_rules(self) -> Optional[str]:
        if self.clap.tag_rules is not None:
            return self.clap.tag_rules
        return self.yaml.search.tags

    def tag_color(self) -> Color:
        return self.yaml.style.tag.color

    def comment_color(self) -> Color:
        return self.yaml.style.comment.color

    def snippet_color(self) -> Color:
        return self.yaml.style.snippet.color

    def tag_width_percentage(self) -> int:
        return self.yaml.style.tag.width_percentage

    def comment_width_percentage(self) -> int:
        return self.yaml.style.comment.width_percentage

    def tag_min_width(self) -> int:
        return self.yaml.style.tag.min_width

    def comment_min_width(self) -> int:
        return self.yaml.style.comment.min_width

    def action(self) -> Action:
        return Action.PRINT if self.clap.print else Action.EXECUTE

    def get_query(self) -> Optional[str]:
        """The initial query; with best-match and no query, the source's query."""
        if self.clap.query is not None:
            return self.clap.query
        if not self.best_match():
            return None
        source = self.source()
        if isinstance(source, (TldrSource, CheatshSource)):
            return source.query
        return ""


def load_config(argv: Optional[Sequence[str]] = None) -> Config:
    """Build the configuration, falling back to defaults if the file is broken."""
    env = load_env_config()
    try:
        yaml_config = load_yaml_config(env)
    except ConfigError as error:
        print(f"Error parsing config file: {error}", file=sys.stderr)
        print("Fallbacking to default one...", file=sys.stderr)
        print(file=sys.stderr)
        yaml_config = YamlConfig()
    clap = parse_args(argv)
    return Config(yaml=yaml_config, clap=clap, env=env)