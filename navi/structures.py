"""Core data structures: finder options, cheatsheet items and variables."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import IO, Dict, List, NamedTuple, Optional

from .fs import exe_string
from .hashing import fnv


class SuggestionType(Enum):
    """How the finder treats the suggestions it is given."""

    DISABLED = auto()
    """The finder prints no suggestions."""
    SINGLE_SELECTION = auto()
    """Exactly one of the suggestions is selected."""
    MULTIPLE_SELECTIONS = auto()
    """Several suggestions may be selected."""
    SINGLE_RECOMMENDATION = auto()
    """One suggestion is selected, or the typed query is used."""
    SNIPPET_SELECTION = auto()
    """The initial snippet selection."""


class FinderChoice(Enum):
    """The fuzzy finder program to run."""

    FZF = "fzf"
    SKIM = "skim"

    @property
    def executable(self) -> str:
        return "fzf" if self is FinderChoice.FZF else "sk"


@dataclass
class Opts:
    """Options passed to the finder."""

    query: Optional[str] = None
    filter: Optional[str] = None
    prompt: Optional[str] = None
    preview: Optional[str] = None
    preview_window: Optional[str] = None
    overrides: Optional[str] = None
    header_lines: int = 0
    header: Optional[str] = None
    suggestion_type: SuggestionType = SuggestionType.SINGLE_SELECTION
    delimiter: Optional[str] = None
    column: Optional[int] = None
    map: Optional[str] = None
    prevent_select1: bool = True


def snippet_default(config) -> Opts:
    """Options for the initial snippet selection."""
    best_match = config.best_match()
    query = config.get_query()
    return Opts(
        suggestion_type=SuggestionType.SNIPPET_SELECTION,
        overrides=config.fzf_overrides(),
        preview=f"{exe_string()} preview {{}}",
        prevent_select1=not best_match,
        query=None if best_match else query,
        filter=query if best_match else None,
    )


def var_default(config) -> Opts:
    """Options for selecting a variable's value."""
    return Opts(
        overrides=config.fzf_overrides_var(),
        suggestion_type=SuggestionType.SINGLE_RECOMMENDATION,
        prevent_select1=False,
    )


@dataclass
class Item:
    """One snippet from a cheatsheet."""

    tags: str = ""
    comment: str = ""
    snippet: str = ""
    file_index: int = 0


class Suggestion(NamedTuple):
    """A shell command producing values for a variable, with finder options."""

    command: str
    opts: Optional[Opts] = None


class VariableMap:
    """Variable suggestions keyed by tags, with tag dependencies."""

    def __init__(self) -> None:
        self._variables: Dict[int, Dict[str, Suggestion]] = {}
        self._dependencies: Dict[int, List[int]] = {}

    def insert_dependency(self, tags: str, tags_dependency: str) -> None:
        """Make variables defined under ``tags_dependency`` visible from ``tags``."""
        self._dependencies.setdefault(fnv(tags), []).append(fnv(tags_dependency))

    def insert_suggestion(self, tags: str, variable: str, value: Suggestion) -> None:
        """Record the suggestion for ``variable`` under ``tags``."""
        self._variables.setdefault(fnv(tags), {})[variable] = value

    def get_suggestion(self, tags: str, variable: str) -> Optional[Suggestion]:
        """Find a suggestion under ``tags`` or, failing that, its dependencies."""
        key = fnv(tags)
        for candidate in (key, *self._dependencies.get(key, ())):
            found = self._variables.get(candidate, {}).get(variable)
            if found is not None:
                return found
        return None

    def __copy__(self) -> "VariableMap":
        clone = VariableMap()
        clone._variables = {k: dict(v) for k, v in self._variables.items()}
        clone._dependencies = {k: list(v) for k, v in self._dependencies.items()}
        return clone


class Fetcher(ABC):
    """A source of cheatsheets that writes finder lines to a stream."""

    @abstractmethod
    def fetch(self, stdin: IO[str], files: List[str]) -> Optional[VariableMap]:
        """Write items to ``stdin`` and return their variables, or None if none found."""