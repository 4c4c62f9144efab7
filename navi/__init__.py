"""Interactive cheatsheet tool: browse .cheat snippets in fzf or skim, fill in variables, run them."""

__version__ = "2.19.0"
__all__ = ["__version__"]