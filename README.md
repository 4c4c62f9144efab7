# navi

An interactive cheatsheet tool for the command line. navi reads `.cheat`
files, lists their snippets in a fuzzy finder (fzf or skim), asks for the
values of any `<variables>` in the chosen snippet, and then runs, prints or
copies the finished command.

## Installation

```
pip install navi
```

navi needs `fzf` (or `sk`, for skim) on your `PATH`. Snippets and suggestion
commands run in the configured shell (`bash` by default). `repo add` and
`repo browse` call `git`, `--cheatsh` calls `wget`, and `--tldr` calls a
`tldr` client that supports `--markdown`.

## Usage

```
navi                                   # browse your cheatsheets
navi --print                           # print the snippet instead of running it
navi --tldr docker                     # use tldr pages as the source
navi --cheatsh docker                  # use cheat.sh as the source
navi --path '/some/dir:/other/dir'     # read .cheat files from these folders
navi --query git                       # prefill the search field
navi --query 'create db' --best-match  # pick the best match without prompting
navi repo add user/repo                # import .cheat files from a git repository
navi repo browse                       # pick one of the featured repositories
navi --finder skim                     # use skim instead of fzf
navi --fzf-overrides '--no-exact'      # extra finder arguments for snippet selection
navi --fzf-overrides-var '--no-select-1'  # extra finder arguments for variable selection
navi --tag-rules='git,!checkout'       # keep git snippets, drop checkout ones
navi info cheats-path                  # show where cheatsheets are read from
navi info config-path                  # show where the config file is read from
navi fn url::open <url>                # open a URL with xdg-open or open
navi --version                         # show the installed version
```

In the finder, `enter` runs the snippet, `ctrl-y` copies it to the clipboard
(through `pbcopy`, `xclip` or `clip.exe`) and `ctrl-o` opens its cheatsheet in
`$VISUAL` or `$EDITOR` (falling back to `vi`).

A variable's value is taken from the environment when a variable of the same
name is set, with `-` read as `_`; for example
`branch=main navi --query checkout --best-match`. Setting `<name>__query`
prefills the finder's query for that variable, and `<name>__best` selects the
best match for it without prompting.

`repo add` accepts a full git URI or a `user/repo` shorthand, which is taken to
be on GitHub. The chosen files are copied to `<cheats dir>/<user>__<repo>/`.

## Cheatsheet format

```
% git, code

# Change branch
git checkout <branch>

$ branch: git branch | awk '{print $NF}'
```

- `%` lines set the tags of the snippets below them.
- `#` lines describe the snippet that follows.
- `$ name: command` gives suggestions for `<name>`; options for the finder
  follow `---`: `--column`, `--delimiter`, `--map`, `--query`, `--filter`,
  `--preview`, `--preview-window`, `--header`, `--header-lines`,
  `--fzf-overrides`, and the flags `--multi`, `--prevent-extra` and
  `--expand`. A line ending in `\` continues on the next one.
- `@ tags` lets a section reuse the variables of the section with those tags.
- `;` lines are comments and are ignored.

## Configuration

The config file is YAML, at `navi/config.yaml` in the platform's config
directory (see `navi info config-path`). Every key is optional:

```yaml
style:
  tag:
    color: cyan          # black, grey, dark_grey, red, dark_red, green, ...
    width_percentage: 26
    min_width: 20
  comment:
    color: blue
    width_percentage: 42
    min_width: 45
  snippet:
    color: blue
finder:
  command: fzf           # or skim
  overrides: --no-exact
  overrides_var: --no-select-1
cheats:
  paths:
    - ~/cheats
    - $HOME/more-cheats
search:
  tags: git,!checkout
shell:
  command: bash
  finder_command: bash
```

If the file cannot be parsed, navi reports the error and carries on with the
defaults. These environment variables are also read:

- `NAVI_CONFIG`: path to the config file
- `NAVI_CONFIG_YAML`: config file content
- `NAVI_PATH`: colon-separated folders holding `.cheat` files
- `NAVI_FINDER`: `fzf` or `skim`
- `NAVI_FZF_OVERRIDES`, `NAVI_FZF_OVERRIDES_VAR`: extra finder arguments

Command-line options take precedence over the environment, and the
environment over the config file. Cheatsheet folders may use `~`, `$VAR` and
`${VAR}`; without any setting, `navi/cheats` in the platform's data directory
is used (see `navi info cheats-path`).

## Limitations

- The package ships no cheatsheet of its own. `navi fn welcome`, and the
  fallback used when no `.cheat` files are found, show an empty list, and
  `navi info cheats-example` and `navi info config-example` report that the
  example file is not available.
- There is no command that prints shell widget code for bash, zsh, fish or
  elvish; only the helper `navi fn widget::last_command`, which reads a command
  line on standard input and prints its last command, is provided.