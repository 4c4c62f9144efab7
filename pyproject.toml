[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "navi"
version = "2.19.0"
description = "An interactive cheatsheet tool for the command line"
requires-python = ">=3.10"
keywords = ["cheatsheet", "cli", "fzf", "skim", "snippets", "shell", "tldr"]
classifiers = [
    "Development Status :: 5 - Production/Stable",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]
dependencies = [
    "pyyaml",
    "platformdirs",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
navi = "navi.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["navi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
