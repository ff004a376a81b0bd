"""
Command assembly.

Scope
- Command: the immutable token vector handed to the process runner.
- assemble(): concatenate the tool path, fixed subcommand tokens, positional
  tokens and the translated flag map (plus any trailing decorations) into a
  Command.
- require_directory() / require_file(): action preconditions, raised before any
  process is created so a doomed launch never happens.

Shape
    [tool] + fixed + positionals + flatten(flags) + extra
"""
import os
from pathlib import Path

from .args import Style, flatten
from .faults import InvalidConfigurationError, InvalidDirectoryError
from .utils import quote


class Command(tuple):
    """
    ordered, immutable sequence of string tokens; the first token is the tool.
    """
    __slots__ = ()

    def __new__(cls, tokens=(), /):
        tokens = tuple(tokens)
        if not tokens:
            raise ValueError("Command must contain at least the tool token")
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError(f"Command tokens must be strings, not {type(token).__name__}")
        return super().__new__(cls, tokens)

    @property
    def tool(self):
        return self[0]

    @property
    def arguments(self):
        return self[1:]

    def __str__(self):
        return quote(self)

    def __repr__(self):
        return f"Command({list(self)!r})"


def assemble(tool, fixed=(), positionals=(), flags=None, /, *, style=Style.SPACED, extra=()):
    """
    Build the final Command for one invocation.

    Parameters
    - tool: path of the executable (str or path-like).
    - fixed: subcommand tokens, e.g. ("app", "deploy").
    - positionals: positional tokens (path-like values are converted).
    - flags: validated flag map (Option -> str), translated in its own order.
    - style: the flag dialect of the tool (see helmsman.args.Style).
    - extra: tokens appended after the flags (e.g. "--quiet").
    """
    tokens = [os.fspath(tool)]
    tokens.extend(fixed)
    tokens.extend(os.fspath(positional) for positional in positionals)
    tokens.extend(flatten(flags or {}, style=style))
    tokens.extend(extra)
    return Command(tokens)


def require_directory(path, /, *, what="directory"):
    """
    Raise InvalidDirectoryError unless `path` exists and is a directory.
    """
    if path is None or not os.fspath(path):
        raise InvalidDirectoryError(f"no {what} was provided.", path=None)
    path = Path(path)
    if not path.exists():
        raise InvalidDirectoryError(f"{what} does not exist. {path.absolute()}", path=str(path))
    if not path.is_dir():
        raise InvalidDirectoryError(f"{what} is not a directory. {path.absolute()}", path=str(path))
    return path


def require_file(path, /, *, what="file"):
    """
    Raise InvalidConfigurationError unless `path` exists and is a regular file.
    """
    if path is None or not os.fspath(path):
        raise InvalidConfigurationError(f"no {what} was provided.")
    path = Path(path)
    if not path.is_file():
        raise InvalidConfigurationError(f"{what} {path} does not exist or is not a file.", path=str(path))
    return path


__all__ = (
    "Command",
    "assemble",
    "require_directory",
    "require_file",
)
