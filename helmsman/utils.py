"""
Helmsman utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the option, process and sdk layers.

Overview
- UnsetType / Unset
  • Singleton sentinel for "value not provided", distinct from None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, preserving legitimate falsey values.

- mirror("attr")
  • Read-only property exposing a private backing field (self._attr), handing out
    copies of containers so callers cannot mutate handle or sdk state.

- freeze(mapping)
  • Snapshot a mapping of strings into a read-only view (environment overrides,
    flag maps).

- quote(tokens)
  • Render a token vector the way a POSIX shell would need it, for log lines only.

Stability and contract
- Names in __all__ are re-used across the package; anything else may change.
"""
import shlex
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Sentinel type for arguments the caller did not pass.

    Exactly one instance exists (Unset); it is falsey, prints as "Unset" and the
    type refuses subclasses. `str | Unset` builds the union `str | UnsetType`, so
    annotations and isinstance() checks can name the sentinel directly.
    """
    __slots__ = ()
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = object.__new__(cls)
        return cls._instance

    def __ror__(self, other, /):
        try:
            return other | UnsetType
        except TypeError:
            return NotImplemented

    __or__ = __ror__

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" or [] are preserved as-is; only Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def _immortalize(object):
    """
    Recursively copy container values.

    - Sequence (non-string, non-tuple): new list.
    - Mapping: new dict with processed values.
    - Set: new set.
    - Anything else (tuples included, they are already immutable): as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str | tuple):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set) and not isinstance(object, frozenset):
        return set(map(_immortalize, object))
    else:
        return coalesce(object)


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Container values are copied on every access (see _immortalize).
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    getter.__name__ = getter.__qualname__ = name
    return property(getter)


def freeze(mapping, /):
    """
    Snapshot a str -> str mapping into a read-only view.

    Raises TypeError when a key or a value is not a string; None means "empty".
    """
    if mapping is None:
        return MappingProxyType({})
    if not isinstance(mapping, Mapping):
        raise TypeError("freeze() argument must be a mapping")
    snapshot = {}
    for key, value in mapping.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError("freeze() mapping keys and values must be strings")
        snapshot[key] = value
    return MappingProxyType(snapshot)


def quote(tokens, /):
    """
    Join tokens into one shell-quoted string (used for log lines and reprs only).
    """
    return shlex.join(map(str, tokens))


Unset = UnsetType()
"""
Internal sentinel for "not provided".

Use Unset as a default when None is a valid, user-meaningful value; materialize
with coalesce(value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "mirror",
    "freeze",
    "quote",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
