"""
Flag maps and their validation.

Scope
- flagmap(): build the per-invocation, read-only Option -> str mapping from
  caller input, resolving flag names through the catalog and encoding values.
- validate(): reject flags an action does not accept and values that do not fit
  the flag's kind, before any process is constructed.

Rules enforced by validate()
- every key must belong to the action's accepted set;
- BOOLEAN: an empty value is allowed (presence means true); anything else must
  be "true" or "false", case-insensitively;
- INTEGER: the value is required and must be a base-10 integer literal;
- STRING: any value.

validate() has no side effects and is idempotent; the flag map is never mutated.
"""
import re
from collections.abc import Mapping
from types import MappingProxyType

from .faults import FaultCode, InvalidFlagError
from .options import Kind, Option

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _encode(option, value, /):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    raise TypeError(f"value for {option.long_form} must be a string, an integer or a boolean")


def flagmap(mapping=None, /):
    """
    Build a read-only flag map ordered by catalog declaration.

    Keys may be Option members or flag names ("server", "--server", "-s").
    Values may be strings, integers, booleans or None (stored as "").

    Raises InvalidFlagError for names missing from the catalog and for two keys
    naming the same flag.
    """
    if mapping is None:
        return MappingProxyType({})
    if not isinstance(mapping, Mapping):
        raise TypeError("flagmap() argument must be a mapping")

    entries = {}
    for key, value in mapping.items():
        try:
            option = Option.lookup(key)
        except (KeyError, TypeError):
            raise InvalidFlagError(
                f"the {key} flag is not a known flag.",
                code=FaultCode.UNKNOWN_FLAG,
                flag=str(key),
                value=value,
            ) from None
        if option in entries:
            raise InvalidFlagError(
                f"the {option.long_form} flag was given more than once.",
                flag=option.long_form,
                value=value,
            )
        entries[option] = _encode(option, value)

    return MappingProxyType(dict(sorted(entries.items(), key=lambda item: item[0].index)))


def validate(flags, accepted, /, *, action=None):
    """
    Check client-provided flags against an action's accepted set.

    Parameters
    - flags: mapping of Option to string value (see flagmap()).
    - accepted: iterable of the Options the action recognises.
    - action: optional action name used in messages.

    Raises
    - InvalidFlagError carrying the offending flag's long form and value.
    """
    accepted = frozenset(accepted)
    command = action or "requested"

    for option, value in flags.items():
        if not isinstance(option, Option) or option not in accepted:
            flag = option.long_form if isinstance(option, Option) else str(option)
            raise InvalidFlagError(
                f"the {flag} flag is not recognised by the {command} command.",
                code=FaultCode.UNKNOWN_FLAG,
                flag=flag,
                value=value,
            )

        value = "" if value is None else value
        if not isinstance(value, str):
            raise InvalidFlagError(
                f"the value {value!r} for flag {option.long_form} is not a string.",
                flag=option.long_form,
                value=value,
            )

        match option.kind:
            case Kind.BOOLEAN:
                if value and value.lower() not in ("true", "false"):
                    raise InvalidFlagError(
                        f"the value {value} for flag {option.long_form} is invalid.",
                        flag=option.long_form,
                        value=value,
                        hint="boolean flags take 'true', 'false' or no value",
                    )
            case Kind.INTEGER:
                if not value:
                    raise InvalidFlagError(
                        f"flag {option.long_form} must have a value.",
                        code=FaultCode.MISSING_FLAG_VALUE,
                        flag=option.long_form,
                        value=value,
                    )
                if not _INTEGER.fullmatch(value):
                    raise InvalidFlagError(
                        f"the value {value} for flag {option.long_form} is invalid.",
                        flag=option.long_form,
                        value=value,
                        hint="integer flags take a base-10 number",
                    )


__all__ = (
    "flagmap",
    "validate",
)
