"""
Argument translation: typed values to command-line tokens.

Every function here is pure and total: it takes a bare flag name (no leading
dashes) plus a value and returns a new list of tokens, empty when the value is
absent. Collections are emitted in input order.

Shapes
- string(name, value)            → ["--name", value]       | []
- string_with_eq(name, value)    → ["--name=value"]        | []
- repeated(name, values)         → ["--name", v1, "--name", v2, ...]
- repeated_with_eq(name, values) → ["--name=v1", "--name=v2", ...]
- integer(name, value)           → ["--name", "42"]        | []
- integer_with_eq(name, value)   → ["--name=42"]           | []
- bool(name, value)              → ["--name"] if true      | []
- bool_with_no(name, value)      → ["--name"] / ["--no-name"] / [] (absent)
- path(name, value)              → ["--name", str(path)]   | []
- key_values(mapping)            → ["k1=v1,k2=v2"]         | []

"Absent" is None everywhere; empty strings and empty paths count as absent for
the string and path shapes.

Dialects
- translate(option, value, style=...) turns one flag-map entry (catalog member
  plus its string-encoded value) into tokens, following the dialect of the tool
  being driven:
  • Style.SPACED   (gcloud)      "--name value", booleans as --name / --no-name
  • Style.PRESENCE (dev server)  "--name value", booleans present only when true
  • Style.EQUALS   (appcfg)      "--name=value", booleans present only when true
"""
import enum
import os

from .options import Kind


class Style(enum.Enum):
    SPACED = "spaced"
    PRESENCE = "presence"
    EQUALS = "equals"


def string(name, value, /):
    if value:
        return ["--" + name, value]
    return []


def string_with_eq(name, value, /):
    if value:
        return ["--" + name + "=" + value]
    return []


def repeated(name, values, /):
    result = []
    for value in values or ():
        result.extend(string(name, value))
    return result


def repeated_with_eq(name, values, /):
    result = []
    for value in values or ():
        result.extend(string_with_eq(name, value))
    return result


def integer(name, value, /):
    if value is not None:
        return ["--" + name, str(int(value))]
    return []


def integer_with_eq(name, value, /):
    if value is not None:
        return ["--" + name + "=" + str(int(value))]
    return []


def bool(name, value, /):
    if value is True:
        return ["--" + name]
    return []


def bool_with_no(name, value, /):
    if value is None:
        return []
    if value:
        return ["--" + name]
    return ["--no-" + name]


def path(name, value, /):
    if value is not None and (value := os.fspath(value)):
        return ["--" + name, value]
    return []


def key_values(mapping, /):
    if mapping:
        return [",".join(f"{key}={value}" for key, value in mapping.items())]
    return []


def _truth(value, /):
    # validate() already restricted booleans to "", "true" or "false"
    return value.lower() != "false"


def translate(option, value, /, *, style=Style.SPACED):
    """
    Translate one flag-map entry into tokens for the given dialect.

    Integer values are expected to be validated already; a non-integer string
    raises ValueError.
    """
    if not isinstance(style, Style):
        raise TypeError("translate() 'style' must be a Style")

    match option.kind:
        case Kind.STRING:
            if style is Style.EQUALS:
                return string_with_eq(option.long, value)
            return string(option.long, value)
        case Kind.INTEGER:
            number = int(value, 10) if value else None
            if style is Style.EQUALS:
                return integer_with_eq(option.long, number)
            return integer(option.long, number)
        case Kind.BOOLEAN:
            truth = _truth(value or "")
            if style is Style.SPACED:
                return bool_with_no(option.long, truth)
            return bool(option.long, truth)
    raise TypeError(f"unsupported flag kind {option.kind!r}")


def flatten(flags, /, *, style=Style.SPACED):
    """
    Translate a whole flag map, preserving its order.
    """
    tokens = []
    for option, value in flags.items():
        tokens.extend(translate(option, value, style=style))
    return tokens


__all__ = (
    "Style",
    "string",
    "string_with_eq",
    "repeated",
    "repeated_with_eq",
    "integer",
    "integer_with_eq",
    "bool",
    "bool_with_no",
    "path",
    "key_values",
    "translate",
    "flatten",
)
