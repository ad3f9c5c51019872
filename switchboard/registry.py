"""
Switchboard option type registry.

What this module provides
- A process-wide mapping from type name to OptionType, seeded with built-ins:
  bool, string, number, integer, positiveInteger, date, and their array
  variants arrayOfBool, arrayOfString, arrayOfNumber, arrayOfInteger,
  arrayOfPositiveInteger, arrayOfDate.
- register(optiontype): add a custom type (DuplicateTypeError on name clash).
- lookup(name): fetch a type (UnknownTypeError when missing).
- registered(): names in registration order.
- array_of(optiontype): derive the accumulating array variant of a type.

Usage constraint
- The registry is not locked. Register custom types once, during program
  initialization, before any parser is compiled or any parse runs; lookups
  from concurrent parses are safe only while no registration is in progress.

Value conventions
- number: int for integer literals, float otherwise ("1e3" -> 1000.0).
- date: epoch seconds or ISO-8601 "YYYY-MM-DD[THH:MM:SS[.fff][Z]]"; always an
  aware datetime in UTC (values without "Z" are read as UTC too).
- bool: True when present on the command line; explicit raw values (option
  defaults given as strings) accept 1/true/yes/on and 0/false/no/off.

Example
    >>> def parse_csv(option, token, value):
    ...     return [item for item in value.split(",") if item]
    >>> register(OptionType("arrayOfCommaSepString", parse_csv, array=True, flatten=True))
"""
import datetime
import math
import re

from .faults import DuplicateTypeError, InvalidValueError, UnknownTypeError
from .specs import OptionType
from .utils import *

_registry = {}


def _parse_bool(option, token, value):
    if value is None:
        return True
    match value.strip().lower():
        case "1" | "true" | "yes" | "on":
            return True
        case "0" | "false" | "no" | "off":
            return False
    raise InvalidValueError(option=option.key, value=value, token=token, reason="not a boolean")


def _parse_string(option, token, value):
    return value


def _parse_number(option, token, value):
    if re.fullmatch(r"\s*[+-]?[0-9]+\s*", value, re.ASCII):
        return int(value)
    if "_" in value or not value.isascii():
        raise InvalidValueError(option=option.key, value=value, token=token, reason="not a number")
    try:
        number = float(value)
    except ValueError:
        raise InvalidValueError(option=option.key, value=value, token=token, reason="not a number") from None
    if math.isnan(number):
        raise InvalidValueError(option=option.key, value=value, token=token, reason="not a number")
    return number


def _parse_integer(option, token, value):
    if not re.fullmatch(r"[+-]?[0-9]+", value):
        raise InvalidValueError(option=option.key, value=value, token=token, reason="not an integer")
    return int(value)


def _parse_positive_integer(option, token, value):
    if not re.fullmatch(r"[0-9]+", value) or not int(value):
        raise InvalidValueError(option=option.key, value=value, token=token, reason="not a positive integer")
    return int(value)


_iso_date = re.compile(
    r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(T(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})(\.(?P<fraction>\d+))?Z?)?",
    re.IGNORECASE | re.ASCII,
)


def _parse_date(option, token, value):
    if re.fullmatch(r"-?(0|[1-9][0-9]*)", value):
        try:
            return datetime.datetime.fromtimestamp(int(value), tz=datetime.UTC)
        except (OverflowError, OSError, ValueError):
            raise InvalidValueError(option=option.key, value=value, token=token, reason="epoch seconds out of range") from None

    if not (match := _iso_date.fullmatch(value)):
        raise InvalidValueError(
            option=option.key,
            value=value,
            token=token,
            reason="not epoch seconds or an ISO-8601 date (YYYY-MM-DD[THH:MM:SS[.sss][Z]])"
        )

    fields = {name: int(match[name] or 0) for name in ("year", "month", "day", "hour", "minute", "second")}
    # fraction digits beyond microseconds are truncated
    microsecond = int((match["fraction"] or "").ljust(6, "0")[:6])
    try:
        return datetime.datetime(**fields, microsecond=microsecond, tzinfo=datetime.UTC)
    except ValueError as error:
        raise InvalidValueError(option=option.key, value=value, token=token, reason=str(error)) from None


def register(optiontype, /):
    """
    Add an OptionType to the process-wide registry.

    Raises
    - TypeError: when the argument is not an OptionType.
    - DuplicateTypeError: when a type with the same name is registered.
    """
    if not isinstance(optiontype, OptionType):
        raise TypeError("register() argument must be an OptionType")
    if optiontype.name in _registry:
        raise DuplicateTypeError(name=optiontype.name)
    _registry[optiontype.name] = optiontype
    return optiontype


def lookup(name, /):
    """
    Return the OptionType registered under name.

    Raises
    - UnknownTypeError: when no such type exists.
    """
    try:
        return _registry[name]
    except (KeyError, TypeError):
        raise UnknownTypeError(name=name) from None


def registered():
    """Names of all registered types, in registration order."""
    return tuple(_registry)


def array_of(optiontype, /, name=Unset, *, flatten=False):
    """
    Derive the array variant of a scalar OptionType.

    The result shares parse/help_arg/completion/takes_arg with the source type,
    accumulates one value per occurrence and is named "arrayOf<Name>" unless a
    name is given. It is not registered automatically.
    """
    if not isinstance(optiontype, OptionType):
        raise TypeError("array_of() argument must be an OptionType")
    if optiontype.array:
        raise ValueError("array_of() argument must be a scalar OptionType")
    return OptionType(
        coalesce(name, "arrayOf" + optiontype.name[:1].upper() + optiontype.name[1:]),
        optiontype.parse,
        takes_arg=optiontype.takes_arg,
        array=True,
        flatten=flatten,
        help_arg=Unset if optiontype.help_arg is None else optiontype.help_arg,
        completion=Unset if optiontype.completion is None else optiontype.completion,
    )


for _scalar in (
    OptionType("bool", _parse_bool, takes_arg=False, completion="none"),
    OptionType("string", _parse_string),
    OptionType("number", _parse_number, help_arg="NUM", completion="none"),
    OptionType("integer", _parse_integer, help_arg="INT", completion="none"),
    OptionType("positiveInteger", _parse_positive_integer, help_arg="INT", completion="none"),
    OptionType("date", _parse_date, help_arg="DATE", completion="none"),
):
    register(_scalar)
    register(array_of(_scalar))

del _scalar


__all__ = (
    "register",
    "lookup",
    "registered",
    "array_of",
)
