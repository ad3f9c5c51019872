r"""
Switchboard specifications: option types, option specs and group markers.

Overview
- Specs
  • OptionType: a named value type (how a raw token becomes a value, whether it
    consumes a token, whether occurrences accumulate into an array).
  • Option: one recognized option with one or more names (e.g. "v", "verbose"),
    bound by name to an OptionType at compile time.
  • Group: a heading interleaved among options; only affects help layout.

- Introspection & representation
  • SpecType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields declared in __introspectable__ as read-only properties.

Metadata (sanitized on construction)
- OptionType
  • name: non-empty identifier-like string (letters/digits, no spaces).
  • parse: callable (option, token, value) -> value.
  • takes_arg / array / flatten: bools (flatten requires array).
  • default: Unset | value (type-level default).
  • help_arg: placeholder shown in help (e.g. "INT").
  • completion: None | str (bash completion hint).
- Option
  • names: one or more names matching r"[^\W_](-?[^\W_]+)*". Single-character
    names are short aliases ("-v"), longer names long aliases ("--verbose").
    The first name is canonical; the result key replaces "-" with "_".
  • type: name of a registered OptionType (resolved by the table compiler).
  • env: name or ordered names of fallback environment variables.
  • help / help_arg / help_wrap / completion / default / hidden.
- Group
  • label: str (may be empty for a plain blank separator).

Validation highlights
- Wrong types raise TypeError; wrong values (empty names, bad spelling,
  duplicates) raise ValueError. Nothing is looked up in the registry here.

Examples
    >>> Option("v", "verbose", type="bool", help="More output.").flags
    ('-v', '--verbose')
    >>> Option("dry-run", type="bool").key
    'dry_run'
"""
import builtins
import datetime
import functools
import operator
import re
from collections.abc import Iterable

from .utils import *


class SpecType(type):
    """
    Metaclass that turns specs into read-only, introspectable records.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and pretty printers.

    Conventions
    - __typename__ is derived from the class name (camel-case split with
      hyphens) and used in messages.
    - __displayable__ (if set) narrows which properties are shown by
      __rich_repr__; otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - option(names=('v', 'verbose'), type='bool', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


_value_types = (bool, str, int, float, datetime.datetime)


def _check_value(cls, field, value, /):
    """
    Internal: validate that a default belongs to the closed set of value shapes
    (bool, str, int, float, datetime, or a list/tuple of those).
    """
    if isinstance(value, _value_types):
        return
    if isinstance(value, list | tuple) and all(isinstance(item, _value_types) for item in value):
        return
    raise TypeError(
        f"{cls.__typename__} {field!r} must be a bool, str, int, float, datetime or a list of those"
    )


def _sanitize_text(cls, metadata, field, /, *, empty=False):
    """
    Internal: normalize an optional text field (None when unset).

    Raises
    - TypeError when the value is neither a string nor Unset.
    - ValueError when the string is empty after trimming (unless empty=True).
    """
    if not isinstance(text := metadata[field], str | Unset):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    if isinstance(text, str):
        text = text.strip()
        if not text and not empty:
            raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    metadata[field] = coalesce(text)


def _check_completion(cls, completion, /):
    """
    Internal: completion hints end up in Bash function names (complete_<hint>),
    so only word characters are accepted.
    """
    if completion is not None and not re.fullmatch(r"\w+", completion, re.ASCII):
        raise ValueError(f"{cls.__typename__} 'completion' must contain only letters, digits and underscores (got {completion!r})")


def _sanitize_type_metadata(cls, metadata, /):
    """
    Internal: validate and normalize OptionType metadata.

    Responsibilities
    - name: identifier-like, non-empty (used as the registry key).
    - parse: callable with the (option, token, value) contract.
    - flatten only makes sense for array types.
    - default (when given) must be a valid value shape.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not re.fullmatch(r"[^\W\d]\w*", name):
        raise ValueError(f"{cls.__typename__} 'name' must be an identifier-like string (got {name!r})")

    if not callable(metadata["parse"]):
        raise TypeError(f"{cls.__typename__} 'parse' must be callable")

    if metadata["flatten"] and not metadata["array"]:
        raise ValueError(f"{cls.__typename__} 'flatten' requires 'array'")

    if metadata["default"] is not Unset:
        _check_value(cls, "default", metadata["default"])

    _sanitize_text(cls, metadata, "help_arg")
    _sanitize_text(cls, metadata, "completion")
    _check_completion(cls, metadata["completion"])


def _sanitize_option_metadata(cls, metadata, /):
    r"""
    Internal: validate and normalize metadata for Option specs.

    Responsibilities
    - names: required; each must match r"[^\W_](-?[^\W_]+)*" (no leading dash,
      no underscores, single hyphens between segments; unicode allowed).
      Duplicates are rejected; declaration order is preserved (first is canonical).
    - type: non-empty string (resolution happens in the table compiler).
    - env: a single name or an iterable of names; normalized to a tuple.
    - help/help_arg/completion: optional non-empty strings (None when unset).
    - default: Unset or a valid value shape.
    """
    names = []
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"[^\W_](-?[^\W_]+)*", name):
            raise ValueError(
                f"{cls.__typename__} name {name!r} is invalid (use bare names such as 'v' or 'dry-run', without dashes in front)"
            )
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)

    metadata["names"] = names

    if not isinstance(type := metadata["type"], str):
        raise TypeError(f"{cls.__typename__} 'type' must be a type name string")
    elif not (type := type.strip()):
        raise ValueError(f"{cls.__typename__} 'type' cannot be empty")
    metadata["type"] = type

    env = metadata["env"]
    if isinstance(env, str):
        env = (env,)
    if not isinstance(env, Iterable):
        raise TypeError(f"{cls.__typename__} 'env' must be a string or an iterable of strings")
    variables = []
    for variable in env:
        if not isinstance(variable, str):
            raise TypeError(f"{cls.__typename__} 'env' must contain only strings")
        elif not variable or "=" in variable or variable != variable.strip():
            raise ValueError(f"{cls.__typename__} 'env' contains an invalid variable name {variable!r}")
        elif variable in variables:
            raise ValueError(f"{cls.__typename__} 'env' cannot contain duplicates")
        variables.append(variable)
    metadata["env"] = tuple(variables)

    _sanitize_text(cls, metadata, "help")
    _sanitize_text(cls, metadata, "help_arg")
    _sanitize_text(cls, metadata, "completion")
    _check_completion(cls, metadata["completion"])

    if metadata["default"] is not Unset:
        _check_value(cls, "default", metadata["default"])


class OptionType(metaclass=SpecType):
    """
    Named value type used by options (the "type descriptor").

    An OptionType tells the parser whether an option consumes a token, how a
    raw string becomes a value, and whether repeated occurrences accumulate.

    Parse contract
    - parse(option, token, value) -> value
      • option: the Option being filled,
      • token: the option string as seen ("--count", "-c", "$COUNT", or None
        for a default),
      • value: the raw string (None for presence-only types given on argv).
    - failures raise InvalidValueError; ValueError/TypeError raised by custom
      parse functions are wrapped into InvalidValueError by the parser.

    Highlights
    - array: every occurrence appends one value to a list.
    - flatten: a parsed value that is itself a list is spliced in instead of
      appended as a nested list.
    - default: type-level default applied when an option has no value and no
      default of its own.

    Instances are immutable once constructed; register them with
    switchboard.register() to make them available by name.
    """

    __introspectable__ = (
        "name",
        "takes_arg",
        "parse",
        "array",
        "flatten",
        "default",
        "help_arg",
        "completion",
    )

    __displayable__ = (
        "name",
        "takes_arg",
        "array",
        "flatten",
        "default",
        "help_arg",
        "completion",
    )

    def __new__(
            cls,
            name,
            /,
            parse,
            *,
            takes_arg=True,
            array=False,
            flatten=False,
            default=Unset,
            help_arg="ARG",
            completion=Unset,
    ):
        metadata = {
            "name": name,
            "parse": parse,
            "takes_arg": bool(takes_arg),
            "array": bool(array),
            "flatten": bool(flatten),
            "default": default,
            "help_arg": help_arg,
            "completion": completion,
        }
        _sanitize_type_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class Option(metaclass=SpecType):
    """
    Declarative description of one recognized option.

    Parameters
    - names: one or more bare names; the first is canonical. "v" is matched as
      "-v", "verbose" as "--verbose".
    - type: registered OptionType name ("bool", "string", "arrayOfInteger", ...).
    - completion: bash completion hint overriding the type's.
    - env: environment variable name(s) used as fallbacks, first set wins.
    - help: help text; help_arg: placeholder for the value in help output.
    - help_wrap: False keeps the help text's own line breaks.
    - default: value used when neither argv nor env provide one; strings are
      parsed through the option type, as are the string items of a list
      default for an array type.
    - hidden: omit from help output and from offered completions.

    Derived
    - key: result key (canonical name with "-" replaced by "_").
    - flags: the names as they appear on the command line ("-v", "--verbose").
    """

    __introspectable__ = (
        "names",
        "type",
        "completion",
        "env",
        "help",
        "help_arg",
        "help_wrap",
        "default",
        "hidden",
    )

    def __new__(
            cls,
            *names,
            type="string",
            completion=Unset,
            env=(),
            help=Unset,
            help_arg=Unset,
            help_wrap=True,
            default=Unset,
            hidden=False,
    ):
        metadata = {
            "names": names,
            "type": type,
            "completion": completion,
            "env": env,
            "help": help,
            "help_arg": help_arg,
            "help_wrap": builtins.bool(help_wrap),
            "default": default,
            "hidden": builtins.bool(hidden),
        }
        _sanitize_option_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def name(self):
        """Canonical name (first of names)."""
        return self._names[0]

    @property
    def key(self):
        """Result key: canonical name with hyphens turned into underscores."""
        return self._names[0].replace("-", "_")

    @property
    def flags(self):
        """Names as typed on the command line, in declaration order."""
        return tuple(("-" if len(name) == 1 else "--") + name for name in self._names)


class Group(metaclass=SpecType):
    """
    Heading interleaved among options.

    Groups only affect help layout: the label renders as a heading line (an
    empty label renders as a blank line). Parsing and completion ignore them.
    """

    __introspectable__ = ("label",)

    def __new__(cls, label="", /):
        if not isinstance(label, str):
            raise TypeError(f"{cls.__typename__} 'label' must be a string")
        self = super().__new__(cls)
        self._label = label.strip()
        return self


__all__ = (
    # Classes (specifications)
    "OptionType",
    "Option",
    "Group",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del SpecType
