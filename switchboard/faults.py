"""
Switchboard faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue
  (errors and warnings), grouped by domain so logs and searches stay predictable.
- SwitchboardError / SwitchboardWarning: base types that carry a message plus a
  read-only mapping of structured context, and know how to render themselves
  through rich (`__rich__`) in a friendly, lowercased, actionable way.
- SpecError family: raised while declaring types or compiling option tables.
- ParseError family: raised while scanning tokens; each carries the fault
  `kind`, the offending `token` and its 1-based `position`.

UX goals
- Position-first messages ("unknown option '--bogus' at second position").
- Soft but technical language: short titles, one-sentence bodies, a single hint.

Integration
- The library never prints and never exits. Hosts catch the exception and, if
  they want, hand it to a rich Console: `Console(stderr=True).print(error)`.
- Presentation hooks are read from the host's __main__ module:
  • __styles__: mapping overriding palette entries,
  • __codes__:  mapping FaultCode -> label used instead of the numeric code,
  • __prog__:   program name shown in fault headers.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce, ordinal


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - option parsing errors (1111x)
      • UNKNOWN_OPTION, MISSING_ARGUMENT, UNEXPECTED_ARGUMENT, INVALID_VALUE
    - declaration errors (1121x)
      • UNKNOWN_TYPE, DUPLICATE_TYPE, DUPLICATE_OPTION
    - warnings (12xxx)
      • AMBIGUOUS_ENVIRONMENT
    """
    # --- option parsing errors (11xxx) ---
    UNKNOWN_OPTION              = 11111
    MISSING_ARGUMENT            = 11112
    UNEXPECTED_ARGUMENT         = 11113
    INVALID_VALUE               = 11114

    # --- declaration errors (11xxx) ---
    UNKNOWN_TYPE                = 11211
    DUPLICATE_TYPE              = 11212
    DUPLICATE_OPTION            = 11213

    # --- warnings (12xxx) ---
    AMBIGUOUS_ENVIRONMENT       = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


_palette = {
    "error": {
        "prog-name": "bold #E6E6F0",  # near-white program name
        "code": "bold #00E5FF",  # neon cyan fault code
        "title": "bold #FF4DA6",  # friendly pinky title
        "message": "#C8C8D0",  # soft light gray message
        "hint-arrow": "#9CE19C dim",  # gentle green arrow
        "hint": "italic #9CE19C",  # gentle green hint text
    },
    "warning": {
        "prog-name": "bold #E6E6F0",
        "code": "bold #FFB400",  # amber fault code for warnings
        "title": "bold #FFC2E0",  # softer pinky title for warnings
        "message": "#D6D6DE",
        "hint-arrow": "#B8EFAF dim",
        "hint": "italic #B8EFAF",
    },
}


def _render(fault, kind):
    """
    Build the rich renderable shared by errors and warnings.

    Layout
    - header: "[ prog — code | Title ]"
    - body:   the message, then " → hint" when a hint exists.
    - fancy=True wraps everything in a Panel titled with the header.
    """
    main = __import__("__main__")
    colorful = fault.options.get("colorful", True)
    fancy = fault.options.get("fancy", False)

    styles = defaultdict(str, _palette[kind] | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    prog = text(getattr(main, "__prog__", fault.options.get("prog", "switchboard")), "prog-name")
    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(fault.code.normalize(), "code"),
        " | ",
        text(fault.title.title(), "title"),
        " ]"
    )
    message = text(fault.message, "message")
    renders = [message]
    if hint := fault.options.get("hint"):
        renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if fancy:
        return Panel(Group(*renders), title=header, title_align="left")
    return Group(header, *renders)


class SwitchboardError(Exception):
    """
    Base class of every error raised by switchboard.

    Attributes
    - message: one lowercase sentence describing the problem.
    - options: read-only mapping with the structured context the fault was
      built from (always includes the keyword arguments given to the subclass).
    - code / title: class-level FaultCode and short headline.
    """
    code = Unset
    title = "error"

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, "error")

    def __replace__(self, /, **overrides):
        return type(self)(**{**self.options, **overrides})


class SpecError(SwitchboardError):
    """Raised while declaring option types or compiling an option table."""


class UnknownTypeError(SpecError):
    code = FaultCode.UNKNOWN_TYPE
    title = "unknown option type"

    def __init__(self, /, *, name, hint=Unset, **options):
        self.name = name
        super().__init__(
            "unknown option type %r" % name,
            name=name,
            hint=coalesce(hint, "register the type with switchboard.register() before compiling options"),
            **options
        )


class DuplicateTypeError(SpecError):
    code = FaultCode.DUPLICATE_TYPE
    title = "duplicate option type"

    def __init__(self, /, *, name, hint=Unset, **options):
        self.name = name
        super().__init__(
            "option type %r is already registered" % name,
            name=name,
            hint=coalesce(hint, "pick another name; registered types cannot be replaced"),
            **options
        )


class DuplicateOptionError(SpecError):
    code = FaultCode.DUPLICATE_OPTION
    title = "duplicate option"

    def __init__(self, /, *, alias, hint=Unset, **options):
        self.alias = alias
        super().__init__(
            "option name %r is declared more than once" % alias,
            alias=alias,
            hint=coalesce(hint, "every option name and alias must be unique within a parser"),
            **options
        )


class ParseError(SwitchboardError):
    """
    Raised while scanning tokens; aborts the whole parse call.

    Attributes
    - kind: the FaultCode of the concrete error (same as .code).
    - token: the offending token as seen (e.g. '--bogus', '-x', '$FOO').
    - position: 1-based position of the token in the parsed sequence, or None
      when the value came from the environment or a default.
    """
    title = "parse error"

    def __init__(self, message, /, *, token=None, position=None, **options):
        self.token = token
        self.position = position
        super().__init__(message, token=token, position=position, **options)

    @property
    def kind(self):
        return self.code


class UnknownOptionError(ParseError):
    code = FaultCode.UNKNOWN_OPTION
    title = "unknown option"

    def __init__(self, /, *, token, position=None, hint=Unset, **options):
        if position is None:
            message = "unknown option %r" % token
        else:
            message = "unknown option %r at %s position" % (token, ordinal(position))
        super().__init__(
            message,
            token=token,
            position=position,
            hint=coalesce(hint, "check the spelling or pass '--' before arguments that start with '-'"),
            **options
        )


class MissingArgumentError(ParseError):
    code = FaultCode.MISSING_ARGUMENT
    title = "missing argument"

    def __init__(self, /, *, token, option, position=None, hint=Unset, **options):
        self.option = option
        if position is None:
            message = "option %r requires an argument" % token
        else:
            message = "option %r at %s position requires an argument" % (token, ordinal(position))
        super().__init__(
            message,
            token=token,
            option=option,
            position=position,
            hint=coalesce(hint, "provide a value (for example: %s VALUE)" % token),
            **options
        )


class UnexpectedArgumentError(ParseError):
    code = FaultCode.UNEXPECTED_ARGUMENT
    title = "unexpected argument"

    def __init__(self, /, *, token, option, value, position=None, hint=Unset, **options):
        self.option = option
        self.value = value
        if position is None:
            message = "option %r does not take an argument" % token
        else:
            message = "option %r at %s position does not take an argument" % (token, ordinal(position))
        super().__init__(
            message,
            token=token,
            option=option,
            value=value,
            position=position,
            hint=coalesce(hint, "remove everything from '=' (for example: %s)" % token),
            **options
        )


class InvalidValueError(ParseError):
    """
    A raw value could not be converted by its option type.

    The message depends on where the value came from:
    - argv: position is set,
    - environment: token is '$VARIABLE',
    - default: neither.
    """
    code = FaultCode.INVALID_VALUE
    title = "invalid value"

    def __init__(self, /, *, option, value, token=None, position=None, reason=Unset, hint=Unset, **options):
        self.option = option
        self.value = value
        self.reason = coalesce(reason)
        if position is not None:
            message = "invalid value %r for option %r at %s position" % (value, token, ordinal(position))
        elif isinstance(token, str) and token.startswith("$"):
            message = "invalid value %r for option %r from environment variable %r" % (value, option, token[1:])
        else:
            message = "invalid default value %r for option %r" % (value, option)
        if self.reason:
            message += ": " + self.reason
        super().__init__(
            message,
            option=option,
            value=value,
            token=token,
            position=position,
            reason=reason,
            hint=coalesce(hint, "run with --help to see the expected value for this option"),
            **options
        )


class SwitchboardWarning(UserWarning):
    """
    Base class of switchboard warnings (emitted through warnings.warn).
    """
    code = Unset
    title = "warning"

    def __init__(self, message, /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, "warning")

    def __replace__(self, /, **overrides):
        return type(self)(**{**self.options, **overrides})


class AmbiguousEnvironmentWarning(SwitchboardWarning):
    """
    A presence-only option read an environment value other than '0' or '1'.
    Any such value counts as true, which is rarely what 'false' or 'no' meant.
    """
    code = FaultCode.AMBIGUOUS_ENVIRONMENT
    title = "ambiguous environment value"

    def __init__(self, /, *, variable, value, option, hint=Unset, **options):
        self.variable = variable
        self.value = value
        self.option = option
        super().__init__(
            "environment variable %r=%r for option %r is treated as true" % (variable, value, option),
            variable=variable,
            value=value,
            option=option,
            hint=coalesce(hint, "set %s=1 for true, %s=0 for false" % (variable, variable)),
            **options
        )


__all__ = (
    "FaultCode",
    "SwitchboardError",
    "SpecError",
    "UnknownTypeError",
    "DuplicateTypeError",
    "DuplicateOptionError",
    "ParseError",
    "UnknownOptionError",
    "MissingArgumentError",
    "UnexpectedArgumentError",
    "InvalidValueError",
    "SwitchboardWarning",
    "AmbiguousEnvironmentWarning",
)
