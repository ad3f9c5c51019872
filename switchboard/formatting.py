"""
Switchboard help formatting.

Overview
- render_help(table, **config) -> str
  • one entry per visible option: its flags, the value placeholder, then the
    help text starting at a shared help column;
  • group headings (or blank separators) exactly where they were declared;
  • optional "Environment: ..." and "Default: ..." fragments.
- synopsis(option) -> str
  • usage fragment such as "[ -f FILE | --file=FILE ]".

Layout rules
- indent / heading_indent: an int is that many spaces, a str is used as is;
  heading_indent defaults to half of indent.
- name_sort="length" lists flags shortest first; "none" keeps declaration order.
- The help column is help_col when given, otherwise the widest name column
  plus two, clamped to [min_help_col, max_help_col]. Names running past it push
  the help text to the next line.
- Help text is wrapped on whitespace to max_col (long words are never broken)
  unless help_wrap is off globally or for the option; unwrapped text keeps its
  own line breaks.
- Output lines carry no trailing spaces and the text ends with a newline.
"""
import textwrap

from .registry import lookup
from .specs import Group
from .utils import *

_name_sorts = ("length", "none")


def _spaces(field, value, /):
    """Internal: normalize an indent setting (int -> spaces, str -> literal)."""
    if isinstance(value, bool) or not isinstance(value, int | str):
        raise TypeError("help %r must be an int or a str" % field)
    if isinstance(value, int):
        if value < 0:
            raise ValueError("help %r cannot be negative" % field)
        return " " * value
    return value


def _column(field, value, /):
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError("help %r must be an integer" % field)
    if value < 0:
        raise ValueError("help %r cannot be negative" % field)
    return value


def _placeholder(option, optiontype, /):
    return option.help_arg or optiontype.help_arg or "ARG"


def _names(option, optiontype, name_sort, /):
    """Flags joined by ', ' with the value placeholder attached to the last one."""
    flags = list(option.flags)
    if name_sort == "length":
        flags.sort(key=len)
    names = ", ".join(flags)
    if optiontype.takes_arg:
        separator = "=" if flags[-1].startswith("--") else " "
        names += separator + _placeholder(option, optiontype)
    return names


def _show(value, /):
    if isinstance(value, list | tuple):
        return ", ".join(map(_show, value))
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return repr(value)


def _description(option, optiontype, /, *, include_env, include_default):
    """Help text for one option, with the optional env/default fragments."""
    fragments = []
    if option.help:
        fragments.append(option.help)

    if include_env and option.env:
        value = _placeholder(option, optiontype) if optiontype.takes_arg else "1"
        fragments.append("Environment: %s." % ", ".join("%s=%s" % (variable, value) for variable in option.env))

    if include_default:
        default = option.default if option.default is not Unset else optiontype.default
        if default is not Unset:
            fragments.append("Default: %s." % _show(default))

    for index, fragment in enumerate(fragments[:-1]):
        if not fragment.rstrip().endswith((".", "!", "?", ":")):
            fragments[index] = fragment.rstrip() + "."
    return " ".join(fragments)


def render_help(
        table,
        /,
        *,
        indent=4,
        heading_indent=Unset,
        name_sort="length",
        max_col=80,
        help_col=Unset,
        min_help_col=20,
        max_help_col=40,
        help_wrap=True,
        include_env=False,
        include_default=False,
):
    """
    Render the option table as plain help text.

    Hidden options are omitted. See the module docstring for layout rules.

    Raises
    - TypeError / ValueError for malformed settings.
    """
    indent = _spaces("indent", indent)
    if heading_indent is Unset:
        heading_indent = " " * (len(indent) // 2)
    else:
        heading_indent = _spaces("heading_indent", heading_indent)

    if name_sort not in _name_sorts:
        raise ValueError("help 'name_sort' must be one of %s (got %r)" % (", ".join(map(repr, _name_sorts)), name_sort))

    max_col = _column("max_col", max_col)
    min_help_col = _column("min_help_col", min_help_col)
    max_help_col = _column("max_help_col", max_help_col)
    if min_help_col > max_help_col:
        raise ValueError("help 'min_help_col' cannot be greater than 'max_help_col'")

    entries = []
    for entry in table:
        if isinstance(entry, Group):
            entries.append(entry)
        elif not entry.hidden:
            optiontype = table.typeof(entry)
            entries.append((entry, indent + _names(entry, optiontype, name_sort), _description(
                entry,
                optiontype,
                include_env=include_env,
                include_default=include_default,
            )))

    if help_col is Unset:
        widest = max((len(entry[1]) for entry in entries if isinstance(entry, tuple)), default=0)
        help_col = min(max(widest + 2, min_help_col), max_help_col)
    else:
        help_col = _column("help_col", help_col)

    lines = []
    for entry in entries:
        if isinstance(entry, Group):
            if entry.label:
                if lines:
                    lines.append("")
                lines.append(heading_indent + entry.label + ":")
            else:
                lines.append("")
            continue

        option, names, description = entry
        if not description:
            lines.append(names)
            continue

        if help_wrap and option.help_wrap:
            body = textwrap.wrap(
                description,
                width=max(max_col - help_col, 1),
                break_long_words=False,
                break_on_hyphens=False,
            )
        else:
            body = description.splitlines()

        if len(names) <= help_col - 2:
            lines.append(names.ljust(help_col) + body[0])
            body = body[1:]
        else:
            lines.append(names)
        lines.extend(" " * help_col + line if line else "" for line in body)

    if not lines:
        return ""
    return "\n".join(line.rstrip() for line in lines) + "\n"


def synopsis(option, /):
    """
    Usage fragment for one option.

    Examples
    - "[ -v | --verbose ]" for a bool option,
    - "[ -f FILE | --file=FILE ]" for a value-taking one.
    """
    optiontype = lookup(option.type)
    if not optiontype.takes_arg:
        return "[ %s ]" % " | ".join(option.flags)
    placeholder = _placeholder(option, optiontype)
    return "[ %s ]" % " | ".join(
        flag + ("=" if flag.startswith("--") else " ") + placeholder for flag in option.flags
    )


__all__ = (
    "render_help",
    "synopsis",
)
