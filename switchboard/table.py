"""
Switchboard option table compiler.

compile_table(entries) validates an ordered list of option specs and group
markers and returns an immutable OptionTable:

- entries may be Option/Group instances or plain mappings:
    {"names": ["v", "verbose"], "type": "bool", "help": "..."}
    {"name": "count", "type": "positiveInteger", "default": "1"}
    {"group": "Output options"}
- every option's type name is resolved through the registry (UnknownTypeError),
- every alias must be unique across the table (DuplicateOptionError),
- declaration order (groups included) is preserved for help/completion layout.

The compiler is pure and deterministic: the same entries always yield an
equivalent table or the same error, and nothing partial is ever returned.
"""
from collections.abc import Iterable, Mapping

from .faults import DuplicateOptionError
from .registry import lookup
from .specs import Group, Option

_option_keys = frozenset((
    "name",
    "names",
    "type",
    "completion",
    "env",
    "help",
    "help_arg",
    "help_wrap",
    "default",
    "hidden",
))


def _from_mapping(entry, /):
    """
    Internal: build an Option or Group from a plain mapping.

    Raises
    - TypeError: unknown keys, both or neither of 'name'/'names', or group
      mappings carrying extra keys.
    """
    entry = dict(entry)
    if "group" in entry:
        if len(entry) > 1:
            raise TypeError("group entries cannot have other keys (got %s)" % ", ".join(sorted(entry.keys() - {"group"})))
        return Group(entry["group"])

    if unknown := entry.keys() - _option_keys:
        raise TypeError("invalid option keys: %s" % ", ".join(sorted(unknown)))
    if "name" in entry and "names" in entry:
        raise TypeError("option entries cannot have both 'name' and 'names'")

    if "name" in entry:
        names = (entry.pop("name"),)
    elif "names" in entry:
        if isinstance(names := entry.pop("names"), str):
            raise TypeError("option 'names' must be a list of strings")
        names = tuple(names)
    else:
        raise TypeError("option entries must have a 'name' or 'names'")

    return Option(*names, **entry)


class OptionTable:
    """
    Compiled, immutable option table.

    Holds
    - entries: every Option and Group in declaration order.
    - options: the Option entries only, in declaration order.
    - an index from each command-line flag ("-v", "--verbose") to its Option.
    - the OptionType each Option was bound to at compile time.

    Lookups accept bare names ("v"), or flags ("-v", "--verbose").
    """

    def __init__(self, entries, index, types, /):
        self._entries = tuple(entries)
        self._index = dict(index)
        self._types = dict(types)

    @property
    def entries(self):
        return self._entries

    @property
    def options(self):
        return tuple(entry for entry in self._entries if isinstance(entry, Option))

    def lookup(self, alias, /):
        """
        Return the Option answering to alias.

        Raises
        - KeyError: when no option has that name.
        """
        if isinstance(alias, str) and not alias.startswith("-"):
            alias = ("-" if len(alias) == 1 else "--") + alias
        return self._index[alias]

    def typeof(self, option, /):
        """Return the OptionType bound to option at compile time."""
        return self._types[option]

    def __contains__(self, alias):
        try:
            self.lookup(alias)
        except KeyError:
            return False
        return True

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __rich_repr__(self):
        yield "entries", self._entries

    def __repr__(self):
        return "option-table(%s)" % ", ".join(
            "group(%r)" % entry.label if isinstance(entry, Group) else "|".join(entry.flags)
            for entry in self._entries
        )


def compile_table(entries, /):
    """
    Validate and normalize option specs into an OptionTable.

    Parameters
    - entries: iterable of Option | Group | Mapping (see module docstring).

    Raises
    - TypeError / ValueError: malformed entries (see Option and Group).
    - UnknownTypeError: an option names an unregistered type.
    - DuplicateOptionError: an alias is declared twice.
    """
    if isinstance(entries, str | Mapping) or not isinstance(entries, Iterable):
        raise TypeError("compile_table() argument must be an iterable of options and groups")

    table = []
    index = {}
    types = {}

    for entry in entries:
        if isinstance(entry, Mapping):
            entry = _from_mapping(entry)
        if isinstance(entry, Group):
            table.append(entry)
            continue
        if not isinstance(entry, Option):
            raise TypeError("compile_table() entries must be options, groups or mappings (got %r)" % (entry,))

        types[entry] = lookup(entry.type)
        for name, flag in zip(entry.names, entry.flags):
            if flag in index:
                raise DuplicateOptionError(alias=name)
            index[flag] = entry
        table.append(entry)

    return OptionTable(table, index, types)


__all__ = (
    "OptionTable",
    "compile_table",
)
