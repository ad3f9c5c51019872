"""
Switchboard argv parser.

Scope
- Parser: compiles an option table once and turns token sequences (plus an
  environment snapshot) into Results, any number of times.
- Results: read-only mapping of result keys to values, with attribute access,
  the full ordered record of parsed arguments (order) and leftover positional
  tokens (args).
- parse(options, tokens, **config): one-shot convenience wrapper.

Token grammar (scanned left to right, positions are 1-based)
- "--"              ends option scanning; every later token is positional.
- "--name[=value]"  long option; a value-taking type reads the attached value
                    or else the next token.
- "-abc"            bundle of short options; the first value-taking option
                    consumes the rest of the token ("-oValue") or, when last
                    in the bundle, the next token.
- "-"               a lone dash is positional.
- anything else     positional; with interspersed=False the first positional
                    ends option scanning.

Fallbacks (after scanning, in table order, for options absent from argv)
- environment variables listed in the option's env, first one present wins;
- then the option default (strings are parsed through the option type);
- then the type default.

Errors abort the call; no partial Results are ever returned.

Example
    >>> parser = Parser([{"names": ["verbose", "v"], "type": "bool"}])
    >>> parser.parse(["-v", "file.txt"], env={}).verbose
    True
"""
import copy
import difflib
import os
import sys
import warnings
from collections import deque, namedtuple
from collections.abc import Iterable, Mapping
from enum import StrEnum

from .completion import bash_completion
from .faults import (
    AmbiguousEnvironmentWarning,
    InvalidValueError,
    MissingArgumentError,
    UnexpectedArgumentError,
    UnknownOptionError,
)
from .formatting import render_help
from .table import OptionTable, compile_table
from .utils import *

# warnings point at the first frame outside this package
_internal = (os.path.dirname(__file__) + os.sep,)


class Provenance(StrEnum):
    """Where a parsed value came from."""
    ARGV = "argv"
    ENVIRONMENT = "env"
    DEFAULT = "default"


ParsedArg = namedtuple("ParsedArg", (
    "name",
    "value",
    "provenance",
))


class Results(Mapping):
    """
    Outcome of one parse call.

    - results["dry_run"] / results.dry_run: value for a result key (missing
      keys raise KeyError / AttributeError; use .get() for optional options).
    - order: every ParsedArg in the order it was established (argv
      occurrences first, then environment/default fallbacks in table order).
    - args: leftover positional tokens.
    """

    def __init__(self, values, order, args, /):
        self._values = dict(values)
        self._order = tuple(order)
        self._args = tuple(args)

    order = mirror("order")
    args = mirror("args")

    def __getitem__(self, key):
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError("results have no option %r" % name) from None

    def __rich_repr__(self):
        yield from self._values.items()
        yield "args", self._args

    def __repr__(self):
        return "results(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def _copy_value(value, /):
    """Internal: fresh copy of a declared value (lists and tuples become lists)."""
    if isinstance(value, list | tuple):
        return list(value)
    return value


class _Session:
    """
    Internal: state of a single parse call.

    Keeping it apart from Parser lets one Parser serve concurrent parse calls.
    """

    def __init__(self, table, tokens, environ, /, *, interspersed, allow_unknown):
        self.table = table
        self.tokens = deque(tokens)
        self.environ = environ
        self.interspersed = interspersed
        self.allow_unknown = allow_unknown
        self.index = 1
        self.values = {}
        self.order = []
        self.args = []
        self.seen = set()

    def convert(self, option, token, value, *, position=None):
        """
        Run the option type's parse function with position-aware faults.

        InvalidValueError raised by the type is re-targeted at (token,
        position); ValueError/TypeError from custom types are wrapped.
        """
        try:
            return self.table.typeof(option).parse(option, token, value)
        except InvalidValueError as error:
            raise copy.replace(error, token=token, position=position) from None
        except (ValueError, TypeError) as error:
            raise InvalidValueError(
                option=option.key,
                value=value,
                token=token,
                position=position,
                reason=str(error),
            ) from error

    def store(self, option, value, provenance):
        optiontype = self.table.typeof(option)
        key = option.key
        if optiontype.array:
            bucket = self.values.setdefault(key, [])
            if optiontype.flatten and isinstance(value, list | tuple):
                bucket.extend(value)
            else:
                bucket.append(value)
        else:
            self.values[key] = value
        self.order.append(ParsedArg(key, value, provenance))

    def unknown(self, token, flag, position):
        """Keep the token as positional when allowed, raise otherwise."""
        if self.allow_unknown:
            self.args.append(token)
            return
        flags = [flag for option in self.table.options for flag in option.flags]
        if suggestions := difflib.get_close_matches(flag, flags, 5):
            hint = "did you mean %r? run with --help to see all options" % suggestions[0]
        else:
            hint = Unset
        raise UnknownOptionError(token=flag, position=position, hint=hint, suggestions=tuple(suggestions))

    def take(self, option, flag, position):
        """Consume the next token as the argument of option."""
        if not self.tokens:
            raise MissingArgumentError(token=flag, option=option.key, position=position)
        self.index += 1
        return self.tokens.popleft()

    def apply(self, option, flag, value, position):
        self.store(option, self.convert(option, flag, value, position=position), Provenance.ARGV)
        self.seen.add(option)

    def long(self, token, position):
        name, equals, value = token.partition("=")
        try:
            option = self.table.lookup(name)
        except KeyError:
            return self.unknown(token, name, position)

        if self.table.typeof(option).takes_arg:
            if not equals:
                value = self.take(option, name, position)
        elif equals:
            raise UnexpectedArgumentError(token=name, option=option.key, value=value, position=position)
        else:
            value = None
        self.apply(option, name, value, position)

    def bundle(self, token, position):
        # resolve the whole bundle first, so an unknown letter leaves nothing applied
        resolved = []
        for offset, letter in enumerate(token[1:], start=2):
            try:
                option = self.table.lookup("-" + letter)
            except KeyError:
                return self.unknown(token, "-" + letter, position)
            resolved.append((option, "-" + letter))
            if self.table.typeof(option).takes_arg:
                remainder = token[offset:]
                break
        else:
            remainder = ""

        for option, flag in resolved:
            if not self.table.typeof(option).takes_arg:
                self.apply(option, flag, None, position)
            elif remainder:
                self.apply(option, flag, remainder, position)
            else:
                self.apply(option, flag, self.take(option, flag, position), position)

    def scan(self):
        while self.tokens:
            token = self.tokens.popleft()
            position = self.index
            self.index += 1

            if token == "--":
                self.args.extend(self.tokens)
                self.tokens.clear()
            elif token.startswith("--"):
                self.long(token, position)
            elif token.startswith("-") and token != "-":
                self.bundle(token, position)
            elif self.interspersed:
                self.args.append(token)
            else:
                self.args.append(token)
                self.args.extend(self.tokens)
                self.tokens.clear()

    def environment(self, option):
        """Return True when one of the option's env variables supplied a value."""
        optiontype = self.table.typeof(option)
        for variable in option.env:
            if (raw := self.environ.get(variable)) is None:
                continue
            token = "$" + variable
            if optiontype.takes_arg:
                value = self.convert(option, token, raw)
            elif not raw:
                continue
            elif raw == "0":
                value = False
            else:
                if raw != "1":
                    warnings.warn(
                        AmbiguousEnvironmentWarning(variable=variable, value=raw, option=option.key),
                        stacklevel=2,
                        skip_file_prefixes=_internal,
                    )
                value = self.convert(option, token, None)
            self.store(option, value, Provenance.ENVIRONMENT)
            return True
        return False

    def items(self, option, values):
        """Parse the string items of an array default; other items are kept."""
        optiontype = self.table.typeof(option)
        bucket = []
        for item in values:
            if not isinstance(item, str):
                bucket.append(item)
                continue
            value = self.convert(option, None, item)
            if optiontype.flatten and isinstance(value, list | tuple):
                bucket.extend(value)
            else:
                bucket.append(value)
        return bucket

    def default(self, option):
        """Return True when the option or its type supplied a default."""
        optiontype = self.table.typeof(option)
        if option.default is not Unset:
            value = option.default
            if isinstance(value, str):
                value = self.convert(option, None, value)
            elif optiontype.array and isinstance(value, list | tuple):
                value = self.items(option, value)
            else:
                value = _copy_value(value)
        elif optiontype.default is not Unset:
            value = _copy_value(optiontype.default)
        else:
            return False

        if optiontype.array and not isinstance(value, list):
            value = [value]
        self.values[option.key] = value
        self.order.append(ParsedArg(option.key, value, Provenance.DEFAULT))
        return True

    def run(self):
        self.scan()
        for option in self.table.options:
            if option not in self.seen and not self.environment(option):
                self.default(option)
        return Results(self.values, self.order, self.args)


class Parser:
    """
    Reusable option parser bound to one compiled option table.

    Parameters
    - options: an OptionTable, or entries accepted by compile_table().
    - env: mapping used as the environment when parse() gets none
      (defaults to a snapshot of os.environ taken at each parse).
    - slice: how many leading sys.argv items to skip when parse() is called
      without tokens (1 skips the program name).
    - interspersed: allow options after positionals (default True).
    - allow_unknown: keep unknown option tokens as positionals instead of
      raising UnknownOptionError.

    Raises
    - TypeError / ValueError for malformed configuration.
    - any compile_table() error when given raw entries.
    """

    def __init__(self, options, /, *, env=Unset, slice=1, interspersed=True, allow_unknown=False):
        if not isinstance(env, Mapping | Unset):
            raise TypeError("parser 'env' must be a mapping of strings")
        if not isinstance(slice, int) or isinstance(slice, bool):
            raise TypeError("parser 'slice' must be an integer")
        elif slice < 0:
            raise ValueError("parser 'slice' cannot be negative")
        if not isinstance(interspersed, bool):
            raise TypeError("parser 'interspersed' must be a bool")
        if not isinstance(allow_unknown, bool):
            raise TypeError("parser 'allow_unknown' must be a bool")

        self._table = options if isinstance(options, OptionTable) else compile_table(options)
        self._env = env
        self._slice = slice
        self._interspersed = interspersed
        self._allow_unknown = allow_unknown

    table = mirror("table")
    interspersed = mirror("interspersed")
    allow_unknown = mirror("allow_unknown")

    def parse(self, tokens=Unset, /, *, env=Unset):
        """
        Parse tokens (default: sys.argv[slice:]) into Results.

        Raises
        - UnknownOptionError, MissingArgumentError, UnexpectedArgumentError,
          InvalidValueError: the first problem found; nothing is returned.
        """
        if tokens is Unset:
            tokens = sys.argv[self._slice:]
        elif isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("parse() tokens must be an iterable of strings")
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() tokens must be an iterable of strings")

        environ = coalesce(env, self._env)
        if environ is Unset:
            environ = dict(os.environ)
        elif not isinstance(environ, Mapping):
            raise TypeError("parse() 'env' must be a mapping of strings")

        return _Session(
            self._table,
            tokens,
            environ,
            interspersed=self._interspersed,
            allow_unknown=self._allow_unknown,
        ).run()

    def help(self, **config):
        """Render help text for this parser's options (see render_help)."""
        return render_help(self._table, **config)

    def bash_completion(self, **config):
        """Render a Bash completion script for this parser (see bash_completion)."""
        return bash_completion(self._table, **config)

    def __rich_repr__(self):
        yield "table", self._table
        yield "interspersed", self._interspersed, True
        yield "allow_unknown", self._allow_unknown, False

    def __repr__(self):
        return "parser(%r)" % self._table


def parse(options, tokens=Unset, /, **config):
    """
    Compile options and parse tokens in one call.

    config accepts the Parser keywords (env, slice, interspersed,
    allow_unknown).
    """
    return Parser(options, **config).parse(tokens)


__all__ = (
    "Provenance",
    "ParsedArg",
    "Results",
    "Parser",
    "parse",
)
