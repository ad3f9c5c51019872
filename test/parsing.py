"""
Parsing module behavioral tests (tokens, fallbacks, faults, results).

Scope
- Validate token scanning: long/short forms, bundles, attached values, '--',
  lone '-', interleaving policy and unknown-token policy.
- Validate accumulation (arrays, flattening) and last-wins scalars.
- Validate environment and default fallbacks with their provenance.
- Validate position-aware faults and the Results surface.

Conventions
- Test method names follow CamelCase per project convention.
- Every parse passes an explicit env mapping unless the test is about os.environ.
"""

from __future__ import annotations

import datetime
import os
import sys
import unittest
from unittest import TestCase, mock

from switchboard import (
    OptionType,
    Parser,
    ParsedArg,
    Provenance,
    Results,
    parse,
    register,
    registered,
)
from switchboard.faults import (
    AmbiguousEnvironmentWarning,
    FaultCode,
    InvalidValueError,
    MissingArgumentError,
    UnexpectedArgumentError,
    UnknownOptionError,
)


def _split(option, token, value):
    return [item for item in value.split(",") if item]


def _strict(option, token, value):
    if value != "ok":
        raise ValueError("only 'ok' is accepted")
    return value


for _type in (
    OptionType("arrayOfCommaSepString", _split, array=True, flatten=True),
    OptionType("arrayOfCommaSepList", _split, array=True),
    OptionType("strictWord", _strict),
):
    if _type.name not in registered():
        register(_type)


OPTIONS = [
    {"names": ["verbose", "v"], "type": "bool", "help": "More output."},
    {"names": ["all", "a"], "type": "bool"},
    {"names": ["brief", "b"], "type": "bool"},
    {"names": ["output", "o"], "type": "string", "help_arg": "FILE"},
    {"names": ["include", "I"], "type": "arrayOfString"},
    {"name": "count", "type": "positiveInteger", "default": "1"},
    {"name": "dry-run", "type": "bool"},
]


class TestScanning(TestCase):
    """Behavioral tests for token scanning."""

    def setUp(self):
        self.parser = Parser(OPTIONS)

    def testShortBoolIsTrueFromArgv(self):
        results = self.parser.parse(["-v"], env={})
        self.assertIs(results.verbose, True)
        self.assertIn(ParsedArg("verbose", True, Provenance.ARGV), results.order)

    def testLongBoolIsTrueFromArgv(self):
        results = self.parser.parse(["--verbose"], env={})
        self.assertIs(results["verbose"], True)

    def testLongOptionSpacedValue(self):
        results = self.parser.parse(["--output", "out.txt"], env={})
        self.assertEqual(results.output, "out.txt")

    def testLongOptionAttachedValue(self):
        results = self.parser.parse(["--output=out.txt"], env={})
        self.assertEqual(results.output, "out.txt")

    def testLongOptionAttachedEmptyValue(self):
        results = self.parser.parse(["--output="], env={})
        self.assertEqual(results.output, "")

    def testShortOptionAttachedValue(self):
        results = self.parser.parse(["-oout.txt"], env={})
        self.assertEqual(results.output, "out.txt")

    def testShortBundle(self):
        results = self.parser.parse(["-vab"], env={})
        self.assertTrue(results.verbose)
        self.assertTrue(results.all)
        self.assertTrue(results.brief)

    def testShortBundleValueTakesRemainder(self):
        results = self.parser.parse(["-abofoo"], env={})
        self.assertTrue(results.all)
        self.assertTrue(results.brief)
        self.assertEqual(results.output, "foo")

    def testShortBundleValueTakesNextToken(self):
        results = self.parser.parse(["-ao", "foo", "rest"], env={})
        self.assertTrue(results.all)
        self.assertEqual(results.output, "foo")
        self.assertEqual(results.args, ("rest",))

    def testValueMayLookLikeAnOption(self):
        results = self.parser.parse(["--output", "-v"], env={})
        self.assertEqual(results.output, "-v")
        self.assertNotIn("verbose", results)

    def testDoubleDashEndsOptions(self):
        results = self.parser.parse(["-a", "--", "-b", "file"], env={})
        self.assertTrue(results.all)
        self.assertNotIn("brief", results)
        self.assertEqual(results.args, ("-b", "file"))

    def testLoneDashIsPositional(self):
        results = self.parser.parse(["-", "-a"], env={})
        self.assertEqual(results.args, ("-",))
        self.assertTrue(results.all)

    def testInterspersedByDefault(self):
        results = self.parser.parse(["file", "-b", "other"], env={})
        self.assertTrue(results.brief)
        self.assertEqual(results.args, ("file", "other"))

    def testNonInterspersedStopsAtFirstPositional(self):
        parser = Parser(OPTIONS, interspersed=False)
        results = parser.parse(["-a", "file", "-b"], env={})
        self.assertTrue(results.all)
        self.assertNotIn("brief", results)
        self.assertEqual(results.args, ("file", "-b"))

    def testBoolRepetitionIsIdempotent(self):
        results = self.parser.parse(["-v", "-v", "--verbose"], env={})
        self.assertIs(results.verbose, True)
        self.assertEqual(sum(1 for parsed in results.order if parsed.name == "verbose"), 3)

    def testHyphenatedNameUsesUnderscoreKey(self):
        results = self.parser.parse(["--dry-run"], env={})
        self.assertTrue(results.dry_run)
        self.assertTrue(results["dry_run"])


class TestAccumulation(TestCase):
    """Behavioral tests for arrays, flattening and last-wins scalars."""

    def testArrayAccumulatesEveryOccurrence(self):
        results = parse(OPTIONS, ["-I", "a", "--include=b", "-Ic"], env={})
        self.assertEqual(results.include, ["a", "b", "c"])
        self.assertEqual(len([parsed for parsed in results.order if parsed.name == "include"]), 3)

    def testFlattenSplicesSequences(self):
        options = [{"name": "tag", "type": "arrayOfCommaSepString"}]
        results = parse(options, ["--tag", "a,b", "--tag", "c"], env={})
        self.assertEqual(results.tag, ["a", "b", "c"])

    def testArrayWithoutFlattenNests(self):
        options = [{"name": "tag", "type": "arrayOfCommaSepList"}]
        results = parse(options, ["--tag", "a,b", "--tag", "c"], env={})
        self.assertEqual(results.tag, [["a", "b"], ["c"]])

    def testScalarLastOccurrenceWins(self):
        results = parse(OPTIONS, ["--output", "a", "-o", "b"], env={})
        self.assertEqual(results.output, "b")
        self.assertEqual(
            [parsed.value for parsed in results.order if parsed.name == "output"],
            ["a", "b"],
        )

    def testCompilingTwiceIsDeterministic(self):
        tokens = ["-v", "--include", "x", "file", "-Iy", "--output=z"]
        first = Parser(OPTIONS).parse(tokens, env={})
        second = Parser(OPTIONS).parse(tokens, env={})
        self.assertEqual(dict(first), dict(second))
        self.assertEqual(first.order, second.order)
        self.assertEqual(first.args, second.args)


class TestFallbacks(TestCase):
    """Behavioral tests for environment and default fallbacks."""

    def testDefaultStringIsParsedThroughType(self):
        results = parse(OPTIONS, [], env={})
        self.assertEqual(results.count, 1)
        self.assertIn(ParsedArg("count", 1, Provenance.DEFAULT), results.order)

    def testSecondEnvironmentVariableIsUsed(self):
        options = [{"name": "file", "env": ["FOO", "BAR"]}]
        results = parse(options, [], env={"BAR": "from-bar"})
        self.assertEqual(results.file, "from-bar")
        self.assertEqual(results.order, (ParsedArg("file", "from-bar", Provenance.ENVIRONMENT),))

    def testFirstEnvironmentVariableWins(self):
        options = [{"name": "file", "env": ["FOO", "BAR"]}]
        results = parse(options, [], env={"FOO": "foo", "BAR": "bar"})
        self.assertEqual(results.file, "foo")

    def testArgvBeatsEnvironment(self):
        options = [{"name": "file", "env": "FILE"}]
        results = parse(options, ["--file", "argv"], env={"FILE": "env"})
        self.assertEqual(results.file, "argv")
        self.assertEqual([parsed.provenance for parsed in results.order], [Provenance.ARGV])

    def testEnvironmentBeatsDefault(self):
        options = [{"name": "count", "type": "integer", "env": "COUNT", "default": "5"}]
        results = parse(options, [], env={"COUNT": "7"})
        self.assertEqual(results.count, 7)

    def testBoolEnvironmentZeroIsFalse(self):
        options = [{"name": "debug", "type": "bool", "env": "DEBUG"}]
        results = parse(options, [], env={"DEBUG": "0"})
        self.assertIs(results.debug, False)
        self.assertEqual(results.order[0].provenance, Provenance.ENVIRONMENT)

    def testBoolEnvironmentOneIsTrue(self):
        options = [{"name": "debug", "type": "bool", "env": "DEBUG"}]
        results = parse(options, [], env={"DEBUG": "1"})
        self.assertIs(results.debug, True)

    def testBoolEnvironmentEmptyIsUnset(self):
        options = [{"name": "debug", "type": "bool", "env": "DEBUG"}]
        results = parse(options, [], env={"DEBUG": ""})
        self.assertNotIn("debug", results)
        self.assertEqual(results.order, ())

    def testBoolEnvironmentAmbiguousValueWarns(self):
        options = [{"name": "debug", "type": "bool", "env": "DEBUG"}]
        with self.assertWarns(AmbiguousEnvironmentWarning):
            results = parse(options, [], env={"DEBUG": "false"})
        self.assertIs(results.debug, True)

    def testAmbiguousWarningPointsAtCaller(self):
        options = [{"name": "debug", "type": "bool", "env": "DEBUG"}]
        with self.assertWarns(AmbiguousEnvironmentWarning) as context:
            parse(options, [], env={"DEBUG": "yes"})
        self.assertEqual(context.filename, __file__)
        with self.assertWarns(AmbiguousEnvironmentWarning) as context:
            Parser(options).parse([], env={"DEBUG": "yes"})
        self.assertEqual(context.filename, __file__)

    def testStringEnvironmentEmptyIsAValue(self):
        options = [{"name": "prefix", "env": "PREFIX"}]
        results = parse(options, [], env={"PREFIX": ""})
        self.assertEqual(results.prefix, "")

    def testArrayEnvironmentIsOneOccurrence(self):
        options = [{"name": "include", "type": "arrayOfString", "env": "INCLUDE"}]
        results = parse(options, [], env={"INCLUDE": "x"})
        self.assertEqual(results.include, ["x"])

    def testArrayDefaultIsCopied(self):
        options = [{"name": "include", "type": "arrayOfString", "default": ["x", "y"]}]
        parser = Parser(options)
        first = parser.parse([], env={})
        first.include.append("z")
        second = parser.parse([], env={})
        self.assertEqual(second.include, ["x", "y"])

    def testArrayDefaultItemsAreParsedThroughType(self):
        options = [{"name": "sizes", "type": "arrayOfInteger", "default": ["1", "2", 3]}]
        results = parse(options, [], env={})
        self.assertEqual(results.sizes, [1, 2, 3])
        self.assertEqual(results.order, (ParsedArg("sizes", [1, 2, 3], Provenance.DEFAULT),))

    def testArrayDefaultItemsFlatten(self):
        options = [{"name": "tags", "type": "arrayOfCommaSepString", "default": ["a,b", "c"]}]
        self.assertEqual(parse(options, [], env={}).tags, ["a", "b", "c"])

    def testInvalidArrayDefaultItemFailsAtParse(self):
        options = [{"name": "sizes", "type": "arrayOfInteger", "default": ["1", "many"]}]
        with self.assertRaises(InvalidValueError) as context:
            parse(options, [], env={})
        self.assertEqual(context.exception.value, "many")

    def testTypeDefaultApplies(self):
        if "levelWithDefault" not in registered():
            register(OptionType("levelWithDefault", lambda option, token, value: int(value), default=3))
        results = parse([{"name": "level", "type": "levelWithDefault"}], [], env={})
        self.assertEqual(results.level, 3)
        self.assertEqual(results.order[0].provenance, Provenance.DEFAULT)

    def testOptionWithoutValueIsAbsent(self):
        results = parse(OPTIONS, [], env={})
        self.assertNotIn("output", results)
        self.assertIsNone(results.get("output"))
        with self.assertRaises(AttributeError):
            _ = results.output

    def testFallbacksFollowArgvInTableOrder(self):
        options = [
            {"name": "alpha", "default": "a"},
            {"name": "beta", "env": "BETA"},
            {"name": "gamma"},
        ]
        results = parse(options, ["--gamma", "g"], env={"BETA": "b"})
        self.assertEqual(
            results.order,
            (
                ParsedArg("gamma", "g", Provenance.ARGV),
                ParsedArg("alpha", "a", Provenance.DEFAULT),
                ParsedArg("beta", "b", Provenance.ENVIRONMENT),
            ),
        )

    def testProcessEnvironmentIsSnapshotWhenOmitted(self):
        options = [{"name": "file", "env": "SWITCHBOARD_TEST_FILE"}]
        with mock.patch.dict(os.environ, {"SWITCHBOARD_TEST_FILE": "from-os"}):
            results = parse(options, [])
        self.assertEqual(results.file, "from-os")

    def testConstructorEnvironmentIsUsed(self):
        parser = Parser([{"name": "file", "env": "FILE"}], env={"FILE": "ctor"})
        self.assertEqual(parser.parse([]).file, "ctor")
        self.assertEqual(parser.parse([], env={"FILE": "call"}).file, "call")


class TestFaults(TestCase):
    """Behavioral tests for position-aware parse faults."""

    def testUnknownLongOption(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(OPTIONS, ["file", "--bogus"], env={})
        self.assertEqual(context.exception.token, "--bogus")
        self.assertEqual(context.exception.position, 2)
        self.assertEqual(context.exception.kind, FaultCode.UNKNOWN_OPTION)
        self.assertIn("second position", str(context.exception))

    def testUnknownLongOptionWithValueNamesOption(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(OPTIONS, ["--bogus=1"], env={})
        self.assertEqual(context.exception.token, "--bogus")

    def testUnknownOptionSuggestsCloseMatch(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(OPTIONS, ["--verbos"], env={})
        self.assertIn("--verbose", context.exception.options["hint"])

    def testUnknownShortLetterInBundle(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(OPTIONS, ["-avx"], env={})
        self.assertEqual(context.exception.token, "-x")
        self.assertEqual(context.exception.position, 1)

    def testAllowUnknownKeepsTokens(self):
        results = parse(OPTIONS, ["--bogus", "-a", "-ax", "file"], env={}, allow_unknown=True)
        self.assertEqual(results.args, ("--bogus", "-ax", "file"))
        self.assertTrue(results.all)

    def testMissingArgument(self):
        with self.assertRaises(MissingArgumentError) as context:
            parse(OPTIONS, ["-v", "--output"], env={})
        self.assertEqual(context.exception.token, "--output")
        self.assertEqual(context.exception.position, 2)
        self.assertEqual(context.exception.kind, FaultCode.MISSING_ARGUMENT)

    def testMissingArgumentInBundle(self):
        with self.assertRaises(MissingArgumentError) as context:
            parse(OPTIONS, ["-ao"], env={})
        self.assertEqual(context.exception.token, "-o")

    def testBoolRejectsAttachedValue(self):
        with self.assertRaises(UnexpectedArgumentError) as context:
            parse(OPTIONS, ["--verbose=yes"], env={})
        self.assertEqual(context.exception.token, "--verbose")
        self.assertEqual(context.exception.value, "yes")
        self.assertEqual(context.exception.kind, FaultCode.UNEXPECTED_ARGUMENT)

    def testInvalidValueFromArgv(self):
        with self.assertRaises(InvalidValueError) as context:
            parse(OPTIONS, ["-v", "--count", "0"], env={})
        error = context.exception
        self.assertEqual(error.option, "count")
        self.assertEqual(error.value, "0")
        self.assertEqual(error.token, "--count")
        self.assertEqual(error.position, 2)
        self.assertEqual(error.kind, FaultCode.INVALID_VALUE)

    def testInvalidValueFromEnvironment(self):
        options = [{"name": "count", "type": "integer", "env": "COUNT"}]
        with self.assertRaises(InvalidValueError) as context:
            parse(options, [], env={"COUNT": "many"})
        self.assertEqual(context.exception.token, "$COUNT")
        self.assertIsNone(context.exception.position)
        self.assertIn("COUNT", str(context.exception))

    def testInvalidDefaultFailsAtParse(self):
        parser = Parser([{"name": "count", "type": "integer", "default": "many"}])
        with self.assertRaises(InvalidValueError) as context:
            parser.parse([], env={})
        self.assertIsNone(context.exception.token)
        self.assertIn("default", str(context.exception))

    def testCustomParseValueErrorIsWrapped(self):
        options = [{"name": "word", "type": "strictWord"}]
        self.assertEqual(parse(options, ["--word", "ok"], env={}).word, "ok")
        with self.assertRaises(InvalidValueError) as context:
            parse(options, ["--word", "nope"], env={})
        self.assertEqual(context.exception.reason, "only 'ok' is accepted")
        self.assertIsInstance(context.exception.__cause__, ValueError)

    def testTokensMustBeStrings(self):
        with self.assertRaises(TypeError):
            parse(OPTIONS, "-v", env={})
        with self.assertRaises(TypeError):
            parse(OPTIONS, ["-v", 1], env={})


class TestBuiltinValues(TestCase):
    """Behavioral tests for built-in value conversions through the parser."""

    OPTIONS = [
        {"name": "number", "type": "number"},
        {"name": "integer", "type": "integer"},
        {"name": "when", "type": "date"},
        {"name": "sizes", "type": "arrayOfPositiveInteger"},
    ]

    def testNumberKeepsIntegers(self):
        results = parse(self.OPTIONS, ["--number", "42"], env={})
        self.assertEqual(results.number, 42)
        self.assertIsInstance(results.number, int)

    def testNumberAcceptsFloats(self):
        self.assertEqual(parse(self.OPTIONS, ["--number", "1e3"], env={}).number, 1000.0)
        self.assertEqual(parse(self.OPTIONS, ["--number=-2.5"], env={}).number, -2.5)

    def testNumberRejectsNaNAndEmpty(self):
        for value in ("nan", "", "abc"):
            with self.assertRaises(InvalidValueError):
                parse(self.OPTIONS, ["--number", value], env={})

    def testIntegerAcceptsSign(self):
        self.assertEqual(parse(self.OPTIONS, ["--integer=-7"], env={}).integer, -7)
        with self.assertRaises(InvalidValueError):
            parse(self.OPTIONS, ["--integer", "7.5"], env={})

    def testDateFromEpochSeconds(self):
        results = parse(self.OPTIONS, ["--when", "0"], env={})
        self.assertEqual(results.when, datetime.datetime(1970, 1, 1, tzinfo=datetime.UTC))

    def testDateFromIsoString(self):
        results = parse(self.OPTIONS, ["--when", "2024-02-03T04:05:06.5Z"], env={})
        self.assertEqual(results.when, datetime.datetime(2024, 2, 3, 4, 5, 6, 500000, tzinfo=datetime.UTC))
        results = parse(self.OPTIONS, ["--when", "2024-02-03"], env={})
        self.assertEqual(results.when, datetime.datetime(2024, 2, 3, tzinfo=datetime.UTC))

    def testDateRejectsGarbage(self):
        for value in ("yesterday", "2024-13-01", "01"):
            with self.assertRaises(InvalidValueError):
                parse(self.OPTIONS, ["--when", value], env={})

    def testArrayOfPositiveInteger(self):
        results = parse(self.OPTIONS, ["--sizes", "1", "--sizes=2"], env={})
        self.assertEqual(results.sizes, [1, 2])

    def testNumericTypesRejectNonAsciiDigits(self):
        for option, value in (("--integer", "\uff17"), ("--sizes", "\u0663"), ("--number", "\u0663"), ("--number", "\u0663.5")):
            with self.subTest(option=option, value=value), self.assertRaises(InvalidValueError):
                parse(self.OPTIONS, [option, value], env={})

    def testNumberRejectsUnderscores(self):
        for value in ("1_000", "1_0.5"):
            with self.subTest(value=value), self.assertRaises(InvalidValueError):
                parse(self.OPTIONS, ["--number", value], env={})

    def testDateRejectsNonAsciiDigits(self):
        for value in ("\u0662\u0660\u0662\u0664-02-03", "\u0661\u0662"):
            with self.subTest(value=value), self.assertRaises(InvalidValueError):
                parse(self.OPTIONS, ["--when", value], env={})


class TestParser(TestCase):
    """Behavioral tests for Parser configuration and Results."""

    def testDefaultTokensComeFromSysArgv(self):
        with mock.patch.object(sys, "argv", ["prog", "-v", "file"]):
            results = Parser(OPTIONS).parse(env={})
        self.assertTrue(results.verbose)
        self.assertEqual(results.args, ("file",))

    def testSliceControlsSysArgvOffset(self):
        with mock.patch.object(sys, "argv", ["python", "prog", "-v"]):
            results = Parser(OPTIONS, slice=2).parse(env={})
        self.assertTrue(results.verbose)
        self.assertEqual(results.args, ())

    def testExplicitTokensAreNotSliced(self):
        results = Parser(OPTIONS, slice=2).parse(["file", "-v"], env={})
        self.assertEqual(results.args, ("file",))

    def testConfigurationIsValidated(self):
        with self.assertRaises(TypeError):
            Parser(OPTIONS, slice="1")
        with self.assertRaises(ValueError):
            Parser(OPTIONS, slice=-1)
        with self.assertRaises(TypeError):
            Parser(OPTIONS, interspersed="yes")
        with self.assertRaises(TypeError):
            Parser(OPTIONS, env=["FOO"])

    def testResultsIsReadOnlyMapping(self):
        results = parse(OPTIONS, ["-v"], env={})
        self.assertIsInstance(results, Results)
        with self.assertRaises(TypeError):
            results["verbose"] = False  # type: ignore[index]
        self.assertEqual(set(results), {"verbose", "count"})
        self.assertEqual(len(results), 2)

    def testEachParseReturnsFreshResults(self):
        parser = Parser(OPTIONS)
        first = parser.parse(["-v"], env={})
        second = parser.parse([], env={})
        self.assertIn("verbose", first)
        self.assertNotIn("verbose", second)

    def testHelpAndCompletionDelegate(self):
        parser = Parser(OPTIONS)
        self.assertIn("--verbose", parser.help())
        self.assertIn("complete -F", parser.bash_completion(name="tool"))


if __name__ == "__main__":
    unittest.main()
