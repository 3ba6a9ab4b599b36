"""
Parsing behavioral tests (token routing, value consumption, finalization).

Scope
- Validate positional and option binding, variadic capture and the "--" terminator.
- Validate nested option arguments (single-argument folding, multi-argument mappings).
- Validate negation, assignment splitting, sub-command routing and extras policies.
- Validate parse faults and on_parse hooks.

Conventions
- Test method names follow CamelCase per project convention.
- Tokens are passed raw unless a test is about process-argument stripping.
"""

from __future__ import annotations

import unittest
from collections import deque
from unittest import TestCase
from unittest.mock import Mock

from helmsman import Argument, Command, Option, ParsedInput
from helmsman.faults import (
    DuplicatedOptionError,
    ExpectedButGotError,
    UnexpectedArgumentError,
    UnknownOptionError,
    UnknownSubcommandError,
)
from helmsman.parsing import ParseContext, consume, split_assignments


class TestConsume(TestCase):
    """Value consumption against a token queue."""

    def testSingleTakesOneToken(self):
        queue = deque(["a", "b"])
        self.assertEqual(consume(Argument("name"), queue), "a")
        self.assertEqual(list(queue), ["b"])

    def testVariadicStopsAtFlag(self):
        queue = deque(["a", "b", "--flag"])
        self.assertEqual(consume(Argument("names", variadic=True), queue), ["a", "b"])
        self.assertEqual(list(queue), ["--flag"])

    def testVariadicDropsTerminator(self):
        queue = deque(["a", "--", "b"])
        self.assertEqual(consume(Argument("names", variadic=True), queue), ["a"])
        self.assertEqual(list(queue), ["b"])

    def testVariadicWithNothingYieldsEmptyList(self):
        self.assertEqual(consume(Argument("names", variadic=True, required=True), deque()), [])

    def testOptionalFallsBackToDefault(self):
        self.assertEqual(consume(Argument("name", default="fallback"), deque(["--flag"])), "fallback")

    def testRequiredWithNothingRaises(self):
        with self.assertRaises(ExpectedButGotError) as context:
            consume(Argument("name", required=True), deque())
        self.assertIn("got nothing", str(context.exception))

    def testRequiredFollowedByFlagRaises(self):
        with self.assertRaises(ExpectedButGotError) as context:
            consume(Argument("name", required=True), deque(["--flag"]))
        self.assertIn("'--flag'", str(context.exception))


class TestSplitAssignments(TestCase):
    def testAssignmentsAreSplitOnFirstEquals(self):
        self.assertEqual(
            split_assignments(["--owner=anders", "-q=a=b", "plain=value", "--flag"]),
            ["--owner", "anders", "-q", "a=b", "plain=value", "--flag"],
        )


class TestParseContext(TestCase):
    def testFreshContextIsEmpty(self):
        context = ParseContext()
        self.assertEqual(context.input, ParsedInput({}, {}, []))
        self.assertEqual(context.bound, [])


class TestParse(TestCase):
    """Full parse passes over command trees."""

    def testProcessArgumentsAreStripped(self):
        cmd = Command("test").add_arguments(Argument("path"))
        self.assertEqual(cmd.parse(["python", "script.py", "here"]).args, {"path": "here"})

    def testOwnNameIsSkipped(self):
        cmd = Command("test").add_arguments(Argument("path"))
        self.assertEqual(cmd.parse(["test", "here"], raw=True).args, {"path": "here"})

    def testResultIsNamedTriple(self):
        parsed = Command("test").parse([], raw=True)
        self.assertIsInstance(parsed, ParsedInput)
        self.assertEqual(parsed, ({}, {"help": None}, []))

    def testGeneralOutput(self):
        cmd = (
            Command("test")
            .add_arguments(Argument("first", required=True), Argument("second"))
            .add_options(
                Option("-d", "--dir", arguments=[Argument("dir")], default="./", required=True),
                Option("-e", "--extra", arguments=[Argument("first", default=""), Argument("second", default="kenobi")]),
            )
        )
        parsed = cmd.parse(["test", "hello", "there", "--dir", "/usr/bin/", "-e", "general"], raw=True)
        self.assertEqual(parsed.args, {"first": "hello", "second": "there"})
        self.assertEqual(parsed.opts, {
            "help": None,
            "dir": "/usr/bin/",
            "extra": {"first": "general", "second": "kenobi"},
        })
        self.assertEqual(parsed.extra, [])

    def testVariadicOutput(self):
        cmd = (
            Command("test")
            .add_arguments(Argument("first", required=True, variadic=True))
            .add_options(
                Option("-m", "--many", arguments=[Argument("things", variadic=True)]),
                Option("-mo", "--many-optional", arguments=[Argument("things", variadic=True)], default=[1, 2, 3]),
            )
        )
        parsed = cmd.parse(["test", "one", "two", "three", "-m", "many-one", "many two"], raw=True)
        self.assertEqual(parsed.args, {"first": ["one", "two", "three"]})
        self.assertEqual(parsed.opts, {"help": None, "many": ["many-one", "many two"], "manyOptional": [1, 2, 3]})

    def testRequiredVariadicWithZeroTokensIsEmptyList(self):
        cmd = (
            Command("test")
            .add_arguments(Argument("files", required=True, variadic=True))
            .add_options(Option("-v", "--verbose"))
        )
        for tokens in ([], ["--"], ["-v"]):
            with self.subTest(tokens=tokens):
                self.assertEqual(cmd.parse(tokens, raw=True).args, {"files": []})

    def testTerminatedVariadicArguments(self):
        cmd = Command("test").add_arguments(Argument("files", variadic=True), Argument("dirs", variadic=True))
        parsed = cmd.parse(["1", "2", "3", "--", "4", "5", "6"], raw=True)
        self.assertEqual(parsed.args, {"files": ["1", "2", "3"], "dirs": ["4", "5", "6"]})

    def testTerminatedVariadicOptionArguments(self):
        cmd = Command("test").add_options(
            Option("-e", "--enfo", arguments=[Argument("files", variadic=True), Argument("dirs", variadic=True)])
        )
        parsed = cmd.parse(["-e", "1", "2", "3", "--", "4", "5", "6"], raw=True)
        self.assertEqual(parsed.opts["enfo"], {"files": ["1", "2", "3"], "dirs": ["4", "5", "6"]})

    def testSingleNestedArgumentFolds(self):
        cmd = Command("test").add_options(Option("-o", "--owner", arguments=[Argument("owner", required=True)]))
        self.assertEqual(cmd.parse(["--owner", "anders"], raw=True).opts["owner"], "anders")

    def testResidents(self):
        cmd = Command("test").add_options(Option("-r", "--residents", arguments=[
            Argument("owner", required=True),
            Argument("adults", variadic=True),
            Argument("children", variadic=True),
        ]))
        parsed = cmd.parse(["--residents", "J", "A", "B", "--", "C", "D"], raw=True)
        self.assertEqual(parsed.opts["residents"], {"owner": "J", "adults": ["A", "B"], "children": ["C", "D"]})

    def testAssignmentSyntax(self):
        cmd = Command("test").add_options(Option("-o", "--owner", arguments=[Argument("owner", required=True)]))
        self.assertEqual(cmd.parse(["--owner=anders"], raw=True).opts["owner"], "anders")
        self.assertEqual(cmd.parse(["-o=anders"], raw=True).opts["owner"], "anders")

    def testBooleanOptionBindsTrue(self):
        cmd = Command("test").add_options(Option("-v", "--verbose", default=False))
        self.assertIs(cmd.parse(["-v"], raw=True).opts["verbose"], True)
        self.assertIs(cmd.parse([], raw=True).opts["verbose"], False)

    def testNegation(self):
        cmd = Command("parent").add_options(Option("-v", "--verbose", default=True, negatable=True))
        self.assertEqual(cmd.parse(["parent", "--no-verbose"], raw=True).opts, {"help": None, "verbose": False})
        self.assertEqual(cmd.parse(["parent"], raw=True).opts, {"help": None, "verbose": True})

    def testNegationWithoutNegatableIsUnknown(self):
        cmd = Command("test").add_options(Option("-v", "--verbose"))
        with self.assertRaises(UnknownOptionError):
            cmd.parse(["--no-verbose"], raw=True)

    def testNegationAfterFlagIsDuplicate(self):
        cmd = Command("test").add_options(Option("-v", "--verbose", negatable=True))
        with self.assertRaises(DuplicatedOptionError):
            cmd.parse(["--verbose", "--no-verbose"], raw=True)

    def testSubCommandParsesWithItsOwnDefinitions(self):
        cmd = (
            Command("parent")
            .add_options(Option("-v", "--verbose", default=False))
            .add_sub_commands(
                Command("child").add_options(
                    Option("-v", "--verbose", default=True),
                    Option("-f", "--files", arguments=[Argument("files", variadic=True)]),
                )
            )
        )
        parsed = cmd.parse(["parent", "child", "-f", ".gitignore", ".eslintrc.json"], raw=True)
        self.assertEqual(parsed, ({}, {"help": None, "verbose": True, "files": [".gitignore", ".eslintrc.json"]}, []))

    def testParentOptionsBeforeRoutingAreKept(self):
        cmd = (
            Command("parent")
            .add_options(Option("-q", "--quiet"))
            .add_sub_commands(Command("child", inherit=False).add_arguments(Argument("path")))
        )
        parsed = cmd.parse(["-q", "child", "here"], raw=True)
        self.assertEqual(parsed.args, {"path": "here"})
        self.assertIs(parsed.opts["quiet"], True)

    def testChildOwnsSharedCanonicalName(self):
        cmd = (
            Command("parent")
            .add_options(Option("-m", "--mode", arguments=[Argument("mode")]))
            .add_sub_commands(Command("child", inherit=False).add_options(Option("-x", "--mode")))
        )
        parsed = cmd.parse(["--mode", "a", "child", "-x"], raw=True)
        self.assertIs(parsed.opts["mode"], True)

    def testInheritedOptionGivenOnBothSidesOfRouting(self):
        cmd = Command("parent").add_options(Option("-q", "--quiet")).add_sub_commands(Command("child"))
        with self.assertRaises(DuplicatedOptionError):
            cmd.parse(["-q", "child", "-q"], raw=True)

    def testInheritedOptionsParseInChild(self):
        parent = Command("parent")
        child = Command("child")
        parent.add_sub_commands(child)
        parent.add_options(Option("-l", "--late"))
        self.assertIs(parent.parse(["child", "--late"], raw=True).opts["late"], True)

    def testUnknownSubCommandRaises(self):
        cmd = Command("test").add_sub_commands(Command("next"))
        with self.assertRaises(UnknownSubcommandError) as context:
            cmd.parse(["test", "not-next"], raw=True)
        self.assertEqual(context.exception.options["suggestion"], "next")

    def testDuplicateOptionRaises(self):
        cmd = Command("test").add_options(Option("-s", "--same"))
        with self.assertRaises(DuplicatedOptionError):
            cmd.parse(["--same", "-s"], raw=True)

    def testUnknownOptionRaises(self):
        cmd = Command("test").add_options(Option("-s", "--same"))
        with self.assertRaises(UnknownOptionError):
            cmd.parse(["--same", "--not-same"], raw=True)

    def testLongFlagMustMatchExactly(self):
        cmd = Command("test").add_options(Option("-s", "--same"))
        with self.assertRaises(UnknownOptionError):
            cmd.parse(["--Same"], raw=True)

    def testExtraArguments(self):
        cmd = Command("test").add_arguments(Argument("arg"))
        parsed = cmd.parse(["test", "hello", "this", "should", "go", "into", "extra"], raw=True)
        self.assertEqual(parsed, ({"arg": "hello"}, {"help": None}, ["this", "should", "go", "into", "extra"]))

    def testExtraArgumentsRejected(self):
        cmd = Command("test", consume_unknown_arguments=False).add_arguments(Argument("arg"))
        with self.assertRaises(UnexpectedArgumentError):
            cmd.parse(["hello", "world"], raw=True)

    def testUnknownOptionsConsumed(self):
        cmd = Command("test", consume_unknown_options=True).add_arguments(Argument("arg"))
        parsed = cmd.parse(["test", "hello", "this", "should", "--go", "into", "extra"], raw=True)
        self.assertEqual(parsed, ({"arg": "hello"}, {"help": None}, ["this", "should", "--go", "into", "extra"]))

    def testMissingOptionArgumentRaises(self):
        cmd = Command("test").add_options(Option("-n", "--name", arguments=[Argument("name", required=True)]))
        with self.assertRaises(ExpectedButGotError):
            cmd.parse(["test", "--name"], raw=True)

    def testMissingRequiredArgumentRaises(self):
        cmd = Command("test").add_arguments(Argument("first"), Argument("second", required=True))
        with self.assertRaises(ExpectedButGotError) as context:
            cmd.parse(["one"], raw=True)
        self.assertEqual(context.exception.options["name"], "second")
        self.assertIn("got nothing", str(context.exception))

    def testMissingRequiredOptionRaises(self):
        cmd = Command("test").add_options(Option("-s", "--same", required=True))
        with self.assertRaises(ExpectedButGotError) as context:
            cmd.parse([], raw=True)
        self.assertIn("got nothing", str(context.exception))

    def testOptionalArgumentsTakeDefaults(self):
        cmd = Command("test").add_arguments(Argument("arg"), Argument("my-arg", default="hello"))
        self.assertEqual(cmd.parse([], raw=True).args, {"arg": None, "myArg": "hello"})

    def testOnParseHooksFireImmediately(self):
        seen = []
        cmd = (
            Command("test")
            .add_arguments(Argument("version", on_parse=lambda value, parsed: seen.append(("argument", value))))
            .add_options(Option("-v", "--verbose", on_parse=lambda value, parsed: seen.append(("option", value))))
        )
        cmd.parse(["-v", "a-value"], raw=True)
        self.assertEqual(seen, [("option", True), ("argument", "a-value")])

    def testHelpHandlersAreLocal(self):
        first, second = Mock(), Mock()
        cmd = (
            Command("test")
            .with_help_handler(first)
            .add_sub_commands(Command("next").with_help_handler(second))
        )
        cmd.parse(["test", "--help"], raw=True)
        first.assert_called_once()
        second.assert_not_called()

        cmd.parse(["test", "next", "--help"], raw=True)
        second.assert_called_once()

    def testParsingIsIdempotent(self):
        cmd = (
            Command("test")
            .add_arguments(Argument("files", variadic=True))
            .add_options(Option("-o", "--owner", arguments=[Argument("owner")]))
        )
        tokens = ["a", "b", "-o", "me", "c"]
        self.assertEqual(cmd.parse(tokens, raw=True), cmd.parse(tokens, raw=True))

    def testTokensMustBeStrings(self):
        cmd = Command("test")
        with self.assertRaises(TypeError):
            cmd.parse("test --help")
        with self.assertRaises(TypeError):
            cmd.parse([1, 2], raw=True)


if __name__ == "__main__":
    unittest.main()
