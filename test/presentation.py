"""
Presentation behavioral tests (signatures, usage, help and version rendering).

Conventions
- Test method names follow CamelCase per project convention.
- Rendering goes to an in-memory rich console wide enough to avoid wrapping.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from rich.console import Console

from helmsman import Argument, Command, Option
from helmsman.presentation import (
    format_argument,
    format_option,
    format_usage,
    show_help,
    show_version,
)


def render(function, definition, **options):
    buffer = io.StringIO()
    function(definition, console=Console(file=buffer, width=120), **options)
    return buffer.getvalue()


class TestSignatures(TestCase):
    def testArgumentSignatures(self):
        cases = {
            (True, False): "<path>",
            (False, False): "[path]",
            (True, True): "<...path>",
            (False, True): "[...path]",
        }
        for (required, variadic), expected in cases.items():
            with self.subTest(expected=expected):
                definition = Argument("path", required=required, variadic=variadic).definition()
                self.assertEqual(format_argument(definition), expected)

    def testUsage(self):
        cmd = Command("test").add_arguments(Argument("first", required=True), Argument("second"))
        self.assertEqual(format_usage(cmd.dump()), "test <first> [second] [options]")
        self.assertEqual(format_usage(Command("bare").dump()), "bare [options]")

    def testOptionColumns(self):
        option = Option(
            "-d",
            "--dir",
            arguments=[Argument("dir")],
            default="./",
            required=True,
            negatable=True,
            descr="where to look",
        )
        self.assertEqual(format_option(option.definition()), (
            "-d, --dir [dir]",
            "where to look (negate with --no-dir) (default: './') (required)",
        ))


class TestShowHelp(TestCase):
    def testPlainHelp(self):
        cmd = (
            Command("test", "does things")
            .add_arguments(Argument("first", required=True), Argument("second"))
            .add_options(Option("-d", "--dir", arguments=[Argument("dir")], default="./"))
        )
        output = render(show_help, cmd.dump())
        self.assertIn("Usage: test <first> [second] [options]", output)
        self.assertIn("does things", output)
        self.assertIn("Options:", output)
        self.assertIn("-h, --help", output)
        self.assertIn("display help for command", output)
        self.assertIn("-d, --dir [dir]", output)
        self.assertIn("(default: './')", output)
        self.assertNotIn("Commands:", output)

    def testSubCommandsAreListed(self):
        cmd = Command("get").add_sub_commands(
            Command("download", "fetch a file").add_arguments(Argument("path", required=True))
        )
        output = render(show_help, cmd.dump())
        self.assertIn("Usage: get [options]", output)
        self.assertIn("Commands:", output)
        self.assertIn("download <path> [options]", output)
        self.assertIn("fetch a file", output)

    def testFancyHelpUsesPanel(self):
        output = render(show_help, Command("test").dump(), fancy=True)
        self.assertIn("TEST HELP", output)
        self.assertIn("Usage: test [options]", output)


class TestShowVersion(TestCase):
    def testVersion(self):
        output = render(show_version, Command("test").with_version("1.2.3").dump())
        self.assertIn("test — 1.2.3", output)

    def testMissingVersion(self):
        self.assertIn("test — unknown", render(show_version, Command("test").dump()))


if __name__ == "__main__":
    unittest.main()
