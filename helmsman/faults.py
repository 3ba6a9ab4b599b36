"""
Helmsman faults (errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for every failure, grouped by domain
  (definition, parse, process) so logs and searches stay predictable.
- CommandException: base type carrying a message + options; knows how to
  render itself through rich and how to surface itself (__trigger__).
- Three categories under it:
  • DefinitionError: raised while commands, arguments and options are built.
  • ParseError: raised while tokens are consumed.
  • ProcessError: raised by the hook/validator/handler pipeline.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Lowercased, technical messages with one actionable hint.
- Styling is configurable via __styles__ in __main__; codes may be relabelled
  via __codes__ and documented via __docs__.

Integration
- The engine always raises. invoke() catches CommandException and calls
  trigger(fault, **ctx): in non-shell mode the fault is re-raised, in shell
  mode it is printed to stderr and the process exits with status 1.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - definitions (10xxx): names, flag shapes, duplicates, tree shape
    - parsing (11xxx): unknown/duplicated options, routing, missing values, extras
    - processing (13xxx): handlers and validation

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- definition errors (10xxx) ---
    INVALID_NAME                = 10101
    INVALID_SHORT_NAME          = 10102
    INVALID_LONG_NAME           = 10103
    INVALID_OPTION_NAMES        = 10104
    DUPLICATE_ARGUMENT          = 10111
    DUPLICATE_OPTION            = 10112
    DUPLICATE_COMMAND           = 10113
    ARGUMENTS_AND_SUBCOMMANDS   = 10121

    # --- parse errors (11xxx) ---
    UNKNOWN_SUBCOMMAND          = 11102
    UNKNOWN_OPTION              = 11112
    DUPLICATED_OPTION           = 11115
    EXPECTED_BUT_GOT            = 11117
    UNEXPECTED_ARGUMENT         = 11121

    # --- process errors (13xxx) ---
    MISSING_HANDLER             = 13101
    VALIDATION_FAILED           = 13111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "underline #00E5FF dim",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", getattr(self.options.get("tool"), "name", "helmsman")), styler("prog-name"))
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if code else "?", styler("code")),
            " | ",
            text(self.options.get("title", type(self).__name__).title(), styler("error-title")),
            " ]"
        )
        body = [text(self, styler("error-message"))]
        if hint := self.options.get("hint"):
            body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
        if docs := self.options.get("docs"):
            body.append(text(docs, styler("docs")))

        if fancy:
            return Panel(Group(*body), title=header, title_align="left", width=console.width - 4)

        return Group(header, *body)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DefinitionError(CommandException, ValueError): ...
class InvalidNameError(DefinitionError): ...
class InvalidOptionNamesError(DefinitionError): ...
class DuplicateArgumentError(DefinitionError): ...
class DuplicateOptionError(DefinitionError): ...
class DuplicateCommandError(DefinitionError): ...
class ArgumentsAndSubcommandsError(DefinitionError): ...


class ParseError(CommandException): ...
class UnknownOptionError(ParseError): ...
class UnknownSubcommandError(ParseError): ...
class DuplicatedOptionError(ParseError): ...
class ExpectedButGotError(ParseError): ...
class UnexpectedArgumentError(ParseError): ...


class ProcessError(CommandException): ...
class MissingHandlerError(ProcessError): ...


class ValidationError(ProcessError):
    """
    A validator rejected a bound value.

    options carry the canonical 'name', the offending 'value' and the
    validator's 'reason' (None when it only answered False).
    """

    @property
    def name(self):
        return self.options.get("name")

    @property
    def value(self):
        return self.options.get("value")

    @property
    def reason(self):
        return self.options.get("reason")


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode, rendering happens via the rich console; otherwise the fault is raised.

    typical options
    - tool, shell, fancy, colorful, and any other context worth showing.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    returns None when nothing is registered.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "DefinitionError",
    "InvalidNameError",
    "InvalidOptionNamesError",
    "DuplicateArgumentError",
    "DuplicateOptionError",
    "DuplicateCommandError",
    "ArgumentsAndSubcommandsError",
    "ParseError",
    "UnknownOptionError",
    "UnknownSubcommandError",
    "DuplicatedOptionError",
    "ExpectedButGotError",
    "UnexpectedArgumentError",
    "ProcessError",
    "MissingHandlerError",
    "ValidationError",
    "FaultCode",
    "trigger",
    "getdoc",
)
