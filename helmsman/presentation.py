"""
Helmsman help and version rendering (rich).

Everything here works on the plain data produced by Command.dump(), never on
live Command objects, so custom help handlers can reuse any piece of it.

Layout (help)
    Usage: <name> <required> [optional] <...variadic> [options]

    <description>

    Options:
      -h, --help            display help for command
      -o, --owner <owner>   repository owner (required)

    Commands:
      clone <url> [options] clone a repository

Signatures
- <name>     required argument
- [name]     optional argument
- <...name>  required variadic argument
- [...name]  optional variadic argument

Styling
- Palette keys: usage-label, program-name, metavar, description-section,
  group-label, option-name, option-description, children, children-description,
  program-version, panel-title.
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When colorful is False, styling is suppressed; fancy wraps output in a panel.
"""
from collections import defaultdict

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .tokens import VARIADIC_MARKER
from .utils import *


def _palette():
    return defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "metavar": "bold #FFD600",  # AMBER for parameters
        "description-section": "italic #A3A3A3",  # Neutral gray

        # === Groups ===
        "group-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "option-description": "#9CA3AF",
        "children": "bold #36C5F0",  # Sky-blue subcommands
        "children-description": "#9CA3AF",

        # === Version ===
        "program-version": "bold #00E6FF",

        # === Fancy panel ===
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))


def format_argument(definition, /):
    """
    Signature of one argument definition, e.g. "<path>", "[...files]".
    """
    name = (VARIADIC_MARKER if definition["variadic"] else "") + definition["name"]
    return ("<%s>" if definition["required"] else "[%s]") % name


def format_arguments(definitions, /):
    return " ".join(map(format_argument, definitions))


def format_usage(definition, /):
    """
    One-line usage of a dumped command: name, argument signatures, "[options]".
    """
    return " ".join(part for part in (
        definition["name"],
        format_arguments(definition["arguments"]),
        "[options]",
    ) if part)


def format_option(definition, /):
    """
    (names, details) columns of a dumped option.

    names:   "-o, --owner <owner>"
    details: description, then "(negate with --no-...)", "(default: ...)", "(required)"
    """
    names = ", ".join(definition["names"])
    if arguments := format_arguments(definition["arguments"]):
        names += " " + arguments

    details = []
    if definition["descr"]:
        details.append(definition["descr"])
    if definition["negatable"]:
        details.append("(negate with --no-%s)" % definition["names"][1].removeprefix("--"))
    if definition["default"] is not None:
        details.append("(default: %r)" % (definition["default"],))
    if definition["required"]:
        details.append("(required)")
    return names, " ".join(details)


def show_help(definition, /, *, console=Unset, fancy=False, colorful=False):
    """
    Render help for a dumped command.

    Parameters
    - definition: Mapping produced by Command.dump().
    - console: rich Console to print to; a fresh stdout console when Unset.
    - fancy: wrap the output in a panel.
    - colorful: apply the palette.
    """
    console = coalesce(console, Console())
    styles = _palette()

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        return Text(str(fragment), style)

    renders = []
    width = console.width - 4 * fancy
    padding = 2

    usage = Text()
    usage.append("Usage", styler("usage-label")).append(": ")
    usage.append(text(definition["name"], styler("program-name")))
    if arguments := format_arguments(definition["arguments"]):
        usage.append(" ").append(text(arguments, styler("metavar")))
    usage.append(" [options]")
    renders.append(usage.append("\n"))

    if definition["descr"]:
        renders.append(text(definition["descr"], styler("description-section")).append("\n"))

    def section(label, rows, left, right):
        """Two-column block; descriptions wrap under their own column."""
        indent = padding + max(len(name) for name, _ in rows) + padding
        block = Text()
        block.append(text(label, styler("group-label"))).append(":\n")
        for name, details in rows:
            line = Text(" " * padding).append(text(name, styler(left)))
            if details:
                line.append(" " * (indent - len(line)))
                wrapped = text(details, styler(right)).wrap(console, max(width - indent, 16))
                for index, segment in enumerate(wrapped):
                    if index:
                        line.append("\n").append(" " * indent)
                    line.append(segment)
            block.append(line).append("\n")
        return block

    if definition["options"]:
        renders.append(section(
            "Options",
            list(map(format_option, definition["options"])),
            "option-name",
            "option-description",
        ))

    if definition["children"]:
        renders.append(section(
            "Commands",
            [(format_usage(child), child["descr"] or "") for child in definition["children"]],
            "children",
            "children-description",
        ))

    renders[-1].rstrip()
    renderable = Group(*renders)

    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{definition['name']} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )

    console.print(renderable)


def show_version(definition, /, *, console=Unset, fancy=False, colorful=False):
    """
    Render "<name> — <version>" for a dumped command.

    Commands without a version show "unknown".
    """
    console = coalesce(console, Console())
    styles = _palette()

    def styler(style):
        return styles[style] if colorful else ""

    renderable = Text(" — ").join((
        Text(definition["name"], styler("program-name")),
        Text(definition["version"] or "unknown", styler("program-version")),
    ))

    if fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{definition['name']} VERSION".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )

    console.print(renderable)


__all__ = (
    "format_argument",
    "format_arguments",
    "format_usage",
    "format_option",
    "show_help",
    "show_version",
)
