r"""
Helmsman token classifier.

Pure, total predicates over whole strings. None of them raise on an empty
string; they simply answer False (or "" for the name converters).

Grammar
- name:        one or more alphanumeric words joined by single dashes
               (r"[^\W_]+(-[^\W_]+)*"; unicode letters and digits are allowed).
- short flag:  "-" + name          e.g. -v, -my-opt
- long flag:   "--" + name         e.g. --verbose, --dry-run
- required:    "<" + ["..."] + name + ">"
- optional:    "[" + ["..."] + name + "]"
- assignment:  flag + "=" + anything   e.g. --owner=anders, -o=anders
- terminator:  the literal "--"

Canonical names join the dash-separated words in camel case:
    >>> canonical_name("--docker-compose-file")
    'dockerComposeFile'
"""
import functools
import re

_NAME = r"[^\W_]+(?:-[^\W_]+)*"

_NAME_PATTERN = re.compile(_NAME)
_SHORT_PATTERN = re.compile(r"-" + _NAME)
_LONG_PATTERN = re.compile(r"--" + _NAME)
_REQUIRED_PATTERN = re.compile(r"<(?:\.{3})?" + _NAME + r">")
_OPTIONAL_PATTERN = re.compile(r"\[(?:\.{3})?" + _NAME + r"\]")

VARIADIC_MARKER = "..."
VARIADIC_TERMINATOR = "--"


def is_valid_name(token, /):
    """Dash-separated alphanumeric words, no leading/trailing dash, no punctuation."""
    return _NAME_PATTERN.fullmatch(token) is not None


def is_short_option_name(token, /):
    return _SHORT_PATTERN.fullmatch(token) is not None


def is_long_option_name(token, /):
    return _LONG_PATTERN.fullmatch(token) is not None


def is_option_name(token, /):
    """Either a short or a long flag."""
    return is_short_option_name(token) or is_long_option_name(token)


def is_variadic_marker(token, /):
    return VARIADIC_MARKER in token


def is_required_signature(token, /):
    return _REQUIRED_PATTERN.fullmatch(token) is not None


def is_optional_signature(token, /):
    return _OPTIONAL_PATTERN.fullmatch(token) is not None


def is_option_assignment(token, /):
    """
    True for "--flag=value" and "-f=value".

    Only the part before the first "=" is checked; the value may be anything,
    including an empty string or more "=" characters.
    """
    flag, separator, _ = token.partition("=")
    return bool(separator) and is_option_name(flag)


def is_variadic_terminator(token, /):
    return token == VARIADIC_TERMINATOR


def capitalize(word, /):
    """Upper-case the first character only ("dryRun" stays "DryRun")."""
    return word[:1].upper() + word[1:]


def to_canonical_name(words, /):
    """
    Join words in camel case: the first lower-cased, the rest capitalized.

    An empty sequence yields "".
    """
    words = list(words)
    if not words:
        return ""
    first, *rest = words
    return first.lower() + "".join(map(capitalize, rest))


@functools.cache
def canonical_name(token, /):
    """
    Canonical lookup key for a raw argument name or a flag.

    Leading dashes are dropped before splitting, so the long flag, the bare
    name and the argument name all agree:
    "--dry-run", "dry-run" -> "dryRun".
    """
    return to_canonical_name(token.lstrip("-").split("-"))


def negated_flag(long, /):
    """"--verbose" -> "--no-verbose"."""
    return "--no-" + long.removeprefix("--")


__all__ = (
    "VARIADIC_MARKER",
    "VARIADIC_TERMINATOR",
    "is_valid_name",
    "is_short_option_name",
    "is_long_option_name",
    "is_option_name",
    "is_variadic_marker",
    "is_required_signature",
    "is_optional_signature",
    "is_option_assignment",
    "is_variadic_terminator",
    "capitalize",
    "to_canonical_name",
    "canonical_name",
    "negated_flag",
)
