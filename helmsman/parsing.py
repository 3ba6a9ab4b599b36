"""
Helmsman parse state and value consumption.

What this module provides
- ParsedInput: the (args, opts, extra) triple produced by one parse pass.
- ParseContext: the per-call accumulator threaded through recursive parsing.
  It is allocated fresh for every parse()/process() call, so one Command can
  be parsed repeatedly (or from several coroutines) without sharing state.
- split_assignments(): rewrites "--flag=value" into "--flag", "value".
- consume(): binds one Argument definition against the head of a token queue.

Consumption rules (positional and option-nested arguments alike)
- A token is taken only if it is not itself an option flag.
- Variadic definitions keep taking tokens until the queue empties, a flag
  shows up, or "--" is met; the terminator is dropped.
- Nothing taken: variadic -> [], required -> ExpectedButGotError,
  otherwise the declared default.
"""
from collections import namedtuple

from .faults import *
from .tokens import is_option_assignment, is_option_name, is_variadic_terminator

ParsedInput = namedtuple("ParsedInput", (
    "args",
    "opts",
    "extra",
))
ParsedInput.__doc__ = """
Result of one parse pass.

- args: canonical name -> bound value, for positional arguments.
- opts: canonical name -> bound value, for options.
- extra: tokens collected because nothing claimed them.
"""


class ParseContext:
    """
    Mutable state of a single parse pass.

    - input: the ParsedInput being filled.
    - bound: options already bound in this pass, in binding order. Membership
      is by identity, so a second occurrence of the same definition is a
      DuplicatedOptionError while an unrelated option sharing its canonical
      name is not.
    """
    __slots__ = ("input", "bound")

    def __init__(self):
        self.input = ParsedInput({}, {}, [])
        self.bound = []

    def __repr__(self):
        return f"parse-context(input={self.input!r}, bound={self.bound!r})"

    def bind_argument(self, argument, value):
        """Bind a positional value and fire its on_parse hook."""
        self.input.args[argument.canonical] = value
        if argument.on_parse is not None:
            argument.on_parse(value, self.input)

    def bind_option(self, option, value):
        """Bind an option value, mark it as seen, and fire its on_parse hook."""
        self.input.opts[option.canonical] = value
        self.bound.append(option)
        if option.on_parse is not None:
            option.on_parse(value, self.input)


def split_assignments(tokens, /):
    """
    Rewrite every "--flag=value" / "-f=value" token into two tokens.

    Only the first "=" splits: "--query=a=b" -> "--query", "a=b".
    """
    result = []
    for token in tokens:
        if is_option_assignment(token):
            flag, _, value = token.partition("=")
            result.extend((flag, value))
        else:
            result.append(token)
    return result


def consume(argument, queue, /):
    """
    Consume the value of one Argument definition from the head of queue.

    Parameters
    - argument: Argument
    - queue: deque[str], consumed in place.

    Returns
    - str for single arguments, list[str] for variadic ones, or the default.

    Raises
    - ExpectedButGotError: required, non-variadic, and no usable token.
    """
    if queue and not is_option_name(queue[0]):
        if not argument.variadic:
            return queue.popleft()
        values = []
        while queue and not is_option_name(queue[0]):
            if is_variadic_terminator(token := queue.popleft()):
                break
            values.append(token)
        return values

    if argument.variadic:
        return []

    if argument.required:
        raise ExpectedButGotError(
            "expected a value for %r but got %s" % (argument.name, "%r" % queue[0] if queue else "nothing"),
            title="missing value",
            code=FaultCode.EXPECTED_BUT_GOT,
            name=argument.canonical,
            hint="pass a value for %r before any other option" % argument.name,
            docs=getdoc(FaultCode.EXPECTED_BUT_GOT),
        )

    return argument.default


__all__ = (
    "ParsedInput",
    "ParseContext",
)
