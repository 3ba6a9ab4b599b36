"""
Helmsman command layer: build, compose, parse, and run command trees.

What this module provides
- Command: a named node owning positional Arguments, Options and
  sub-commands, plus a handler.
  • Registration validates names and shapes and rejects duplicates.
  • Option inheritance is a standing subscription: every option a parent
    registers (now or later) reaches the children that opted in.
  • parse() turns a token list into ParsedInput(args, opts, extra).
  • process() runs parse, then on_process hooks, then validators, then the handler.
  • dump() projects the whole tree into plain, serializable data.

- Factories and helpers:
  • command(...): build a Command around a handler function (or decorate one).
  • invoke(obj, prompt): run a Command from a string, a token list, or the
    process arguments, surfacing faults through faults.trigger().

Quick start
    from helmsman import Command, Argument, Option, invoke

    def handler(args, opts, extra):
        print(args["path"], opts["verbose"])

    tool = (
        Command("tool", shell=True, colorful=True)
        .add_arguments(Argument("path", required=True))
        .add_options(Option("-v", "--verbose", negatable=True, default=False))
        .with_handler(handler)
    )

    if __name__ == "__main__":
        invoke(tool)

Design notes
- A node holds arguments or sub-commands, never both.
- Each node owns a local -h/--help option that is never inherited.
- Parse state lives in a ParseContext allocated per call, never on the node,
  so a tree can be parsed any number of times (and concurrently).
"""
import asyncio
import difflib
import inspect
import logging
import re
import shlex
import sys
from collections import deque
from collections.abc import Iterable

from rich.text import Text

from . import presentation
from .arguments import Argument, Option
from .faults import *
from .parsing import ParseContext, consume, split_assignments
from .tokens import canonical_name, is_long_option_name, is_option_name, is_valid_name
from .utils import *

logger = logging.getLogger(__name__)


async def _resolve(result):
    """Await result when a hook, validator or handler returned an awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result


class CommandType(type):
    """
    Metaclass that makes Command introspectable.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics and rich UI.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      for consistent, human-friendly labels in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - command(name='build', descr=None, ...)
            """
            return "%s(%s)" % (type(self).__typename__, ", ".join("%s=%r" % pair for pair in self.__rich_repr__()))
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_identity(cls, metadata):
    """
    Validate name, descr and version.

    - name: dash-separated alphanumeric words; anything else raises InvalidNameError.
    - descr / version: Unset | str | Text, non-empty after trimming when given.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not is_valid_name(name):
        raise InvalidNameError(
            "invalid command name %r" % name,
            title="invalid command name",
            code=FaultCode.INVALID_NAME,
            name=name,
            hint="use dash-separated letters and digits (for example: build-all)",
            docs=getdoc(FaultCode.INVALID_NAME),
        )

    for key in ("descr", "version"):
        if not isinstance(value := metadata[key], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} '{key}' must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} '{key}' cannot be empty")
        metadata[key] = value


def _sanitize_policies(cls, metadata):
    """
    Validate inheritance and parsing policies.

    - exclude: long flags (e.g., "--dry-run") the node refuses to inherit.
    - inherit, consume_unknown_options, consume_unknown_arguments, shell, fancy,
      colorful: normalized to bool.
    """
    if isinstance(metadata["exclude"], str) or not isinstance(metadata["exclude"], Iterable):
        raise TypeError(f"{cls.__typename__} 'exclude' must be an iterable of strings")

    exclude = []
    for flag in metadata["exclude"]:
        if not isinstance(flag, str):
            raise TypeError(f"{cls.__typename__} 'exclude' must be an iterable of strings")
        if not is_long_option_name(flag):
            raise InvalidNameError(
                "invalid long option name %r in inheritance exclusions" % flag,
                title="invalid long option name",
                code=FaultCode.INVALID_LONG_NAME,
                name=flag,
                hint="exclusions are long flags with two leading dashes (for example: --verbose)",
                docs=getdoc(FaultCode.INVALID_LONG_NAME),
            )
        exclude.append(flag)
    metadata["exclude"] = tuple(exclude)

    for key in ("inherit", "consume_unknown_options", "consume_unknown_arguments", "shell", "fancy", "colorful"):
        metadata[key] = bool(metadata[key])


def _suggest(token, candidates):
    """Closest candidate for a mistyped token, or None."""
    try:
        return difflib.get_close_matches(token, candidates, 1)[0]
    except IndexError:
        return None


class Command(metaclass=CommandType):
    """
    Named node of a command tree.

    Responsibilities
    - Definitions: ordered Arguments, Options keyed by canonical name (with
      short-flag and negation lookup tables), and named children.
    - Inheritance: children created with inherit=True subscribe to this node
      and receive every option it registers, except -h/--help and the long
      flags listed in the child's exclude.
    - Parsing: recursive descent over a token queue (see parse()).
    - Processing: parse -> on_process hooks -> validators -> handler (see process()).
    - Rendering: help/version through helmsman.presentation (rich).

    Notes
    - Container properties are exposed as copies (see mirror()).
    - Definitions are fixed once registered; nothing is ever unregistered.
    """

    __introspectable__ = (
        "name",
        "descr",
        "version",
        "handler",
        "arguments",
        "options",
        "children",
        "inherit",
        "exclude",
        "consume_unknown_options",
        "consume_unknown_arguments",
        "shell",
        "fancy",
        "colorful",
    )

    # No children: repr has to terminate on cyclic trees.
    __displayable__ = (
        "name",
        "descr",
        "version",
        "arguments",
        "options",
        "inherit",
        "shell",
        "fancy",
        "colorful",
    )

    def __new__(
            cls,
            name,
            /,
            descr=Unset,
            version=Unset,
            *,
            inherit=True,
            exclude=(),
            consume_unknown_options=False,
            consume_unknown_arguments=True,
            shell=False,
            fancy=False,
            colorful=False
    ):
        """
        Construct a Command node.

        Parameters
        - name: str
          Dash-separated alphanumeric words; routing token for sub-commands.
        - descr, version: Unset | str | Text
          Help metadata. Unset becomes None.
        - inherit: bool
          Subscribe to the parent's options once attached as a sub-command.
        - exclude: Iterable[str]
          Long flags that must not be inherited.
        - consume_unknown_options: bool
          Collect unknown flags into extra instead of failing.
        - consume_unknown_arguments: bool
          Collect unclaimed positional tokens into extra instead of failing.
        - shell, fancy, colorful: bool
          Runtime presentation: shell mode prints faults and exits instead of
          raising; fancy wraps output in panels; colorful enables styles.

        Raises
        - InvalidNameError on an invalid name or exclusion flag.
        - TypeError/ValueError on wrongly typed or empty metadata.
        """
        metadata = {
            "name": name,
            "descr": descr,
            "version": version,
            "inherit": inherit,
            "exclude": exclude,
            "consume_unknown_options": consume_unknown_options,
            "consume_unknown_arguments": consume_unknown_arguments,
            "shell": shell,
            "fancy": fancy,
            "colorful": colorful,
        }
        _sanitize_identity(cls, metadata)
        _sanitize_policies(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, coalesce(object))

        self._handler = None
        self._help_handler = self._helper
        self._version_handler = self._versioner
        self._version_option = None
        self._arguments = []
        self._options = {}
        self._shorts = {}
        self._negations = {}
        self._children = {}
        self._registry = []
        self._dependents = []
        self._inherited = set()

        # Every node owns its help option; it is never propagated.
        self._help = Option("-h", "--help", descr="display help for command", on_parse=self._on_help)
        self._attach(self._help)
        return self

    # ── Builders ──────────────────────────────────────────────────────────────

    def with_description(self, descr, /):
        metadata = {"name": self._name, "descr": descr, "version": Unset}
        _sanitize_identity(type(self), metadata)
        if metadata["descr"] is Unset:
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        self._descr = metadata["descr"]
        return self

    def with_version(self, version, handler=Unset, /):
        """
        Set the version and register -v/--version.

        The option's on_parse calls handler(definition) with this node's dump();
        by default the version is rendered and the process exits. An inherited
        option holding --version or -v is replaced by this node's own.
        """
        metadata = {"name": self._name, "descr": Unset, "version": version}
        _sanitize_identity(type(self), metadata)
        if metadata["version"] is Unset:
            raise TypeError(f"{type(self).__typename__} 'version' must be a string")
        if handler is not Unset and not callable(handler):
            raise TypeError("with_version() handler must be callable")

        self._version = metadata["version"]
        self._version_handler = coalesce(handler, self._versioner)
        if self._version_option is None:
            option = Option("-v", "--version", descr="display version for command", on_parse=self._on_version)
            for other in {self._options.get(option.canonical), self._options.get(self._shorts.get(option.short))}:
                if other in self._inherited:
                    self._detach(other)
            self.add_options(option)
            self._version_option = option
        return self

    def with_handler(self, handler, /):
        """Set handler(args, opts, extra); it may be a coroutine function."""
        if not callable(handler):
            raise TypeError("with_handler() argument must be callable")
        self._handler = handler
        return self

    def with_help_handler(self, handler, /):
        """Replace the help handler; it receives this node's dump()."""
        if not callable(handler):
            raise TypeError("with_help_handler() argument must be callable")
        self._help_handler = handler
        return self

    # ── Registration & inheritance ────────────────────────────────────────────

    def add_arguments(self, *arguments):
        """
        Append positional definitions, in order.

        Raises
        - ArgumentsAndSubcommandsError: this node already has sub-commands.
        - DuplicateArgumentError: an argument with the same canonical name exists.
        """
        for argument in arguments:
            if not isinstance(argument, Argument):
                raise TypeError("add_arguments() arguments must be arguments")
            if self._children:
                raise ArgumentsAndSubcommandsError(
                    "command %r can register either arguments or sub-commands, not both" % self._name,
                    title="arguments and sub-commands",
                    code=FaultCode.ARGUMENTS_AND_SUBCOMMANDS,
                    name=argument.name,
                    hint="move %r into a dedicated sub-command" % argument.name,
                    docs=getdoc(FaultCode.ARGUMENTS_AND_SUBCOMMANDS),
                )
            if any(argument.canonical == other.canonical for other in self._arguments):
                raise DuplicateArgumentError(
                    "argument %r is already registered on command %r" % (argument.name, self._name),
                    title="duplicate argument",
                    code=FaultCode.DUPLICATE_ARGUMENT,
                    name=argument.name,
                    hint="rename one of the arguments",
                    docs=getdoc(FaultCode.DUPLICATE_ARGUMENT),
                )
            self._arguments.append(argument)
            self._registry.append(argument)
            logger.debug("registered argument %r on %r", argument.name, self._name)
        return self

    def add_options(self, *options):
        """
        Register options and push them down to every subscribed child.

        Raises
        - DuplicateOptionError: same canonical (long) name or same short flag.
        """
        for option in options:
            if not isinstance(option, Option):
                raise TypeError("add_options() arguments must be options")
            for taken, flag in ((option.canonical in self._options, option.long), (option.short in self._shorts, option.short)):
                if taken:
                    raise DuplicateOptionError(
                        "option %r is already registered on command %r" % (flag, self._name),
                        title="duplicate option",
                        code=FaultCode.DUPLICATE_OPTION,
                        name=flag,
                        hint="pick another flag for %r" % option.long,
                        docs=getdoc(FaultCode.DUPLICATE_OPTION),
                    )
            self._attach(option)
            logger.debug("registered option %r on %r", option.long, self._name)
            for child in self._dependents:
                self._propagate(child)
        return self

    def add_sub_commands(self, *commands):
        """
        Attach children by name; children with inherit=True subscribe to options.

        Raises
        - ArgumentsAndSubcommandsError: this node already has arguments.
        - DuplicateCommandError: a child with the same name exists.
        """
        for command in commands:
            if not isinstance(command, Command):
                raise TypeError("add_sub_commands() arguments must be commands")
            if self._arguments:
                raise ArgumentsAndSubcommandsError(
                    "command %r can register either arguments or sub-commands, not both" % self._name,
                    title="arguments and sub-commands",
                    code=FaultCode.ARGUMENTS_AND_SUBCOMMANDS,
                    name=command.name,
                    hint="move the arguments of %r into a dedicated sub-command" % self._name,
                    docs=getdoc(FaultCode.ARGUMENTS_AND_SUBCOMMANDS),
                )
            if command.name in self._children:
                raise DuplicateCommandError(
                    "command %r is already a sub-command of %r" % (command.name, self._name),
                    title="duplicate sub-command",
                    code=FaultCode.DUPLICATE_COMMAND,
                    name=command.name,
                    hint="rename one of the sub-commands",
                    docs=getdoc(FaultCode.DUPLICATE_COMMAND),
                )
            self._children[command.name] = command
            logger.debug("attached %r under %r", command.name, self._name)
            if command.inherit:
                self._dependents.append(command)
                self._propagate(command)
        return self

    def _attach(self, option):
        self._options[option.canonical] = option
        self._shorts[option.short] = option.canonical
        if option.negatable:
            self._negations[option.negation] = option.canonical
        self._registry.append(option)

    def _propagate(self, child):
        """
        Copy every option child does not have yet, then cascade to its subscribers.

        Skipped: this node's help option, flags in child.exclude, and options the
        child already owns by canonical name or short flag (the child's wins).
        """
        for option in list(self._options.values()):
            if option is self._help or option.long in child._exclude:
                continue
            if option.canonical in child._options or option.short in child._shorts:
                continue
            child._attach(option)
            child._inherited.add(option)
            logger.debug("%r inherited option %r from %r", child._name, option.long, self._name)
            for grandchild in child._dependents:
                child._propagate(grandchild)

    def _detach(self, option):
        """
        Drop an inherited option, along with the copies subscribers received through this node.
        """
        del self._options[option.canonical]
        del self._shorts[option.short]
        if option.negatable:
            del self._negations[option.negation]
        self._registry.remove(option)
        self._inherited.discard(option)
        logger.debug("%r dropped inherited option %r", self._name, option.long)
        for child in self._dependents:
            if child._options.get(option.canonical) is option and option in child._inherited:
                child._detach(option)

    # ── Parsing ───────────────────────────────────────────────────────────────

    def _tokenize(self, tokens, raw):
        if isinstance(tokens, str) or not isinstance(tokens, Iterable):
            raise TypeError("tokens must be an iterable of strings")
        tokens = list(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("tokens must be an iterable of strings")
        return deque(split_assignments(tokens if raw else tokens[2:]))

    def parse(self, tokens, /, *, raw=False):
        """
        Parse tokens against this tree without running process hooks.

        Parameters
        - tokens: Iterable[str]
          The full process argument list (interpreter and script first) unless
          raw is True, in which case every token is significant.
        - raw: bool
          Keep the first two tokens.

        Returns
        - ParsedInput(args, opts, extra) of the command the tokens routed to.

        Raises
        - ParseError subclasses (unknown/duplicated option, unknown sub-command,
          missing value, unexpected argument) and whatever on_parse hooks raise.
        """
        context = ParseContext()
        self._parse(self._tokenize(tokens, raw), context)
        return context.input

    def _parse(self, queue, context):
        """
        Consume queue as this node, returning the node that finalized the pass.
        """
        pending = deque(self._arguments)
        while queue:
            token = queue[0]
            if token == self._name:
                queue.popleft()
                continue

            if token in self._children:
                queue.popleft()
                logger.debug("routing from %r into %r", self._name, token)
                return self._children[token]._parse(queue, context)

            if is_option_name(token):
                self._parse_option(queue, context)
            elif pending:
                argument = pending.popleft()
                context.bind_argument(argument, consume(argument, queue))
            elif self._children:
                suggestion = _suggest(token, self._children)
                raise UnknownSubcommandError(
                    "unknown sub-command %r for command %r" % (token, self._name),
                    title="unknown sub-command",
                    code=FaultCode.UNKNOWN_SUBCOMMAND,
                    name=token,
                    suggestion=suggestion,
                    hint=("did you mean %r? " % suggestion if suggestion else "")
                         + "run '%s --help' to list the sub-commands" % self._name,
                    docs=getdoc(FaultCode.UNKNOWN_SUBCOMMAND),
                )
            elif self._consume_unknown_arguments:
                context.input.extra.append(queue.popleft())
            else:
                raise UnexpectedArgumentError(
                    "unexpected argument %r for command %r" % (token, self._name),
                    title="unexpected argument",
                    code=FaultCode.UNEXPECTED_ARGUMENT,
                    name=token,
                    hint="remove the extra input, run '%s --help' to see what is accepted" % self._name,
                    docs=getdoc(FaultCode.UNEXPECTED_ARGUMENT),
                )

        self._finalize(pending, context)
        return self

    def _parse_option(self, queue, context):
        flag = queue.popleft()
        canonical = canonical_name(flag) if is_long_option_name(flag) else self._shorts.get(flag)

        negated = False
        if (option := self._options.get(canonical)) is None or flag not in option.names:
            if flag in self._negations:
                option, negated = self._options[self._negations[flag]], True
            elif self._consume_unknown_options:
                context.input.extra.append(flag)
                return
            else:
                suggestion = _suggest(flag, [*self._shorts, *(other.long for other in self._options.values())])
                raise UnknownOptionError(
                    "unknown option %r for command %r" % (flag, self._name),
                    title="unknown option",
                    code=FaultCode.UNKNOWN_OPTION,
                    name=flag,
                    suggestion=suggestion,
                    hint=("did you mean %r? " % suggestion if suggestion else "")
                         + "run '%s --help' to see all options" % self._name,
                    docs=getdoc(FaultCode.UNKNOWN_OPTION),
                )

        if option in context.bound:
            raise DuplicatedOptionError(
                "option %r was given more than once" % option.long,
                title="duplicated option",
                code=FaultCode.DUPLICATED_OPTION,
                name=option.canonical,
                hint="keep a single %s" % option.long,
                docs=getdoc(FaultCode.DUPLICATED_OPTION),
            )

        if negated:
            value = False
        elif option.arguments:
            value = {argument.canonical: consume(argument, queue) for argument in option.arguments}
            if len(value) == 1:
                value, = value.values()
        else:
            value = True

        context.bind_option(option, value)

    def _finalize(self, pending, context):
        """
        Bind defaults for everything left unbound; required leftovers fail.

        A required variadic argument that was never reached binds [], the same
        as one that was reached but captured nothing.
        """
        for canonical, option in self._options.items():
            if option in context.bound:
                continue
            if option.required:
                raise ExpectedButGotError(
                    "expected a value for %r but got nothing" % option.long,
                    title="missing option",
                    code=FaultCode.EXPECTED_BUT_GOT,
                    name=canonical,
                    hint="pass %s, run '%s --help' for its form" % (option.long, self._name),
                    docs=getdoc(FaultCode.EXPECTED_BUT_GOT),
                )
            context.input.opts[canonical] = option.default

        for argument in pending:
            if argument.required and argument.variadic:
                context.input.args[argument.canonical] = []
                continue
            if argument.required:
                raise ExpectedButGotError(
                    "expected a value for %r but got nothing" % argument.name,
                    title="missing argument",
                    code=FaultCode.EXPECTED_BUT_GOT,
                    name=argument.canonical,
                    hint="add the missing value, run '%s --help' to see the expected order" % self._name,
                    docs=getdoc(FaultCode.EXPECTED_BUT_GOT),
                )
            context.input.args[argument.canonical] = argument.default

    # ── Processing ────────────────────────────────────────────────────────────

    def _check_handlers(self):
        """
        Fail with MissingHandlerError on the first reachable node without a handler.

        Depth-first over children in registration order; each node is visited once.
        """
        visited = set()

        def visit(command):
            if command in visited:
                return
            visited.add(command)
            if command._handler is None:
                raise MissingHandlerError(
                    "no handler is defined for command %r" % command._name,
                    title="missing handler",
                    code=FaultCode.MISSING_HANDLER,
                    command=command,
                    name=command._name,
                    hint="call with_handler() on %r" % command._name,
                    docs=getdoc(FaultCode.MISSING_HANDLER),
                )
            for child in command._children.values():
                visit(child)

        visit(self)

    async def _validate(self, definition, value, parsed):
        if definition.validator is None:
            return
        result = await _resolve(definition.validator(value, parsed))
        if not isinstance(result, str) and result is not False:
            return

        kind = "argument" if isinstance(definition, Argument) else "option"
        reason = result if isinstance(result, str) else None
        raise ValidationError(
            "invalid value %r for %s %r%s" % (value, kind, definition.canonical, ": %s" % reason if reason is not None else "."),
            title="invalid %s value" % kind,
            code=FaultCode.VALIDATION_FAILED,
            name=definition.canonical,
            value=value,
            reason=reason,
            hint="check the accepted values with '%s --help'" % self._name,
            docs=getdoc(FaultCode.VALIDATION_FAILED),
        )

    def _assigner(self, definition, bucket, parsed):
        @rename("assign")
        async def assign(value, /):
            """Validate value, then rebind it; a rejected value leaves the binding untouched."""
            await self._validate(definition, value, parsed)
            bucket[definition.canonical] = value
        return assign

    async def process(self, tokens, /, *, raw=False):
        """
        Parse tokens and run the resolved command.

        Steps
        1. every node reachable from here must have a handler;
        2. parse, resolving the command the tokens route to;
        3. on_process hooks, one at a time: first the options bound on ancestors
           before routing, then the resolved command's definitions in
           registration order (arguments and options interleaved); each receives
           (value, parsed, assign);
        4. every validator, arguments first, then options (ancestor-bound first);
        5. handler(args, opts, extra), awaited when it returns an awaitable.

        Returns
        - Whatever the handler returns.

        Raises
        - MissingHandlerError, ParseError subclasses, ValidationError, and any
          exception raised by hooks, validators or the handler.
        """
        self._check_handlers()
        context = ParseContext()
        command = self._parse(self._tokenize(tokens, raw), context)
        parsed = context.input
        logger.debug("processing %r with %r", command._name, parsed)

        # Options bound on the route before the terminal node; a terminal option
        # with the same canonical name owns the binding.
        routed = [option for option in context.bound if option.canonical not in command._options]

        for definition in [*routed, *command._registry]:
            if definition.on_process is None:
                continue
            bucket = parsed.args if isinstance(definition, Argument) else parsed.opts
            await _resolve(definition.on_process(
                bucket[definition.canonical], parsed, command._assigner(definition, bucket, parsed)
            ))

        for argument in command._arguments:
            await command._validate(argument, parsed.args[argument.canonical], parsed)
        for option in [*routed, *command._options.values()]:
            await command._validate(option, parsed.opts[option.canonical], parsed)

        return await _resolve(command._handler(parsed.args, parsed.opts, parsed.extra))

    # ── Introspection & rendering ─────────────────────────────────────────────

    def dump(self):
        """
        Serializable projection of this node and its sub-tree.

        Keys: name, descr, version, arguments, options, children. Nodes already
        emitted earlier in the walk are omitted, so cyclic trees terminate.
        No hook runs and no parse state is touched.
        """
        return self._dump(set())

    def _dump(self, visited):
        visited.add(self)
        return {
            "name": self._name,
            "descr": str(self._descr) if self._descr is not None else None,
            "version": str(self._version) if self._version is not None else None,
            "arguments": [argument.definition() for argument in self._arguments],
            "options": [option.definition() for option in self._options.values()],
            "children": [child._dump(visited) for child in self._children.values() if child not in visited],
        }

    def help(self):
        """Call the help handler with this node's dump()."""
        return self._help_handler(self.dump())

    def _on_help(self, value, parsed):
        self.help()

    def _on_version(self, value, parsed):
        self._version_handler(self.dump())

    def _helper(self, definition):
        """Default help handler: render help and exit."""
        presentation.show_help(definition, fancy=self._fancy, colorful=self._colorful)
        sys.exit(0)

    def _versioner(self, definition):
        """Default version handler: render the version and exit."""
        presentation.show_version(definition, fancy=self._fancy, colorful=self._colorful)
        sys.exit(0)

    def __invoke__(self, prompt=Unset):
        """
        Execute this command with a token stream.

        Parameters
        - prompt:
          • Unset: the process arguments (interpreter and script are stripped).
          • str: shell-like string; split via shlex.split.
          • Iterable[str]: pre-tokenized sequence.

        Behavior
        - Runs process() on a fresh asyncio loop and returns the handler result.
        - CommandException is routed through faults.trigger(): raised again when
          shell is False, printed (then exit status 1) when shell is True.
        """
        if prompt is Unset:
            tokens, raw = [sys.executable, *sys.argv], False
        elif isinstance(prompt, str):
            tokens, raw = shlex.split(prompt), True
        elif isinstance(prompt, Iterable):
            tokens, raw = list(prompt), True
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")

        try:
            return asyncio.run(self.process(tokens, raw=raw))
        except CommandException as fault:
            trigger(fault, tool=self, shell=self._shell, fancy=self._fancy, colorful=self._colorful)


def command(source=Unset, /, **options):
    """
    Create a Command around a handler, or return a decorator that does.

    Invocation modes
    - Direct:    tool = command(handler, name="tool")
    - Decorator: @command(shell=True)
                 def tool(args, opts, extra): ...

    Defaults
    - name: the function name with underscores turned into dashes.
    - descr: the function docstring, when it has one.

    Any other keyword is forwarded to Command().
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        settings = dict(options)
        name = settings.pop("name", Unset)
        name = coalesce(name, re.sub(r"_+", "-", source.__name__.strip("_")))
        if (descr := inspect.getdoc(source)) and "descr" not in settings:
            settings["descr"] = descr
        return Command(name, **settings).with_handler(source)

    return wrapper(source) if source is not Unset else wrapper


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands or plain handler functions.

    Parameters
    - object: an instance providing __invoke__(prompt) or a plain callable
      (wrapped through command() first).
    - prompt: Unset, a shell-like string, or an iterable of tokens.

    Returns
    - The handler result.

    Raises
    - TypeError: when 'object' cannot be invoked via the above contract.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    if callable(object):
        return invoke(command(object), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "command",
    "invoke",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del CommandType
