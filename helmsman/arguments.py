r"""
Helmsman argument and option definitions.

Overview
- Specs
  • Argument: positional definition (required/optional, single/variadic).
  • Option: named definition with exactly two flags (short, long), optionally
    carrying nested Arguments; zero nested arguments make it a boolean flag.

- Introspection & representation
  • DefinitionType metaclass provides stable __repr__/__rich_repr__ and exposes
    selected fields via read-only properties declared in __introspectable__.
  • definition() returns the plain, serializable projection used by dump().

Metadata (sanitized on construction)
- Shared
  • descr: Unset | str | Text (short help), non-empty when provided.
  • on_parse / on_process / validator: Unset | Callable.
- Argument
  • name: dash-separated alphanumeric words (e.g., "docker-compose-file").
  • required, variadic: bool (they may combine).
  • default: any value, returned when the argument is optional and absent.
- Option
  • names: exactly two flags, "-s" then "--long".
  • arguments: Iterable[Argument] with unique canonical names.
  • required, negatable: bool; default: any value.

Hooks
- on_parse(value, parsed): fired the instant a value is bound.
- on_process(value, parsed, assign): fired by the process pipeline; may be async.
- validator(value, parsed): str (reason) or False rejects; anything else accepts.

Quick example:
    >>> from helmsman import Argument, Option
    >>> owner = Option("-o", "--owner", arguments=[Argument("owner", required=True)])
    >>> owner.canonical
    'owner'
"""
import functools
import operator
import re
from collections.abc import Iterable

from rich.text import Text

from .faults import *
from .tokens import *
from .utils import *


class DefinitionType(type):
    """
    Metaclass that turns definition classes into introspectable specs.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
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
            - option(names=('-v', '--verbose'), required=False, ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
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


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate metadata shared by all definitions.

    - descr: optional short description. Unset becomes None; a provided string
      must be non-empty after trimming.
    - on_parse / on_process / validator: Unset or callable. Unset becomes None.

    Raises
    - TypeError: wrong types (non-string descr, non-callable hooks).
    - ValueError: empty description.

    Notes
    - Mutates the provided metadata dict in place.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    for hook in ("on_parse", "on_process", "validator"):
        if not callable(metadata[hook]) and metadata[hook] is not Unset:
            raise TypeError(f"{cls.__typename__} '{hook}' must be callable")
        metadata[hook] = coalesce(metadata[hook])

    metadata["required"] = bool(metadata["required"])


def _sanitize_argument_metadata(cls, metadata, /):
    """
    Internal: validate the name of a positional definition.

    The name must be a dash-separated run of alphanumeric words; it is used as
    written in help output and converted to its canonical key for binding.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not is_valid_name(name):
        raise InvalidNameError(
            "invalid argument name %r" % name,
            title="invalid argument name",
            code=FaultCode.INVALID_NAME,
            name=name,
            hint="use dash-separated letters and digits (for example: dry-run)",
            docs=getdoc(FaultCode.INVALID_NAME),
        )
    metadata["variadic"] = bool(metadata["variadic"])


def _sanitize_option_metadata(cls, metadata, /):
    r"""
    Internal: validate flags and nested arguments of an option.

    Responsibilities
    - names: exactly two strings; the first must be a short flag ("-x", "-my-opt"),
      the second a long flag ("--name", "--long-name"). Stored as a tuple.
    - arguments: iterable of Argument, no two sharing a canonical name. Stored as
      a tuple in declaration order.
    - negatable: normalized to bool.

    Raises
    - InvalidOptionNamesError: not exactly two names.
    - InvalidNameError: malformed short or long flag.
    - DuplicateArgumentError: nested arguments with the same canonical name.
    - TypeError: non-string names, non-Argument nested definitions.
    """
    names = tuple(metadata["names"])
    if len(names) != 2:
        raise InvalidOptionNamesError(
            "options must be given exactly two names (short and long), but got %r" % list(names),
            title="invalid option names",
            code=FaultCode.INVALID_OPTION_NAMES,
            names=names,
            hint="declare one short and one long flag (for example: '-v', '--verbose')",
            docs=getdoc(FaultCode.INVALID_OPTION_NAMES),
        )
    if not all(isinstance(name, str) for name in names):
        raise TypeError(f"{cls.__typename__} names must be strings")

    short, long = names
    if not is_short_option_name(short):
        raise InvalidNameError(
            "invalid short option name %r" % short,
            title="invalid short option name",
            code=FaultCode.INVALID_SHORT_NAME,
            name=short,
            hint="short flags take exactly one leading dash (for example: -v)",
            docs=getdoc(FaultCode.INVALID_SHORT_NAME),
        )
    if not is_long_option_name(long):
        raise InvalidNameError(
            "invalid long option name %r" % long,
            title="invalid long option name",
            code=FaultCode.INVALID_LONG_NAME,
            name=long,
            hint="long flags take exactly two leading dashes (for example: --verbose)",
            docs=getdoc(FaultCode.INVALID_LONG_NAME),
        )
    metadata["names"] = names

    if not isinstance(metadata["arguments"], Iterable):
        raise TypeError(f"{cls.__typename__} 'arguments' must be iterable")

    arguments = []
    for argument in metadata["arguments"]:
        if not isinstance(argument, Argument):
            raise TypeError(f"{cls.__typename__} 'arguments' must only contain arguments")
        if any(argument.canonical == other.canonical for other in arguments):
            raise DuplicateArgumentError(
                "argument %r is declared twice in option %r" % (argument.name, long),
                title="duplicate argument",
                code=FaultCode.DUPLICATE_ARGUMENT,
                name=argument.name,
                hint="give every nested argument of %s a distinct name" % long,
                docs=getdoc(FaultCode.DUPLICATE_ARGUMENT),
            )
        arguments.append(argument)
    metadata["arguments"] = tuple(arguments)

    metadata["negatable"] = bool(metadata["negatable"])


class Argument(metaclass=DefinitionType):
    """
    Positional definition.

    An Argument is bound, in declaration order, to the next token that is not
    an option flag. Variadic arguments keep taking tokens until the input ends,
    an option flag shows up, or the "--" terminator is met (and dropped).

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    - canonical: camel-cased lookup key ("my-arg" -> "myArg").
    """

    __introspectable__ = (
        "name",
        "required",
        "variadic",
        "default",
        "descr",
        "on_parse",
        "on_process",
        "validator",
    )

    __displayable__ = (
        "name",
        "required",
        "variadic",
        "default",
        "descr",
    )

    def __new__(
            cls,
            name,
            /,
            required=False,
            variadic=False,
            default=None,
            descr=Unset,
            *,
            on_parse=Unset,
            on_process=Unset,
            validator=Unset
    ):
        """
        Construct an Argument definition.

        Parameters
        - name: str
          Dash-separated alphanumeric words. Invalid names raise InvalidNameError.
        - required: bool
          A required argument with nothing left to consume is a parse error.
        - variadic: bool
          Capture zero or more consecutive tokens into a list.
        - default: Any
          Value bound when the argument is optional and absent. Not validated.
        - descr: Unset | str
          Short description for help. If Unset, becomes None.
        - on_parse, on_process, validator: Unset | Callable
          See module documentation for their signatures.
        """
        metadata = {
            "name": name,
            "required": required,
            "variadic": variadic,
            "default": default,
            "descr": descr,
            "on_parse": on_parse,
            "on_process": on_process,
            "validator": validator,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_argument_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def canonical(self):
        return canonical_name(self._name)

    def definition(self):
        """
        Serializable projection (no hooks): name, required, variadic, default, descr.
        """
        return {
            "name": self.name,
            "required": self.required,
            "variadic": self.variadic,
            "default": self.default,
            "descr": str(self.descr) if self.descr is not None else None,
        }


class Option(metaclass=DefinitionType):
    """
    Named definition with a short and a long flag.

    Binding
    - no nested arguments: the option binds True when its flag is seen.
    - nested arguments: each is consumed in order into a mapping keyed by
      canonical name; a single nested argument folds into the bare value.
    - negatable: "--no-<long>" binds False without consuming anything else.

    Properties
    - short / long: the two flags.
    - canonical: lookup key derived from the long flag ("--dry-run" -> "dryRun").
    - negation: the "--no-..." alias when negatable, otherwise None.
    """

    __introspectable__ = (
        "names",
        "arguments",
        "required",
        "negatable",
        "default",
        "descr",
        "on_parse",
        "on_process",
        "validator",
    )

    __displayable__ = (
        "names",
        "arguments",
        "required",
        "negatable",
        "default",
        "descr",
    )

    def __new__(
            cls,
            *names,
            arguments=(),
            required=False,
            negatable=False,
            default=None,
            descr=Unset,
            on_parse=Unset,
            on_process=Unset,
            validator=Unset
    ):
        """
        Construct an Option definition.

        Parameters
        - names: exactly two str, the short flag then the long flag.
        - arguments: Iterable[Argument]
          Nested values consumed right after the flag.
        - required: bool
          A required option missing from the input is a parse error.
        - negatable: bool
          Registers "--no-<long>" as an alias that binds False.
        - default: Any
          Value bound when the option is absent. Not validated.
        - descr: Unset | str
          Short description for help. If Unset, becomes None.
        - on_parse, on_process, validator: Unset | Callable
        """
        metadata = {
            "names": names,
            "arguments": arguments,
            "required": required,
            "negatable": negatable,
            "default": default,
            "descr": descr,
            "on_parse": on_parse,
            "on_process": on_process,
            "validator": validator,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_option_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def short(self):
        return self._names[0]

    @property
    def long(self):
        return self._names[1]

    @property
    def canonical(self):
        return canonical_name(self.long)

    @property
    def negation(self):
        return negated_flag(self.long) if self._negatable else None

    def definition(self):
        """
        Serializable projection (no hooks), nested arguments included.
        """
        return {
            "names": list(self.names),
            "required": self.required,
            "negatable": self.negatable,
            "default": self.default,
            "descr": str(self.descr) if self.descr is not None else None,
            "arguments": [argument.definition() for argument in self._arguments],
        }


__all__ = (
    # Classes (definitions)
    "Argument",
    "Option",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del DefinitionType
