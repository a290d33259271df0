r"""
cmdbind argument specifications and field descriptors.

Overview
- ArgumentFlag: how often a field may be given, and whether it must be.
- Argument: one entry of a destination's specification. Declared as a class
  attribute of the destination type (it doubles as a data descriptor) or listed
  explicitly as (attribute, Argument) pairs.
- Field: the parser's binding state for one destination field (names, flags,
  default, "seen" flag, collected values). Built once per parser from an
  Argument; mutated by set_value() during a parse and closed by finish().
- fields(specification, trigger): enumerate the Fields of a specification in
  declaration order.

Metadata (sanitized on construction)
- kind: a value kind or a Python type (see cmdbind.kinds.resolve).
- flags: Unset | ArgumentFlag; defaults to AT_MOST_ONCE for scalars and
  MULTIPLE_UNIQUE for collections.
- name: long name, defaults to the attribute name.
- short: Unset (implicit: first character of the long name, dropped on
  collision) | None or "" (no short name) | str (explicit).
- alias: compatibility name, an extra spelling of the long name.
- help: short help text.
- default: value written when the field is never given; type-checked.
- positional: receives the tokens that carry no prefix (one per parser).

Quick example:
    >>> from cmdbind import Argument, ArgumentFlag, INT, BOOL, array
    >>> class Options:
    ...     count = Argument(INT, ArgumentFlag.REQUIRED, short="c")
    ...     verbose = Argument(BOOL)
    ...     tags = Argument(array(str))
"""
import functools
import operator
import re
from collections.abc import Mapping
from enum import IntFlag

from .faults import (
    DuplicateArgumentError,
    DuplicateArgumentValueError,
    BadArgumentValueError,
    MissingRequiredArgumentError,
)
from .kinds import BOOL, STRING, resolve
from .utils import *


class ArgumentFlag(IntFlag):
    """
    occurrence rules of a field.

    - AT_MOST_ONCE: default for scalars, a second occurrence is a duplicate.
    - REQUIRED: the field must be given at least once.
    - UNIQUE: a collection rejects a value it already holds.
    - MULTIPLE: the field may be given many times (scalars keep the last value).
    """
    AT_MOST_ONCE = 0
    REQUIRED = 1
    UNIQUE = 2
    MULTIPLE = 4
    LAST_OCCURRENCE_WINS = MULTIPLE
    MULTIPLE_UNIQUE = MULTIPLE | UNIQUE


class ArgumentType(type):
    """
    Metaclass exposing the names in __introspectable__ as read-only properties
    and giving instances a stable __repr__/__rich_repr__.
    """
    __introspectable__ = ()

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
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


_NAME = re.compile(r"[^\s:=]+")


def _sanitize_name(cls, field, name, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    elif not _NAME.fullmatch(name):
        raise ValueError(f"{cls.__typename__} {field!r} must be non-empty without spaces, ':' or '='")


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize an Argument's metadata in place.

    Raises
    - TypeError: wrong types (kind, names, help, default vs kind, setter).
    - ValueError: contradictory configuration (required with a default, unique
      scalar, collection that does not allow multiple values, named positional).
    """
    kind = metadata["kind"] = resolve(metadata["kind"])

    if (flags := metadata["flags"]) is Unset:
        flags = ArgumentFlag.MULTIPLE_UNIQUE if kind.collection else ArgumentFlag.AT_MOST_ONCE
    elif not isinstance(flags, int) or isinstance(flags, bool):
        raise TypeError(f"{cls.__typename__} 'flags' must be an argument flag")
    flags = metadata["flags"] = ArgumentFlag(flags)

    if ArgumentFlag.UNIQUE in flags and not kind.collection:
        raise ValueError(f"{cls.__typename__} 'unique' only applies to collections")
    if kind.collection and ArgumentFlag.MULTIPLE not in flags:
        raise ValueError(f"{cls.__typename__} collections must allow multiple values")

    if (name := metadata["name"]) is not Unset:
        _sanitize_name(cls, "name", name)

    if (short := metadata["short"]) == "":
        metadata["short"] = None
    elif short is not Unset and short is not None:
        _sanitize_name(cls, "short", short)

    if (alias := metadata["alias"]) is not None:
        _sanitize_name(cls, "alias", alias)

    if not isinstance(metadata["help"], str | None):
        raise TypeError(f"{cls.__typename__} 'help' must be a string")

    if (default := metadata["default"]) is not None:
        if ArgumentFlag.REQUIRED in flags:
            raise ValueError(f"required {cls.__typename__} cannot have a default value")
        if not kind.accepts(default):
            raise TypeError(f"{cls.__typename__} default {default!r} does not match kind {kind!r}")

    if metadata["positional"]:
        if kind is BOOL:
            raise TypeError(f"positional {cls.__typename__} cannot be a boolean")
        if short is not Unset:
            raise ValueError(f"positional {cls.__typename__} cannot have a short name")
        if alias is not None:
            raise ValueError(f"positional {cls.__typename__} cannot have an alias")

    if metadata["setter"] is not Unset and not callable(metadata["setter"]):
        raise TypeError(f"{cls.__typename__} 'setter' must be callable")


class Argument(metaclass=ArgumentType):
    """
    Declarative specification entry for one destination field.

    Used as a class attribute, an Argument is also a data descriptor: reading
    the attribute on an instance yields the bound value, or None until the
    parser (or anyone else) writes one.
    """

    __introspectable__ = (
        "kind",
        "flags",
        "name",
        "short",
        "alias",
        "help",
        "default",
        "positional",
    )

    def __init__(
            self,
            kind=STRING,
            flags=Unset,
            /,
            *,
            name=Unset,
            short=Unset,
            alias=None,
            help=None,
            default=None,
            positional=False,
            setter=Unset
    ):
        metadata = {
            "kind": kind,
            "flags": flags,
            "name": name,
            "short": short,
            "alias": alias,
            "help": help,
            "default": default,
            "positional": bool(positional),
            "setter": setter,
        }
        _sanitize_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._attribute = Unset

    def __set_name__(self, owner, name):
        self._attribute = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.__dict__.get(self._attribute)

    def __set__(self, instance, value):
        instance.__dict__[self._attribute] = value


class Field(metaclass=ArgumentType):
    """
    Binding state of one destination field for the lifetime of a parser.

    set_value() and finish() report problems through `trigger` (a callable
    receiving an ArgumentFault) and answer with booleans, never raising.
    """

    __introspectable__ = (
        "attribute",
        "long_name",
        "short_name",
        "compatibility_name",
        "kind",
        "flags",
        "default",
        "positional",
        "seen",
        "collected",
    )

    def __init__(self, attribute, argument, trigger, /):
        if not isinstance(argument, Argument):
            raise TypeError(f"{type(self).__typename__} needs an argument specification, got {argument!r}")
        _sanitize_name(type(self), "attribute", attribute)

        self._attribute = attribute
        self._trigger = trigger
        self._long_name = coalesce(argument.name, attribute)
        self._kind = argument.kind
        self._flags = argument.flags
        self._default = argument._default
        self._help = argument.help
        self._positional = argument.positional
        self.explicit_short = argument.short is not Unset

        if self._positional:
            self._short_name = None
            self._compatibility_name = None
        elif self.explicit_short:
            self._short_name = argument.short
            self._compatibility_name = argument.alias
        else:
            self._short_name = self._long_name[0]
            self._compatibility_name = argument.alias

        if self._kind is BOOL:
            # a "no" prefix on a boolean means false
            for name in (self._long_name, self._compatibility_name, self._short_name if self.explicit_short else None):
                if name and name.lower().startswith("no"):
                    raise ValueError(f"boolean {type(self).__typename__} name {name!r} cannot start with 'no'")

        self._setter = coalesce(argument._setter, functools.partial(_assign, attribute))
        self.reset()

    @property
    def boolean(self):
        return self._kind is BOOL

    @property
    def collection(self):
        return self._kind.collection

    @property
    def required(self):
        return ArgumentFlag.REQUIRED in self._flags

    @property
    def multiple(self):
        return ArgumentFlag.MULTIPLE in self._flags

    @property
    def unique(self):
        return ArgumentFlag.UNIQUE in self._flags

    def clear_short_name(self):
        self._short_name = None

    def reset(self):
        """
        Forget everything bound so far (seen flag, collected values).
        """
        self._seen = False
        self._collected = [] if self._kind.collection else None

    def set_value(self, text, destination, /):
        """
        Bind one textual value; return False when a fault was reported.

        The field counts as seen as soon as the duplicate check passes, even if
        the value then fails coercion.
        """
        if self._seen and not self.multiple:
            self._trigger(DuplicateArgumentError(
                "duplicate '%s' argument" % self._long_name,
                hint="give '%s' only once" % self._long_name,
                argument=self,
                token=text,
            ))
            return False
        self._seen = True

        try:
            value = self._kind.coerce(text)
        except ValueError:
            self._trigger(BadArgumentValueError(
                "'%s' is not a valid value for the '%s' command line option" % (coalesce(text, ""), self._long_name),
                hint="expected %s" % self.syntax,
                argument=self,
                token=text,
            ))
            return False

        if self._kind.collection:
            if self.unique and value in self._collected:
                self._trigger(DuplicateArgumentValueError(
                    "duplicate '%s' argument value '%s'" % (self._long_name, text),
                    hint="each value of '%s' may be given only once" % self._long_name,
                    argument=self,
                    token=text,
                ))
                return False
            self._collected.append(value)
        else:
            self._setter(destination, value)
        return True

    def finish(self, destination, /):
        """
        Apply the default, materialize collected values and check requiredness.

        Returns True when a missing-required fault was reported.
        """
        if not self._seen and self._default is not None:
            self._setter(destination, self._default)
        if self._kind.collection:
            self._setter(destination, list(self._collected))

        if self.required and not self._seen:
            if self._positional:
                message = "missing required argument '<%s>'" % self._long_name
                hint = "add a value without any prefix"
            else:
                message = "missing required argument '/%s'" % self._long_name
                hint = "add '/%s' to the command line" % self._long_name
            self._trigger(MissingRequiredArgumentError(message, hint=hint, argument=self))
            return True
        return False

    @property
    def syntax(self):
        if self._positional:
            return "<%s>" % self._long_name
        return self._kind.syntax(self._long_name)

    @property
    def help_text(self):
        segments = []
        if self._help:
            segments.append(self._help)
        if self._default is not None:
            segments.append("Default value: '%s'" % self._kind.render(self._default))
        if self._short_name:
            segments.append("(short form /%s)" % self._short_name)
        return " ".join(segments)


def _assign(attribute, destination, value, /):
    setattr(destination, attribute, value)


def fields(specification, trigger, /):
    """
    Enumerate the Fields of a specification, in declaration order.

    Accepted specifications
    - a class: every Argument class attribute, base classes first (a subclass
      redeclaring an attribute keeps the base's position).
    - a mapping {attribute: Argument}.
    - an iterable of (attribute, Argument) pairs.
    """
    if isinstance(specification, type):
        declared = {}
        for klass in reversed(specification.__mro__):
            for attribute, object in vars(klass).items():
                if isinstance(object, Argument):
                    declared[attribute] = object
        pairs = declared.items()
    elif isinstance(specification, Mapping):
        pairs = specification.items()
    else:
        pairs = specification

    result = []
    attributes = set()
    for attribute, argument in pairs:
        if attribute in attributes:
            raise ValueError(f"attribute {attribute!r} is specified more than once")
        attributes.add(attribute)
        result.append(Field(attribute, argument, trigger))
    return result


__all__ = (
    "ArgumentFlag",
    "Argument",
    "Field",
    "fields",
)

# Keep the metaclass out of star-imports and the public surface.
del ArgumentType
