r"""
Value kinds: the closed set of types a field can bind, and their coercion.

Kinds
- STRING  text passed through unchanged.
- BOOL    literals "true"/"false", any case.
- INT     signed 32-bit, base 10.
- UINT    unsigned 32-bit, base 10.
- EnumKind(enum_type)   a member of a Python enum, looked up by name (any case)
                        or by integer value; "?" means the member named "help".
- ArrayKind(element)    a collection of one of the scalar kinds above.

Contract
- coerce(text) returns the typed value or raises ValueError. Empty or absent
  text is never valid, whatever the kind.
- accepts(value) type-checks a configured default against the kind.
- render(value) spells a value for help text.
- syntax(name) spells the named-option form used in usage text.
"""
import builtins
import enum
import re
import types
import typing

_INTEGER = re.compile(r"\s*([+-]?[0-9]+)\s*", re.ASCII)


class ValueKind:
    """
    Base of the closed value-kind union.

    Subclasses override _convert(text); coerce() guards the empty-text rule once
    for every kind.
    """
    __slots__ = ("name",)

    collection = False

    def __init__(self, name, /):
        self.name = name

    def coerce(self, text, /):
        if not text:
            raise ValueError("empty value")
        return self._convert(text)

    def _convert(self, text, /):
        raise NotImplementedError

    def accepts(self, value, /):
        raise NotImplementedError

    def render(self, value, /):
        return str(value)

    def syntax(self, name, /):
        return "/%s:<%s>" % (name, self.name)

    def __repr__(self):
        return self.name.upper()


class _StringKind(ValueKind):
    __slots__ = ()

    def _convert(self, text, /):
        return text

    def accepts(self, value, /):
        return isinstance(value, str)


class _BoolKind(ValueKind):
    __slots__ = ()

    def _convert(self, text, /):
        match text.strip().lower():
            case "true":
                return True
            case "false":
                return False
        raise ValueError("%r is not a boolean literal" % text)

    def accepts(self, value, /):
        return isinstance(value, bool)

    def syntax(self, name, /):
        return "/[no]%s" % name


class _IntegerKind(ValueKind):
    __slots__ = ("minimum", "maximum")

    def __init__(self, name, minimum, maximum, /):
        super().__init__(name)
        self.minimum = minimum
        self.maximum = maximum

    def _convert(self, text, /):
        if not (match := _INTEGER.fullmatch(text)):
            raise ValueError("%r is not a base-10 integer" % text)
        value = int(match[1])
        if not self.minimum <= value <= self.maximum:
            raise ValueError("%r is out of range for %s" % (text, self.name))
        return value

    def accepts(self, value, /):
        return isinstance(value, int) and not isinstance(value, bool) and self.minimum <= value <= self.maximum


STRING = _StringKind("string")
BOOL = _BoolKind("bool")
INT = _IntegerKind("int", -2 ** 31, 2 ** 31 - 1)
UINT = _IntegerKind("uint", 0, 2 ** 32 - 1)


class EnumKind(ValueKind):
    """
    Kind backed by a Python enum; members keep their declaration order in
    usage text.
    """
    __slots__ = ("type",)

    def __init__(self, type, /):
        if not (isinstance(type, builtins.type) and issubclass(type, enum.Enum)):
            raise TypeError("EnumKind() argument must be an enum type")
        if not len(type):
            raise ValueError("EnumKind() enum type must declare at least one member")
        super().__init__(type.__name__)
        self.type = type

    @property
    def members(self):
        return tuple(self.type.__members__)

    def _convert(self, text, /):
        if text == "?":
            text = "help"
        lowered = text.strip().lower()
        for name, member in self.type.__members__.items():
            if name.lower() == lowered:
                return member
        if _INTEGER.fullmatch(text):
            try:
                return self.type(int(text))
            except ValueError:
                pass
        raise ValueError("%r is not a member of %s" % (text, self.name))

    def accepts(self, value, /):
        return isinstance(value, self.type)

    def render(self, value, /):
        return value.name

    def syntax(self, name, /):
        return "/%s:{%s}" % (name, "|".join(self.members))

    def __eq__(self, other):
        return isinstance(other, EnumKind) and other.type is self.type

    def __hash__(self):
        return hash(self.type)

    def __repr__(self):
        return "EnumKind(%s)" % self.name


class ArrayKind(ValueKind):
    """
    Collection of a scalar kind; values are collected and materialized as a list.
    """
    __slots__ = ("element",)

    collection = True

    def __init__(self, element, /):
        element = resolve(element)
        if element.collection:
            raise TypeError("collections of collections are not supported")
        super().__init__(element.name + "[]")
        self.element = element

    def _convert(self, text, /):
        return self.element.coerce(text)

    def accepts(self, value, /):
        return isinstance(value, list | tuple) and all(map(self.element.accepts, value))

    def render(self, value, /):
        return ", ".join(map(self.element.render, value))

    def syntax(self, name, /):
        return self.element.syntax(name)

    def __eq__(self, other):
        return isinstance(other, ArrayKind) and other.element == self.element

    def __hash__(self):
        return hash((ArrayKind, self.element))

    def __repr__(self):
        return "ArrayKind(%r)" % self.element


def array(element, /):
    """
    Shorthand for ArrayKind(element).
    """
    return ArrayKind(element)


def resolve(x, /):
    """
    Map a kind or a Python type onto a value kind.

    Accepted
    - ValueKind instances (returned as-is)
    - str, bool, int
    - Enum subclasses
    - list[T], tuple[T, ...], set[T] and frozenset[T] for collections of T
    """
    if isinstance(x, ValueKind):
        return x
    if x is str:
        return STRING
    if x is bool:
        return BOOL
    if x is int:
        return INT
    if isinstance(x, type) and issubclass(x, enum.Enum):
        return EnumKind(x)
    if isinstance(x, types.GenericAlias) and typing.get_origin(x) in (list, tuple, set, frozenset):
        match typing.get_args(x):
            case (element,) | (element, builtins.Ellipsis):
                return ArrayKind(element)
    raise TypeError("%r is not a supported value kind" % (x,))


__all__ = (
    "ValueKind",
    "EnumKind",
    "ArrayKind",
    "STRING",
    "BOOL",
    "INT",
    "UINT",
    "array",
    "resolve",
)
