"""
cmdbind faults (binding diagnostics) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing diagnostic.
- ArgumentFault: base type carrying message + read-only options; one subclass
  per diagnostic kind (unrecognized, duplicate, bad value, missing, response
  file trouble).
- ParseExit: groups the faults of a failed parse for callers that prefer an
  exception over a boolean result (strict mode).

Faults are never raised while tokens are being bound. The parser records them,
sends their message to the reporter and keeps scanning, so one run surfaces
every diagnostic. Only ParseExit is ever raised, after the whole pass.

Host configuration (read from __main__, all optional)
- __styles__: palette overrides for rich rendering.
- __codes__: mapping FaultCode -> label used instead of the numeric id.
- __prog__: program name shown in fault headers.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - tokens (2110x): UNRECOGNIZED_ARGUMENT, FLAG_ASSIGNMENT
    - values (2111x): DUPLICATE_ARGUMENT, DUPLICATE_ARGUMENT_VALUE, BAD_ARGUMENT_VALUE
    - completion (2112x): MISSING_REQUIRED_ARGUMENT
    - response files (2113x): CANNOT_OPEN_FILE, UNBALANCED_QUOTES, RECURSIVE_RESPONSE_FILE
    """
    # --- token errors ---
    UNRECOGNIZED_ARGUMENT       = 21101
    FLAG_ASSIGNMENT             = 21102

    # --- value errors ---
    DUPLICATE_ARGUMENT          = 21111
    DUPLICATE_ARGUMENT_VALUE    = 21112
    BAD_ARGUMENT_VALUE          = 21113

    # --- completion errors ---
    MISSING_REQUIRED_ARGUMENT   = 21121

    # --- response file errors ---
    CANNOT_OPEN_FILE            = 21131
    UNBALANCED_QUOTES           = 21132
    RECURSIVE_RESPONSE_FILE     = 21133

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host may provide a __codes__ mapping in __main__ to relabel codes;
        otherwise the numeric value is returned as a string.
        """
        return str(getattr(sys.modules["__main__"], "__codes__", {}).get(self, self.value))


def _palette(defaults):
    return defaultdict(str, defaults | getattr(sys.modules["__main__"], "__styles__", {}))


class ArgumentFault(Exception):
    """
    one diagnostic produced while binding tokens.

    attributes
    - message: human-readable, one sentence (what the reporter receives).
    - options: read-only context (title, code, hint, token, argument, ...).
    """
    code = None
    title = "argument fault"

    def __init__(self, message, /, **options):
        if not isinstance(message, str):
            raise TypeError("fault message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"title": self.title, "code": self.code} | options)

    def __str__(self):
        return self.message

    def __rich__(self):
        colorful = self.options.get("colorful", True)
        styles = _palette({
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        header = Text.assemble(
            "[ ",
            text(getattr(sys.modules["__main__"], "__prog__", "cmdbind"), "prog-name"),
            " | ",
            text(self.options["code"].normalize(), "code"),
            " | ",
            text(self.options["title"].title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")

        if not (hint := self.options.get("hint")):
            return Group(header, message)
        return Group(header, message, Text.assemble(text(" > ", "hint-arrow"), text(hint, "hint")))


class UnrecognizedArgumentError(ArgumentFault):
    code = FaultCode.UNRECOGNIZED_ARGUMENT
    title = "unrecognized argument"


class FlagAssignmentError(ArgumentFault):
    code = FaultCode.FLAG_ASSIGNMENT
    title = "flag cannot take a value"


class DuplicateArgumentError(ArgumentFault):
    code = FaultCode.DUPLICATE_ARGUMENT
    title = "duplicate argument"


class DuplicateArgumentValueError(ArgumentFault):
    code = FaultCode.DUPLICATE_ARGUMENT_VALUE
    title = "duplicate argument value"


class BadArgumentValueError(ArgumentFault):
    code = FaultCode.BAD_ARGUMENT_VALUE
    title = "bad argument value"


class MissingRequiredArgumentError(ArgumentFault):
    code = FaultCode.MISSING_REQUIRED_ARGUMENT
    title = "missing required argument"


class CannotOpenFileError(ArgumentFault):
    code = FaultCode.CANNOT_OPEN_FILE
    title = "cannot open response file"


class UnbalancedQuotesError(ArgumentFault):
    code = FaultCode.UNBALANCED_QUOTES
    title = "unbalanced quotes"


class RecursiveResponseFileError(ArgumentFault):
    code = FaultCode.RECURSIVE_RESPONSE_FILE
    title = "recursive response file"


class ParseExit(ExceptionGroup):
    """
    every fault of a failed parse, raised once the pass is complete.
    """

    def __new__(cls, faults, **options):
        return super().__new__(cls, "bad arguments", tuple(faults))

    def __init__(self, faults, **options):
        super().__init__("bad arguments", tuple(faults))
        self.options = MappingProxyType(options)

    def derive(self, faults):
        return ParseExit(faults, **self.options)

    def __rich__(self):
        colorful = self.options.get("colorful", True)
        styles = _palette({
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        })

        prog = getattr(sys.modules["__main__"], "__prog__", "cmdbind")
        header = Text.assemble(
            "[ ",
            Text(prog, styles["prog-name"] if colorful else ""),
            " | ",
            Text(self.message.title(), styles["title"] if colorful else ""),
            " ]"
        )

        if self.options.get("fancy", False):
            return Panel(Group(*self.exceptions), title=header, title_align="left")
        return Group(header, *self.exceptions)


def echo(message, /):
    """
    default reporter: print one diagnostic line on the stderr console.
    """
    console.print(Text(message), soft_wrap=True)


def silence(message, /):
    """
    reporter that drops every diagnostic (help detection, usage rendering).
    """


__all__ = (
    "FaultCode",
    "ArgumentFault",
    "UnrecognizedArgumentError",
    "FlagAssignmentError",
    "DuplicateArgumentError",
    "DuplicateArgumentValueError",
    "BadArgumentValueError",
    "MissingRequiredArgumentError",
    "CannotOpenFileError",
    "UnbalancedQuotesError",
    "RecursiveResponseFileError",
    "ParseExit",
    "echo",
    "silence",
)
