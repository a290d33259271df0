"""
cmdbind parser: bind command-line tokens onto the fields of a destination.

What this module provides
- ArgumentParser: built once from a specification (see cmdbind.arguments);
  owns the name table and the Fields, and binds token lists onto destinations.
- parse_arguments(tokens, destination, ...): one-shot binding, specification
  taken from type(destination).
- parse_help(tokens): whether the tokens ask for help (/help, /?, ...).
- arguments_usage(specification, columns=80): usage text of a specification.

Token grammar
- '-name' or '/name'                  named field; non-booleans take the next token
- '-name:value' or '/name=value'      named field with an inline value
- '-noname'                           boolean field set to false
- '@path'                             response file, expanded in place
- anything else                       positional field

Names are matched case-insensitively against long names, short names (explicit
or the implicit first letter of the long name) and compatibility names; booleans
also answer to every name with a "no" prefix.

Diagnostics
- Every problem is recorded as a fault (see cmdbind.faults), reported through
  the reporter and scanning goes on: one run surfaces every diagnostic.
- Configuration mistakes (duplicate names, two positional fields, ...) raise
  TypeError/ValueError while the parser is built.
"""
import os.path

from .arguments import Argument, fields
from .faults import *
from .faults import console
from .kinds import BOOL
from .responses import lex, read
from .usage import entries, render
from .utils import *


class ArgumentParser:
    """
    Name table and dispatcher for one specification.

    Fields carry binding state, so a parser binds one destination at a time;
    parse() starts from a clean state on every call.
    """

    def __init__(self, specification, /, reporter=Unset):
        self.reporter = coalesce(reporter, echo)
        if not callable(self.reporter):
            raise TypeError("reporter must be callable")

        self.faults = []
        self._responses = []

        self.fields = []
        self.positional = None
        for field in fields(specification, self.trigger):
            if not field.positional:
                self.fields.append(field)
            elif self.positional is not None:
                raise ValueError(
                    "only one positional argument is allowed (%r and %r)" % (self.positional.attribute, field.attribute)
                )
            else:
                self.positional = field

        self.names = {}
        self._claim_explicit_names()
        self._claim_implicit_names()

    def _claim(self, name, field, *, exclusive=False):
        # exclusive names may not repeat a spelling of their own field either
        key = name.lower()
        if (owner := self.names.get(key, field)) is not field or (exclusive and key in self.names):
            raise ValueError("argument name %r of %r is already used by %r" % (name, field.attribute, owner.attribute))
        self.names[key] = field
        if field.boolean:
            key = "no" + key
            if (owner := self.names.get(key, field)) is not field or (exclusive and key in self.names):
                raise ValueError("argument name %r of %r is already used by %r" % ("no" + name, field.attribute, owner.attribute))
            self.names[key] = field

    def _claim_explicit_names(self):
        for field in self.fields:
            self._claim(field.long_name, field)
        for field in self.fields:
            if field.explicit_short and field.short_name:
                self._claim(field.short_name, field, exclusive=True)
            if field.compatibility_name is not None:
                self._claim(field.compatibility_name, field)

    def _claim_implicit_names(self):
        # implicit short names lose every collision silently
        for field in self.fields:
            if field.explicit_short or not field.short_name:
                continue
            key = field.short_name.lower()
            if key in self.names or (field.boolean and "no" + key in self.names):
                field.clear_short_name()
                continue
            self.names[key] = field
            if field.boolean:
                self.names["no" + key] = field

    def trigger(self, fault, /):
        """
        Record a fault and hand its message to the reporter.
        """
        if not isinstance(fault, ArgumentFault):
            raise TypeError("trigger() argument must be an argument fault")
        self.faults.append(fault)
        self.reporter(fault.message)

    def _unrecognized(self, token, unrecognized):
        if unrecognized is not None:
            unrecognized.append(token)
            return False
        self.trigger(UnrecognizedArgumentError(
            "unrecognized command line argument '%s'" % token,
            hint="run with /? to list the valid arguments",
            token=token,
        ))
        return True

    def parse_token_list(self, tokens, destination, unrecognized=None):
        """
        Bind every token of the list; return True when any fault was reported.

        Unrecognized tokens go to `unrecognized` when a list is given, instead
        of being reported.
        """
        failed = False
        tokens = list(tokens)
        index = 0
        while index < len(tokens):
            token = tokens[index]
            index += 1
            if not token:
                continue

            match token[0]:
                case "-" | "/":
                    separators = [position for position in map(lambda x: token.find(x, 1), ":=") if position >= 0]
                    if separators:
                        name, value = token[1:min(separators)], token[min(separators) + 1:]
                    else:
                        name, value = token[1:], None

                    if (field := self.names.get(name.lower())) is None:
                        failed |= self._unrecognized(token, unrecognized)
                        continue

                    if field.boolean:
                        if value is not None:
                            self.trigger(FlagAssignmentError(
                                "boolean argument '%s' cannot take a value" % token,
                                hint="use '%s%s' or '%sno%s'" % (token[0], field.long_name, token[0], field.long_name),
                                token=token,
                                argument=field,
                            ))
                            failed = True
                            continue
                        lowered = name.lower()
                        value = "true" if any(
                            other is not None and other.lower() == lowered
                            for other in (field.long_name, field.short_name, field.compatibility_name)
                        ) else "false"
                    elif not separators and index < len(tokens):
                        # the value is the next token
                        value = tokens[index]
                        index += 1

                    failed |= not field.set_value(value, destination)

                case "@":
                    failed |= self._expand(token[1:], destination, unrecognized)

                case _:
                    if self.positional is not None:
                        failed |= not self.positional.set_value(token, destination)
                    else:
                        failed |= self._unrecognized(token, unrecognized)

        return failed

    def _expand(self, path, destination, unrecognized):
        key = os.path.normcase(os.path.realpath(path))
        if key in self._responses:
            self.trigger(RecursiveResponseFileError(
                "response file '%s' includes itself" % path,
                hint="remove the '@%s' line from the chain of response files" % path,
                path=path,
            ))
            return True

        try:
            source = read(path)
        except OSError as exception:
            self.trigger(CannotOpenFileError(
                "error: can't open command line argument file '%s' : '%s'" % (path, exception.strerror or exception),
                hint="check that the file exists and is readable",
                path=path,
                exception=exception,
            ))
            return True

        tokens, unbalanced = lex(source)
        failed = False
        if unbalanced:
            self.trigger(UnbalancedQuotesError(
                "error: unbalanced '\"' in command line argument file '%s'" % path,
                hint="close every quoted span before the end of the file",
                path=path,
            ))
            failed = True

        self._responses.append(key)
        try:
            failed |= self.parse_token_list(tokens, destination, unrecognized)
        finally:
            self._responses.pop()
        return failed

    def reset(self):
        self.faults.clear()
        self._responses.clear()
        for field in self:
            field.reset()

    def parse(self, tokens, destination, unrecognized=None, *, strict=False):
        """
        Bind the tokens onto the destination and finish every field.

        Returns True on success. With strict=True a failed parse raises
        ParseExit (all faults grouped) instead of returning False.
        """
        self.reset()
        failed = self.parse_token_list(tokens, destination, unrecognized)
        for field in self:
            failed |= field.finish(destination)

        if failed and strict:
            raise ParseExit(self.faults)
        return not failed

    def usage(self, columns=80):
        """
        Usage text, wrapped to `columns` (None: the console width).
        """
        if columns is None:
            columns = console.width
        return render(entries(self), columns)

    def __iter__(self):
        # named fields in declaration order, positional last
        yield from self.fields
        if self.positional is not None:
            yield self.positional


def parse_arguments(tokens, destination, unrecognized=None, reporter=Unset, *, strict=False):
    """
    Bind tokens onto destination using the Arguments declared on its type.

    Diagnostics go to the rich console on stderr unless a reporter is given.
    """
    parser = ArgumentParser(type(destination), reporter)
    return parser.parse(tokens, destination, unrecognized, strict=strict)


class _HelpArguments:
    help = Argument(BOOL, short="?")


def parse_help(tokens, /):
    """
    True when the tokens contain /help, -help or /?; every other token is ignored.
    """
    destination = _HelpArguments()
    ArgumentParser(_HelpArguments, silence).parse(tokens, destination)
    return bool(destination.help)


def arguments_usage(specification, columns=80):
    """
    Usage text of a specification; never touches a destination.
    """
    return ArgumentParser(specification, silence).usage(columns)


__all__ = (
    "ArgumentParser",
    "parse_arguments",
    "parse_help",
    "arguments_usage",
)
