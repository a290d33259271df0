# python
"""
Parser behavioral tests (name table, dispatch, response files, entry points).

Scope
- Validate the name table: long, short, compatibility and "no" names, and
  which collisions fail construction versus silently drop a short name.
- Validate token dispatch: prefixes, separators, the two-token form, boolean
  truth, positional values and unrecognized tokens.
- Validate response files: nesting, missing files, unbalanced quotes and
  files including themselves.
- Validate parse_help(), arguments_usage(), strict mode and parser reuse.

Conventions
- Test method names follow CamelCase per project convention.
- Diagnostics are captured with a list reporter; faults are read back from
  parser.faults.
"""

from __future__ import annotations

import enum
import os
import tempfile
import unittest
from unittest import TestCase

from cmdbind import (
    Argument,
    ArgumentFlag,
    ArgumentParser,
    parse_arguments,
    parse_help,
    arguments_usage,
    STRING,
    BOOL,
    INT,
    array,
    ParseExit,
    UnrecognizedArgumentError,
    FlagAssignmentError,
    DuplicateArgumentError,
    DuplicateArgumentValueError,
    BadArgumentValueError,
    MissingRequiredArgumentError,
    CannotOpenFileError,
    UnbalancedQuotesError,
    RecursiveResponseFileError,
)


class Mode(enum.Enum):
    fast = 1
    safe = 2
    help = 3


class Options:
    count = Argument(INT, ArgumentFlag.REQUIRED, short="c", help="Number of items.")
    verbose = Argument(BOOL)
    tags = Argument(array(str))


class Files:
    level = Argument(INT, default=1)
    mode = Argument(Mode, alias="m0de")
    files = Argument(array(str), positional=True)


class Source:
    source = Argument(STRING, ArgumentFlag.REQUIRED, positional=True)


class Switch:
    variable = Argument(BOOL)


def parser(specification):
    messages = []
    return ArgumentParser(specification, messages.append), messages


def kinds(faults):
    return [type(fault) for fault in faults]


class TestNameTable(TestCase):
    """Construction of the name table."""

    def testNamesOfEveryPass(self):
        instance, _ = parser(Options)
        self.assertEqual(
            set(instance.names),
            {"count", "c", "verbose", "noverbose", "v", "nov", "tags", "t"},
        )

    def testCompatibilityName(self):
        instance, _ = parser(Files)
        self.assertIs(instance.names["m0de"], instance.names["mode"])

    def testRepeatedLongNameRejected(self):
        class Broken:
            one = Argument(name="same")
            two = Argument(name="Same")

        with self.assertRaises(ValueError):
            ArgumentParser(Broken)

    def testExplicitShortNameCollisionRejected(self):
        class Broken:
            count = Argument(INT)
            total = Argument(INT, short="count")

        with self.assertRaises(ValueError):
            ArgumentParser(Broken)

    def testBooleanNegationCollisionRejected(self):
        class Broken:
            quiet = Argument(BOOL)
            other = Argument(STRING, name="noquiet")

        with self.assertRaises(ValueError):
            ArgumentParser(Broken)

    def testImplicitShortNameDroppedOnCollision(self):
        class Crowded:
            verbose = Argument(BOOL)
            value = Argument(STRING)

        instance, _ = parser(Crowded)
        verbose, value = instance.fields
        self.assertEqual(verbose.short_name, "v")
        self.assertIsNone(value.short_name)
        self.assertIs(instance.names["v"], verbose)

    def testExplicitShortNameWinsOverImplicit(self):
        class Crowded:
            verbose = Argument(BOOL)
            version = Argument(STRING, short="v")

        instance, _ = parser(Crowded)
        verbose, version = instance.fields
        self.assertIsNone(verbose.short_name)
        self.assertIs(instance.names["v"], version)
        self.assertNotIn("nov", instance.names)

    def testImplicitShortNameDroppedAgainstLongName(self):
        class Crowded:
            alpha = Argument(STRING)
            a = Argument(STRING)

        instance, _ = parser(Crowded)
        alpha, a = instance.fields
        self.assertIsNone(alpha.short_name)
        self.assertIs(instance.names["a"], a)

    def testExplicitShortNameRepeatingOwnLongNameRejected(self):
        class Broken:
            count = Argument(INT, name="c", short="C")

        with self.assertRaises(ValueError):
            ArgumentParser(Broken)

    def testCompatibilityNameMayRepeatOwnLongName(self):
        class Spelled:
            mode = Argument(Mode, alias="MODE")

        instance, _ = parser(Spelled)
        self.assertIs(instance.names["mode"], instance.fields[0])

    def testSinglePositional(self):
        class Broken:
            one = Argument(positional=True)
            two = Argument(positional=True)

        with self.assertRaises(ValueError):
            ArgumentParser(Broken)

    def testReporterMustBeCallable(self):
        with self.assertRaises(TypeError):
            ArgumentParser(Options, "stderr")

    def testIterationPutsPositionalLast(self):
        class Ordered:
            files = Argument(array(str), positional=True)
            level = Argument(INT)

        instance, _ = parser(Ordered)
        self.assertEqual([field.attribute for field in instance], ["level", "files"])


class TestDispatch(TestCase):
    """Binding of individual tokens."""

    def testScenario(self):
        instance, messages = parser(Options)
        options = Options()
        result = instance.parse(["-c:5", "-verbose", "-tags:x", "-tags:y", "-tags:x"], options)
        self.assertFalse(result)
        self.assertEqual(options.count, 5)
        self.assertIs(options.verbose, True)
        self.assertEqual(options.tags, ["x", "y"])
        self.assertEqual(kinds(instance.faults), [DuplicateArgumentValueError])
        self.assertEqual(messages, ["duplicate 'tags' argument value 'x'"])

    def testValidTokensSucceed(self):
        instance, messages = parser(Options)
        options = Options()
        self.assertTrue(instance.parse(["/count=3", "/tags:a", "-t:b", "-noverbose"], options))
        self.assertEqual((options.count, options.verbose, options.tags), (3, False, ["a", "b"]))
        self.assertEqual(messages, [])

    def testNegatedLongName(self):
        switch = Switch()
        self.assertTrue(parse_arguments(["-novariable"], switch, reporter=[].append))
        self.assertIs(switch.variable, False)

    def testBooleanForms(self):
        for token, expected in (("/variable", True), ("/novariable", False), ("/v", True), ("/nov", False), ("-VARIABLE", True)):
            with self.subTest(token=token):
                switch = Switch()
                self.assertTrue(parse_arguments([token], switch, reporter=[].append))
                self.assertIs(switch.variable, expected)

    def testBooleanRejectsInlineValue(self):
        instance, messages = parser(Switch)
        switch = Switch()
        self.assertFalse(instance.parse(["/variable:false"], switch))
        self.assertIsNone(switch.variable)
        self.assertEqual(kinds(instance.faults), [FlagAssignmentError])

    def testBooleanDoesNotTakeNextToken(self):
        class Mixed:
            verbose = Argument(BOOL)
            files = Argument(array(str), positional=True)

        mixed = Mixed()
        self.assertTrue(parse_arguments(["/verbose", "false"], mixed, reporter=[].append))
        self.assertIs(mixed.verbose, True)
        self.assertEqual(mixed.files, ["false"])

    def testNamesIgnoreCase(self):
        options = Options()
        self.assertTrue(parse_arguments(["/COUNT:2", "/Tags:A"], options, reporter=[].append))
        self.assertEqual((options.count, options.tags), (2, ["A"]))

    def testFirstSeparatorSplits(self):
        options = Options()
        self.assertTrue(parse_arguments(["/c:1", "/tags=a:b", "/tags:c=d"], options, reporter=[].append))
        self.assertEqual(options.tags, ["a:b", "c=d"])

    def testTwoTokenForm(self):
        options = Options()
        self.assertTrue(parse_arguments(["/count", "7", "-tags", "x"], options, reporter=[].append))
        self.assertEqual((options.count, options.tags), (7, ["x"]))

    def testTwoTokenFormAtEndOfInput(self):
        instance, _ = parser(Options)
        self.assertFalse(instance.parse(["/count"], Options()))
        # the field counts as given, so it is not reported missing
        self.assertEqual(kinds(instance.faults), [BadArgumentValueError])

    def testEmptyInlineValueIsBad(self):
        instance, messages = parser(Options)
        self.assertFalse(instance.parse(["/count:"], Options()))
        self.assertEqual(kinds(instance.faults), [BadArgumentValueError])
        self.assertEqual(messages, ["'' is not a valid value for the 'count' command line option"])

    def testBadValueThenDuplicate(self):
        instance, messages = parser(Options)
        self.assertFalse(instance.parse(["/count:x", "/count:1"], Options()))
        self.assertEqual(kinds(instance.faults), [BadArgumentValueError, DuplicateArgumentError])

    def testEmptyTokensAreSkipped(self):
        self.assertTrue(parse_arguments(["", "/c:1"], Options(), reporter=[].append))

    def testEveryFaultIsReported(self):
        instance, messages = parser(Options)
        self.assertFalse(instance.parse(["/bogus", "/verbose", "/verbose", "stray"], Options()))
        self.assertEqual(
            kinds(instance.faults),
            [UnrecognizedArgumentError, DuplicateArgumentError, UnrecognizedArgumentError, MissingRequiredArgumentError],
        )
        self.assertEqual(messages[0], "unrecognized command line argument '/bogus'")
        self.assertEqual(messages, [fault.message for fault in instance.faults])

    def testUnrecognizedSink(self):
        instance, messages = parser(Options)
        unrecognized = []
        self.assertTrue(instance.parse(["/bogus:1", "/c:1", "stray"], Options(), unrecognized))
        self.assertEqual(unrecognized, ["/bogus:1", "stray"])
        self.assertEqual(messages, [])

    def testPositionalCollection(self):
        files = Files()
        self.assertTrue(parse_arguments(["a", "/level:3", "b", "/m0de:fast"], files, reporter=[].append))
        self.assertEqual(files.files, ["a", "b"])
        self.assertEqual(files.level, 3)
        self.assertIs(files.mode, Mode.fast)

    def testDefaultsAndEmptyCollections(self):
        files = Files()
        self.assertTrue(parse_arguments([], files, reporter=[].append))
        self.assertEqual(files.level, 1)
        self.assertIsNone(files.mode)
        self.assertEqual(files.files, [])

    def testEnumHelpShortcut(self):
        files = Files()
        self.assertTrue(parse_arguments(["/mode:?"], files, reporter=[].append))
        self.assertIs(files.mode, Mode.help)

    def testPositionalScalarDuplicate(self):
        instance, _ = parser(Source)
        source = Source()
        self.assertFalse(instance.parse(["a", "b"], source))
        self.assertEqual(source.source, "a")
        self.assertEqual(kinds(instance.faults), [DuplicateArgumentError])

    def testMissingRequiredPositional(self):
        instance, messages = parser(Source)
        self.assertFalse(instance.parse([], Source()))
        self.assertEqual(kinds(instance.faults), [MissingRequiredArgumentError])
        self.assertEqual(messages, ["missing required argument '<source>'"])

    def testMissingRequiredNamed(self):
        instance, messages = parser(Options)
        self.assertFalse(instance.parse(["/verbose"], Options()))
        self.assertEqual(messages, ["missing required argument '/count'"])

    def testExplicitListWithCustomSetter(self):
        specification = [
            ("count", Argument(INT, setter=lambda destination, value: destination.__setitem__("count", value))),
            ("names", Argument(array(str), setter=lambda destination, value: destination.__setitem__("names", value))),
        ]
        destination = {}
        self.assertTrue(ArgumentParser(specification, [].append).parse(["/count:4", "/names:a"], destination))
        self.assertEqual(destination, {"count": 4, "names": ["a"]})


class TestResponseFiles(TestCase):
    """Expansion of @file tokens."""

    def setUp(self):
        self.directory = tempfile.TemporaryDirectory()
        self.addCleanup(self.directory.cleanup)

    def write(self, name, source):
        path = os.path.join(self.directory.name, name)
        with open(path, "w", encoding="utf-8") as file:
            file.write(source)
        return path

    def testTokensExpandInPlace(self):
        path = self.write("options.rsp", '# defaults\n-c:5\n"-tags:a b"\n')
        options = Options()
        self.assertTrue(parse_arguments(["@" + path, "-tags:c"], options, reporter=[].append))
        self.assertEqual(options.count, 5)
        self.assertEqual(options.tags, ["a b", "c"])

    def testNestedFiles(self):
        inner = self.write("inner.rsp", "-verbose\n")
        outer = self.write("outer.rsp", '-c:1 "@%s" -tags:x\n' % inner)
        options = Options()
        self.assertTrue(parse_arguments(["@" + outer], options, reporter=[].append))
        self.assertEqual((options.count, options.verbose, options.tags), (1, True, ["x"]))

    def testSameFileTwiceIsNotRecursion(self):
        path = self.write("tag.rsp", "-verbose\n")
        instance, _ = parser(Options)
        self.assertFalse(instance.parse(["/c:1", "@" + path, "@" + path], Options()))
        self.assertEqual(kinds(instance.faults), [DuplicateArgumentError])

    def testUndecodableBytesAreReplaced(self):
        path = os.path.join(self.directory.name, "latin.rsp")
        with open(path, "wb") as file:
            file.write(b"-tags:\xff\xfe -c:5\n")
        instance, messages = parser(Options)
        options = Options()
        self.assertTrue(instance.parse(["@" + path], options))
        self.assertEqual(options.count, 5)
        self.assertEqual(options.tags, ["\ufffd\ufffd"])
        self.assertEqual(messages, [])

    def testMissingFile(self):
        path = os.path.join(self.directory.name, "missing.rsp")
        instance, messages = parser(Options)
        options = Options()
        self.assertFalse(instance.parse(["@" + path, "/c:2"], options))
        self.assertEqual(options.count, 2)
        self.assertEqual(kinds(instance.faults), [CannotOpenFileError])
        self.assertTrue(messages[0].startswith("error: can't open command line argument file '%s' : '" % path))

    def testUnbalancedQuotes(self):
        path = self.write("broken.rsp", '-c:5 "-tags:x\n')
        instance, _ = parser(Options)
        options = Options()
        self.assertFalse(instance.parse(["@" + path], options))
        self.assertEqual(options.count, 5)
        self.assertEqual(options.tags, [])
        self.assertEqual(kinds(instance.faults), [UnbalancedQuotesError])

    def testFileIncludingItself(self):
        path = os.path.join(self.directory.name, "loop.rsp")
        self.write("loop.rsp", '-tags:x "@%s"\n' % path)
        instance, _ = parser(Options)
        options = Options()
        self.assertFalse(instance.parse(["/c:1", "@" + path], options))
        self.assertEqual(options.tags, ["x"])
        self.assertEqual(kinds(instance.faults), [RecursiveResponseFileError])

    def testIndirectCycle(self):
        first = os.path.join(self.directory.name, "first.rsp")
        second = self.write("second.rsp", '"@%s"\n' % first)
        self.write("first.rsp", '-verbose "@%s"\n' % second)
        instance, _ = parser(Options)
        self.assertFalse(instance.parse(["/c:1", "@" + first], Options()))
        self.assertEqual(kinds(instance.faults), [RecursiveResponseFileError])


class TestEntryPoints(TestCase):
    """parse_help(), arguments_usage(), strict mode and reuse."""

    def testParseHelp(self):
        for tokens, expected in (
                (["-?"], True),
                (["/help"], True),
                (["/HELP", "stray"], True),
                (["/nohelp"], False),
                (["/help:true"], False),
                (["/count:3", "file"], False),
                ([], False),
        ):
            with self.subTest(tokens=tokens):
                self.assertIs(parse_help(tokens), expected)

    def testArgumentsUsageNeverTouchesDestination(self):
        text = arguments_usage(Options)
        self.assertTrue(text.startswith("/count:<int>"))
        self.assertIn("Number of items. (short form /c)", text)

    def testParserUsageMatchesArgumentsUsage(self):
        self.assertEqual(ArgumentParser(Files).usage(50), arguments_usage(Files, 50))

    def testStrictRaisesEveryFault(self):
        instance, _ = parser(Options)
        with self.assertRaises(ParseExit) as context:
            instance.parse(["/bogus", "/tags:x", "/tags:x"], Options(), strict=True)
        self.assertEqual(
            kinds(context.exception.exceptions),
            [UnrecognizedArgumentError, DuplicateArgumentValueError, MissingRequiredArgumentError],
        )

    def testStrictSuccessReturnsTrue(self):
        self.assertTrue(parse_arguments(["/c:1"], Options(), reporter=[].append, strict=True))

    def testParserIsReusable(self):
        instance, messages = parser(Options)
        self.assertFalse(instance.parse(["/tags:x"], Options()))
        self.assertEqual(len(instance.faults), 1)

        options = Options()
        self.assertTrue(instance.parse(["/c:2", "/tags:x"], options))
        self.assertEqual(instance.faults, [])
        self.assertEqual((options.count, options.tags), (2, ["x"]))


if __name__ == "__main__":
    unittest.main()
