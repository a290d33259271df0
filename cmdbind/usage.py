"""
Usage text: one syntax/help pair per line group, help word-wrapped into a
column to the right of the longest syntax string.

Layout
- help starts two columns after the longest syntax string, or at column 5
  when the width left for help would be under 10 characters.
- a syntax string reaching into the help column pushes its help to the next
  line.
- help lines break at the last space within the width, mid-word only when the
  line has no space at all; continuation lines never start with spaces.
"""
from typing import NamedTuple

SPACES_BEFORE_HELP = 2
MINIMUM_HELP_COLUMN = 5
MINIMUM_HELP_WIDTH = 10

RESPONSE_FILE_SYNTAX = "@<file>"
RESPONSE_FILE_HELP = "Read response file for more options"


class Entry(NamedTuple):
    syntax: str
    help: str


def entries(fields, /):
    """
    Named fields in declaration order, the response-file entry, then the
    positional field.
    """
    positional = None
    for field in fields:
        if field.positional:
            positional = field
            continue
        yield Entry(field.syntax, field.help_text)
    yield Entry(RESPONSE_FILE_SYNTAX, RESPONSE_FILE_HELP)
    if positional is not None:
        yield Entry(positional.syntax, positional.help_text)


def render(entries, columns, /):
    entries = list(entries)
    longest = max((len(entry.syntax) for entry in entries), default=0)

    columns = max(columns, MINIMUM_HELP_COLUMN + MINIMUM_HELP_WIDTH)
    column = longest + SPACES_BEFORE_HELP
    if columns < column + MINIMUM_HELP_WIDTH:
        column = MINIMUM_HELP_COLUMN
    width = columns - column

    lines = []
    for syntax, help in entries:
        line = syntax
        if len(syntax) >= column:
            lines.append(line)
            line = ""

        index = 0
        while index < len(help):
            end = index + width
            if end >= len(help):
                end = len(help)
            elif (space := help.rfind(" ", index, end)) > index:
                end = space

            lines.append(line.ljust(column) + help[index:end])
            line = ""

            index = end
            while index < len(help) and help[index] == " ":
                index += 1

        if not help:
            lines.append(line)

    return "".join(line + "\n" for line in lines)


__all__ = (
    "Entry",
    "entries",
    "render",
)
