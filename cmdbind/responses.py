r"""
Response files: "@path" tokens expand into the tokens of a text file.

Syntax
- tokens are separated by whitespace.
- '#' at the start of a token comments out the rest of the line.
- '"' toggles a quoted span, in which whitespace is part of the token; the
  quote itself is not copied.
- backslashes are literal unless a run of them is followed by '"':
    2n backslashes + '"'     -> n backslashes, the quote toggles the span
    2n+1 backslashes + '"'   -> n backslashes and a literal '"'

These are the rules of native command lines, not of a POSIX shell (no single
quotes, no escaping outside of backslash runs before a quote).

Example
    >>> lex('a "b c" d\\"e')
    (['a', 'b c', 'd"e'], False)
"""


def lex(source, /):
    """
    Split the contents of a response file into tokens.

    Returns (tokens, unbalanced): unbalanced is True when the text ends inside
    a quoted span, in which case the unterminated token is dropped.
    """
    tokens = []
    index, length = 0, len(source)

    while True:
        while index < length and source[index].isspace():
            index += 1
        if index >= length:
            return tokens, False

        if source[index] == "#":
            index = source.find("\n", index)
            if index < 0:
                return tokens, False
            continue

        buffer = []
        quoted = False
        while index < length and (quoted or not source[index].isspace()):
            match source[index]:
                case "\\":
                    start = index
                    while index < length and source[index] == "\\":
                        index += 1
                    count = index - start
                    if index < length and source[index] == '"':
                        buffer.append("\\" * (count // 2))
                        if count % 2:
                            buffer.append('"')
                        else:
                            quoted = not quoted
                        index += 1
                    else:
                        buffer.append("\\" * count)
                case '"':
                    quoted = not quoted
                    index += 1
                case char:
                    buffer.append(char)
                    index += 1

        token = "".join(buffer)
        if index >= length:
            # end of input terminates the last token
            if quoted:
                return tokens, True
            if token:
                tokens.append(token)
            return tokens, False
        tokens.append(token)


def read(path, /):
    """
    Read a whole response file as text (UTF-8, optional byte order mark).

    Undecodable bytes become U+FFFD; OSError propagates to the caller.
    """
    with open(path, encoding="utf-8-sig", errors="replace") as file:
        return file.read()


__all__ = (
    "lex",
    "read",
)
