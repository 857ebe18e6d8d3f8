"""Command-line parsing: argument splitting, quotes, background marks and pipes."""

from __future__ import annotations

from dataclasses import dataclass, field

_QUOTES = ('"', "'")


@dataclass
class ParsedLine:
    """Arguments of one command line and whether it runs in the background."""

    argv: list[str] = field(default_factory=list)
    background: bool = False


def quotes_balanced(text: str) -> bool:
    """Whether the quotes in ``text`` pair up.

    A quote closes the most recent open quote of the same kind, otherwise
    it opens a new one; the text is balanced when nothing stays open.
    """
    stack: list[str] = []
    for char in text:
        if char in _QUOTES:
            if stack and stack[-1] == char:
                stack.pop()
            else:
                stack.append(char)
    return not stack


def _tokenize(text: str, quoted: bool) -> list[str]:
    """Split space-terminated ``text`` into arguments."""
    argv: list[str] = []
    pos = 0
    size = len(text)
    while True:
        delim = text.find(" ", pos)
        if delim < 0:
            break
        head = text[pos]
        if quoted and head in _QUOTES:
            close = text.find(head, pos + 1)
            if close < 0:
                argv.append(text[pos + 1:delim])
            else:
                argv.append(text[pos + 1:close])
                after = close + 1
                delim = text.find(" ", after)
                # A pipe or background mark glued to a closing quote is kept
                # as an argument of its own; other trailing text is dropped.
                if text[after:after + 1] in ("|", "&"):
                    argv.append(text[after:delim])
        else:
            argv.append(text[pos:delim])
        pos = delim + 1
        while pos < size and text[pos] == " ":
            pos += 1
    return argv


def parse_line(cmdline: str) -> ParsedLine:
    """Parse a command line into its arguments and background flag.

    Arguments are separated by spaces. When the quotes on the line are
    balanced, an argument starting with a quote runs to the matching quote
    and may contain spaces. A last argument starting with ``&`` is dropped
    and marks the job as background; a trailing ``&`` glued to the last
    argument is stripped and does the same. A blank line yields no
    arguments and counts as background.
    """
    text = cmdline[:-1] if cmdline.endswith("\n") else cmdline
    text = text.lstrip(" ") + " "
    argv = _tokenize(text, quotes_balanced(text))
    if not argv:
        return ParsedLine([], True)
    last = argv[-1]
    if last.startswith("&"):
        argv.pop()
        return ParsedLine(argv, True)
    if last.endswith("&"):
        argv[-1] = last[:-1]
        return ParsedLine(argv, True)
    return ParsedLine(argv, False)


def split_pipe(argv: list[str]) -> tuple[str, str]:
    """Split arguments at the first ``|`` into two command strings.

    The first string holds the arguments before the pipe, each followed by
    a space, and ends with a newline; the second holds everything after
    the pipe, each piece followed by a space. Without a pipe the first
    string holds all arguments and the second is empty.
    """
    first: list[str] = []
    for index, arg in enumerate(argv):
        bar = arg.find("|")
        if bar >= 0:
            first.append(arg[:bar] + "\n")
            rest = [arg[bar + 1:] + " "]
            rest.extend(a + " " for a in argv[index + 1:])
            return "".join(first), "".join(rest)
        first.append(arg + " ")
    return "".join(first), ""


def split_pipeline(argv: list[str]) -> list[list[str]]:
    """Split arguments into the argument lists of each pipeline stage."""
    if not any("|" in arg for arg in argv):
        return [list(argv)]
    first, rest = split_pipe(argv)
    stages = [parse_line(first).argv]
    while True:
        rest_argv = parse_line(rest).argv
        if "|" not in rest:
            stages.append(rest_argv)
            return stages
        head, rest = split_pipe(rest_argv)
        stages.append(parse_line(head).argv)