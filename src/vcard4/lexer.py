"""Line unfolding and content-line tokenization.

Unfolding turns the physical lines of a vCard stream into logical lines.
The lexer then cuts a single logical line into tokens following

    content-line = [group "."] name *(";" param-name "=" param-value) ":" value

It knows nothing about which properties or parameters exist; names are
upper-cased and values are returned raw, escapes and all.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from . import errors

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"[A-Za-z0-9-]+")
_PARAM_DELIMITERS = ",;:"


# ── Unfolding ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LogicalLine:
    number: int  # physical line the logical line starts on
    text: str


def unfold(text: str, *, strict_line_endings: bool = False) -> Iterator[LogicalLine]:
    """Yield logical lines, joining continuation lines onto their predecessor.

    Lines end in CRLF, or in a bare LF unless ``strict_line_endings`` is set.
    A final line without a terminator is still yielded.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    physical = text.split("\n")
    terminated = len(physical) - 1
    if physical[-1] == "":
        physical.pop()

    current: list[str] | None = None
    start = 0
    count = 0

    for number, raw in enumerate(physical, start=1):
        if raw.endswith("\r"):
            raw = raw[:-1]
        elif strict_line_endings and number <= terminated:
            raise errors.IncorrectToken(raw, line=number)

        if raw[:1] in (" ", "\t"):
            if current is None:
                raise errors.IncorrectToken(raw, line=number)
            current.append(raw[1:])
            continue

        if current is not None:
            count += 1
            yield LogicalLine(start, "".join(current))
        current = [raw]
        start = number

    if current is not None:
        count += 1
        yield LogicalLine(start, "".join(current))

    logger.debug("unfolded %d physical line(s) into %d logical line(s)",
                 len(physical), count)


# ── Tokens ─────────────────────────────────────────────────────────────────────

class TokenKind(Enum):
    GROUP = "group"
    NAME = "name"
    SEMICOLON = "semicolon"
    PARAM_NAME = "param-name"
    PARAM_VALUE = "param-value"
    COMMA = "comma"
    COLON = "colon"
    VALUE = "value"
    EOL = "eol"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    column: int
    quoted: bool = False


def _check_controls(text: str) -> None:
    for char in text:
        if char < " " and char != "\t":
            raise errors.ControlCharacter(char)


def _read_name(line: str, pos: int) -> tuple[str, int]:
    if pos >= len(line):
        raise errors.DelimiterExpected(line)
    match = _NAME_RE.match(line, pos)
    if match is None:
        char = line[pos]
        if char < " " and char != "\t":
            raise errors.ControlCharacter(char)
        raise errors.IncorrectToken(line[pos:pos + 1])
    return match.group(), match.end()


def tokenize(line: str) -> Iterator[Token]:
    """Yield the tokens of one logical line, ending with ``EOL``."""
    end = len(line)

    name, pos = _read_name(line, 0)
    if pos < end and line[pos] == ".":
        yield Token(TokenKind.GROUP, name, 0)
        start = pos + 1
        name, pos = _read_name(line, start)
        yield Token(TokenKind.NAME, name, start)
    else:
        yield Token(TokenKind.NAME, name, 0)

    while True:
        if pos >= end:
            raise errors.DelimiterExpected(line)
        char = line[pos]

        if char == ":":
            yield Token(TokenKind.COLON, char, pos)
            value = line[pos + 1:]
            _check_controls(value)
            yield Token(TokenKind.VALUE, value, pos + 1)
            yield Token(TokenKind.EOL, "", end)
            return

        if char != ";":
            _check_controls(char)
            raise errors.IncorrectToken(char)
        yield Token(TokenKind.SEMICOLON, char, pos)

        param_start = pos + 1
        param_name, pos = _read_name(line, param_start)
        yield Token(TokenKind.PARAM_NAME, param_name, param_start)
        if pos >= end or line[pos] != "=":
            raise errors.DelimiterExpected(line)
        pos += 1

        while True:
            if pos < end and line[pos] == '"':
                close = line.find('"', pos + 1)
                if close == -1:
                    raise errors.DelimiterExpected(line)
                yield Token(TokenKind.PARAM_VALUE, line[pos + 1:close], pos, quoted=True)
                pos = close + 1
            else:
                value_start = pos
                while pos < end and line[pos] not in _PARAM_DELIMITERS:
                    if line[pos] == '"':
                        raise errors.IncorrectToken(line[value_start:pos + 1])
                    pos += 1
                raw = line[value_start:pos]
                _check_controls(raw)
                yield Token(TokenKind.PARAM_VALUE, raw, value_start)

            if pos < end and line[pos] == ",":
                yield Token(TokenKind.COMMA, ",", pos)
                pos += 1
                continue
            break


# ── Content lines ──────────────────────────────────────────────────────────────

@dataclass
class RawParameter:
    name: str
    values: list[str] = field(default_factory=list)
    quoted: list[bool] = field(default_factory=list)


@dataclass
class ContentLine:
    name: str
    value: str
    group: str | None = None
    params: list[RawParameter] = field(default_factory=list)
    line: int | None = None


def lex(line: str, number: int | None = None) -> ContentLine:
    """Assemble the tokens of one logical line into a :class:`ContentLine`.

    Names are upper-cased; the group keeps its original spelling.
    """
    group: str | None = None
    name = ""
    value = ""
    params: list[RawParameter] = []

    try:
        for token in tokenize(line):
            if token.kind is TokenKind.GROUP:
                group = token.text
            elif token.kind is TokenKind.NAME:
                name = token.text.upper()
            elif token.kind is TokenKind.PARAM_NAME:
                params.append(RawParameter(token.text.upper()))
            elif token.kind is TokenKind.PARAM_VALUE:
                params[-1].values.append(token.text)
                params[-1].quoted.append(token.quoted)
            elif token.kind is TokenKind.VALUE:
                value = token.text
    except errors.VCardError as exc:
        if number is not None:
            exc.at_line(number)
        raise

    return ContentLine(name=name, value=value, group=group, params=params, line=number)
