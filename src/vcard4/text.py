from __future__ import annotations

import re

_NEWLINES = re.compile(r"\r\n|\r")


# ── Property values (RFC 6350 §3.4) ────────────────────────────────────────────

def escape(string: str, *, separators: str = ",;") -> str:
    """Backslash-escape a text value for the wire.

    ``separators`` lists the delimiter characters that must be escaped in
    the value's context. Structured components that are themselves comma
    lists pass ``";"`` only.
    """
    string = _NEWLINES.sub("\n", string)
    chars: list[str] = []
    for char in string:
        if char == "\\":
            chars.append("\\\\")
        elif char == "\n":
            chars.append("\\n")
        elif char in separators:
            chars.append("\\" + char)
        else:
            chars.append(char)
    return "".join(chars)


def unescape(string: str) -> str:
    chars: list[str] = []
    index = 0
    end = len(string)

    while index < end:
        char = string[index]
        index += 1

        if char == "\\" and index < end:
            next_char = string[index]
            index += 1
            if next_char in "\\,;":
                chars.append(next_char)
            elif next_char in "nN":
                chars.append("\n")
            else:
                # Unknown escapes are kept as written
                chars.append(char)
                chars.append(next_char)
        else:
            chars.append(char)

    return "".join(chars)


def split_escaped(string: str, separator: str) -> list[str]:
    """Split on ``separator`` where it is not preceded by a backslash escape.

    The pieces are returned still escaped; callers unescape each one.
    """
    parts: list[str] = []
    current: list[str] = []
    index = 0
    end = len(string)

    while index < end:
        char = string[index]
        if char == "\\" and index + 1 < end:
            current.append(string[index:index + 2])
            index += 2
            continue
        if char == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1

    parts.append("".join(current))
    return parts


def split_text_list(string: str, separator: str = ",") -> list[str]:
    return [unescape(part) for part in split_escaped(string, separator)]


# ── Parameter values (RFC 6868) ────────────────────────────────────────────────

def caret_decode(string: str) -> str:
    if "^" not in string:
        return string
    chars: list[str] = []
    index = 0
    end = len(string)
    while index < end:
        char = string[index]
        if char == "^" and index + 1 < end and string[index + 1] in "n^'":
            chars.append({"n": "\n", "^": "^", "'": '"'}[string[index + 1]])
            index += 2
            continue
        chars.append(char)
        index += 1
    return "".join(chars)


def caret_encode(string: str) -> str:
    string = _NEWLINES.sub("\n", string)
    return string.replace("^", "^^").replace("\n", "^n").replace('"', "^'")


# ── Line folding ───────────────────────────────────────────────────────────────

def fold(line: str, *, width: int = 75, newline: str = "\r\n") -> str:
    """Fold a content line so no physical line exceeds ``width`` octets.

    Continuation lines start with a single space, which counts towards the
    width. Multi-byte UTF-8 characters are never split.
    """
    if len(line.encode("utf-8")) <= width:
        return line

    parts: list[str] = []
    current: list[str] = []
    size = 0
    limit = width

    for char in line:
        octets = len(char.encode("utf-8"))
        if size + octets > limit and current:
            parts.append("".join(current))
            current = []
            size = 0
            limit = width - 1
        current.append(char)
        size += octets

    parts.append("".join(current))
    return (newline + " ").join(parts)
