"""Card assembler: drives the lexer and property parser over a whole stream.

The assembler is a small state machine over logical lines:

    OUTSIDE_CARD   --BEGIN:VCARD-->  EXPECT_VERSION
    EXPECT_VERSION --VERSION:4.0-->  IN_CARD
    IN_CARD        --END:VCARD---->  OUTSIDE_CARD   (card validated, emitted)

Blank lines are skipped only between cards. The first error aborts the
whole parse; no card at or after the failing one is produced.
"""
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterator
from enum import Enum

from . import errors
from .config import Settings
from .lexer import ContentLine, lex, unfold
from .model import VERSION, Card
from .properties import ONCE_PROPERTIES, parse_property
from .values import Kind

logger = logging.getLogger(__name__)


class State(Enum):
    OUTSIDE_CARD = "outside-card"
    EXPECT_VERSION = "expect-version"
    IN_CARD = "in-card"


def _decode(data: str | bytes) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise errors.EncodingError(str(exc)) from exc


def _is_marker(content: ContentLine, name: str) -> bool:
    return (
        content.name == name
        and content.value.upper() == "VCARD"
        and content.group is None
        and not content.params
    )


def _is_version(content: ContentLine) -> bool:
    return (
        content.name == "VERSION"
        and content.value == VERSION
        and content.group is None
        and not content.params
    )


# ── Card-level rules ───────────────────────────────────────────────────────────

def validate_card(card: Card) -> None:
    """Check the rules that need the whole card.

    Properties sharing an ``ALTID`` are alternative representations of one
    value and count once towards cardinality.
    """
    counts: Counter[str] = Counter()
    altids: set[tuple[str, str]] = set()
    for prop in card.properties:
        if prop.name not in ONCE_PROPERTIES:
            continue
        altid = prop.parameters.altid
        if altid is not None:
            if (prop.name, altid) in altids:
                continue
            altids.add((prop.name, altid))
        counts[prop.name] += 1
        if counts[prop.name] > 1:
            raise errors.OnlyOnce(prop.name, line=card.line)

    if card.get("FN") is None:
        raise errors.NoFormattedName(line=card.line)

    if card.get("MEMBER") is not None and card.kind is not Kind.GROUP:
        raise errors.MemberRequiresGroup(line=card.line)


# ── Entry points ───────────────────────────────────────────────────────────────

def iter_cards(data: str | bytes, settings: Settings | None = None) -> Iterator[Card]:
    """Lazily parse ``data`` and yield each card once its END is reached."""
    settings = settings or Settings()
    text = _decode(data)

    state = State.OUTSIDE_CARD
    card: Card | None = None
    last_line = 0

    for logical in unfold(text, strict_line_endings=settings.strict_line_endings):
        last_line = logical.number

        if state is State.OUTSIDE_CARD:
            if not logical.text:
                continue
            try:
                content = lex(logical.text, logical.number)
            except errors.StructuralError as exc:
                raise errors.IncorrectToken(logical.text, line=logical.number) from exc
            if not _is_marker(content, "BEGIN"):
                raise errors.IncorrectToken(logical.text, line=logical.number)
            card = Card(line=logical.number)
            state = State.EXPECT_VERSION
            continue

        content = lex(logical.text, logical.number)

        if state is State.EXPECT_VERSION:
            if not _is_version(content):
                raise errors.VersionMisplaced(line=logical.number)
            state = State.IN_CARD
            continue

        if content.name == "VERSION":
            raise errors.VersionMisplaced(line=logical.number)
        if content.name == "BEGIN":
            raise errors.IncorrectToken(logical.text, line=logical.number)
        if content.name == "END":
            if not _is_marker(content, "END"):
                raise errors.IncorrectToken(logical.text, line=logical.number)
            validate_card(card)
            logger.debug("card at line %d: %d properties", card.line, len(card))
            yield card
            card = None
            state = State.OUTSIDE_CARD
            continue

        card.add(parse_property(content))

    if state is not State.OUTSIDE_CARD:
        raise errors.TokenExpected(line=last_line or None)


def parse(data: str | bytes, settings: Settings | None = None) -> list[Card]:
    """Parse every card in ``data``; the first violation raises."""
    return list(iter_cards(data, settings))


def parse_one(data: str | bytes, settings: Settings | None = None) -> Card:
    """Parse input holding exactly one card."""
    cards = parse(data, settings)
    if not cards:
        raise errors.TokenExpected()
    if len(cards) > 1:
        raise errors.IncorrectToken("BEGIN:VCARD", line=cards[1].line)
    return cards[0]
