from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from .config import Settings
from .model import VERSION, Card
from .text import fold

logger = logging.getLogger(__name__)


def serialize(card: Card, settings: Settings | None = None) -> str:
    """Render one card, folding long content lines."""
    settings = settings or Settings()
    newline = settings.line_ending
    lines = ["BEGIN:VCARD", f"VERSION:{VERSION}"]
    lines.extend(prop.content_line() for prop in card.properties)
    lines.append("END:VCARD")
    return "".join(
        fold(line, width=settings.fold_width, newline=newline) + newline
        for line in lines
    )


def serialize_all(cards: Iterable[Card], settings: Settings | None = None) -> str:
    return "".join(serialize(card, settings) for card in cards)


def export_vcards(cards: list[Card], path: Path, settings: Settings | None = None) -> int:
    """Write ``cards`` to ``path`` in input order; returns the number written."""
    text = serialize_all(cards, settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps CRLF as written
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(text)
    logger.debug("wrote %d card(s) to %s", len(cards), path)
    return len(cards)
