from __future__ import annotations

import logging
from pathlib import Path

from .config import Settings
from .model import Card
from .parser import parse

logger = logging.getLogger(__name__)


def read_vcards_from_files(
    paths: list[Path],
    settings: Settings | None = None,
) -> list[tuple[Card, str]]:
    """Parse all .vcf files and return (card, source_label) pairs.

    Files are read as bytes so that invalid UTF-8 surfaces as a parse error
    instead of being silently replaced. The first failing file raises.
    """
    results: list[tuple[Card, str]] = []
    for p in paths:
        label = p.stem
        cards = parse(p.read_bytes(), settings)
        logger.debug("%s: %d card(s)", label, len(cards))
        results.extend((card, label) for card in cards)
    return results


def collect_sources(source_dir: Path) -> list[Path]:
    """Return all .vcf files found directly inside source_dir, sorted by name."""
    if not source_dir.is_dir():
        return []
    return sorted(p for p in source_dir.iterdir() if p.suffix.lower() == ".vcf")
