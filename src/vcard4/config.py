from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    fold_width: int = 75
    line_ending: str = "\r\n"
    strict_line_endings: bool = False


DEFAULT_CONF = """# vcard4 settings (TOML)
fold_width = 75
line_ending = "\\r\\n"
strict_line_endings = false
"""

_LINE_ENDINGS = ("\r\n", "\n")


def _apply(settings: Settings, data: dict[str, Any]) -> Settings:
    known = {f.name: f for f in fields(Settings)}
    for key, value in data.items():
        key = key.replace("-", "_")
        if key not in known:
            logger.debug("ignoring unknown setting %r", key)
            continue
        setattr(settings, key, value)

    settings.fold_width = int(settings.fold_width)
    settings.strict_line_endings = bool(settings.strict_line_endings)
    if settings.fold_width < 2:
        raise ValueError(f"fold_width must be at least 2, got {settings.fold_width}")
    if settings.line_ending not in _LINE_ENDINGS:
        raise ValueError(f"line_ending must be CRLF or LF, got {settings.line_ending!r}")
    return settings


def load_settings(path: Path | None = None) -> Settings:
    """Read settings from a TOML file.

    Keys may sit at the top level or under a ``[vcard4]`` table. A missing
    file gives the defaults; an unreadable or malformed one falls back to
    the defaults with a warning.
    """
    settings = Settings()
    if path is None:
        return settings

    path = Path(path)
    if not path.exists():
        return settings

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        data = data.get("vcard4", data)
        return _apply(settings, data)
    except (OSError, tomllib.TOMLDecodeError, TypeError, ValueError) as exc:
        logger.warning("%s: could not load settings, using defaults (%s)", path, exc)
        return Settings()


def write_default_settings(path: Path) -> None:
    """Create a settings file with the defaults if none exists yet."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text(DEFAULT_CONF, encoding="utf-8")
