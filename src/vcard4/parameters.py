"""Property parameters (RFC 6350 §5, RFC 6715, RFC 8605).

Well-known parameters are parsed into typed fields of :class:`Parameters`;
``X-`` parameters are kept as-is in ``extensions``. Parameter values are
RFC 6868 caret-decoded on the way in and caret-encoded on the way out.
"""
from __future__ import annotations

import datetime
import re
from dataclasses import dataclass, field

from . import errors
from .lexer import RawParameter
from .text import caret_decode, caret_encode
from .values import (
    Uri,
    ValueType,
    format_utc_offset,
    is_utc_offset,
    parse_integer,
    parse_language_tag,
    parse_uri,
    parse_utc_offset,
)

# Rendering order; also the set of names the lexer output is checked against
KNOWN_PARAMETERS = (
    "VALUE", "LANGUAGE", "PREF", "ALTID", "PID", "TYPE", "MEDIATYPE",
    "CALSCALE", "SORT-AS", "GEO", "TZ", "LABEL", "CC", "INDEX", "LEVEL",
    "CHARSET",
)
# Parameters that may carry a comma separated list of values
_MULTI_VALUED = {"PID", "TYPE", "SORT-AS"}

_UNSAFE_CHAR_RE = re.compile(r"[,:;]")
_PID_RE = re.compile(r"\d+(?:\.\d+)?")
_MEDIATYPE_RE = re.compile(r"[A-Za-z0-9!#$&.+^_-]+/[A-Za-z0-9!#$&.+^_-]+(?:\s*;.*)?")
_CC_RE = re.compile(r"[A-Za-z]{2}")


@dataclass(frozen=True)
class Pid:
    """A PID parameter value: a local identifier and optional CLIENTPIDMAP source."""

    local: int
    source: int | None = None

    def __str__(self) -> str:
        if self.source is None:
            return str(self.local)
        return f"{self.local}.{self.source}"


def parse_pid(text: str) -> Pid:
    if not _PID_RE.fullmatch(text):
        raise errors.InvalidPid(text)
    local, _, source = text.partition(".")
    return Pid(int(local), int(source) if source else None)


def parse_pref(text: str) -> int:
    pref = parse_integer(text)
    if not 1 <= pref <= 100:
        raise errors.PrefOutOfRange(pref)
    return pref


@dataclass
class Parameters:
    language: str | None = None
    value: ValueType | None = None
    pref: int | None = None
    altid: str | None = None
    pid: list[Pid] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    mediatype: str | None = None
    calscale: str | None = None
    sort_as: list[str] = field(default_factory=list)
    geo: Uri | None = None
    tz: str | datetime.timedelta | None = None
    label: str | None = None
    cc: str | None = None
    index: int | None = None
    level: str | None = None
    charset: str | None = None
    extensions: dict[str, list[str]] = field(default_factory=dict)

    def present(self) -> list[str]:
        """Names of the well-known parameters that are set, in wire order."""
        return [name for name in KNOWN_PARAMETERS if self._field(name) not in (None, [])]

    def __bool__(self) -> bool:
        return bool(self.present() or self.extensions)

    def _field(self, name: str):
        return getattr(self, _ATTRIBUTES[name])

    def render(self) -> str:
        """Render as ``;NAME=value`` segments, empty when nothing is set."""
        segments: list[str] = []
        for name in self.present():
            values = _render_values(name, self._field(name))
            segments.append(f";{name}={','.join(values)}")
        for name, values in self.extensions.items():
            segments.append(f";{name}={','.join(_quote(v) for v in values)}")
        return "".join(segments)


_ATTRIBUTES = {
    "VALUE": "value",
    "LANGUAGE": "language",
    "PREF": "pref",
    "ALTID": "altid",
    "PID": "pid",
    "TYPE": "types",
    "MEDIATYPE": "mediatype",
    "CALSCALE": "calscale",
    "SORT-AS": "sort_as",
    "GEO": "geo",
    "TZ": "tz",
    "LABEL": "label",
    "CC": "cc",
    "INDEX": "index",
    "LEVEL": "level",
    "CHARSET": "charset",
}


def _quote(value: str, force: bool = False) -> str:
    value = caret_encode(value)
    # Values containing a colon, semicolon or comma must be placed in quotes
    if force or _UNSAFE_CHAR_RE.search(value):
        return f'"{value}"'
    return value


def _render_values(name: str, value) -> list[str]:
    if name == "GEO":
        return [_quote(str(value), force=True)]
    if name == "TZ" and isinstance(value, datetime.timedelta):
        return [format_utc_offset(value)]
    if isinstance(value, list):
        return [_quote(str(v)) for v in value]
    return [_quote(str(value))]


# ── Parsing ────────────────────────────────────────────────────────────────────

def _single(raw: RawParameter) -> tuple[str, bool]:
    if len(raw.values) != 1:
        # an unquoted comma split the value
        raise errors.NotQuoted(",".join(raw.values))
    return caret_decode(raw.values[0]), raw.quoted[0]


def _parse_single(params: Parameters, raw: RawParameter) -> None:
    text, quoted = _single(raw)
    name = raw.name

    if name == "VALUE":
        params.value = ValueType.from_param(text)
    elif name == "LANGUAGE":
        params.language = parse_language_tag(text)
    elif name == "PREF":
        params.pref = parse_pref(text)
    elif name == "ALTID":
        params.altid = text
    elif name == "MEDIATYPE":
        if not _MEDIATYPE_RE.fullmatch(text):
            raise errors.InvalidPropertyValue(text)
        params.mediatype = text
    elif name == "CALSCALE":
        params.calscale = text
    elif name == "GEO":
        if not quoted:
            raise errors.NotQuoted(text)
        params.geo = parse_uri(text)
    elif name == "TZ":
        params.tz = parse_utc_offset(text) if is_utc_offset(text) else text
    elif name == "LABEL":
        params.label = text
    elif name == "CC":
        if not _CC_RE.fullmatch(text):
            raise errors.InvalidPropertyValue(text)
        params.cc = text
    elif name == "INDEX":
        index = parse_integer(text)
        if index < 1:
            raise errors.InvalidPropertyValue(text)
        params.index = index
    elif name == "LEVEL":
        params.level = text.lower()
    elif name == "CHARSET":
        if text.upper() != "UTF-8":
            raise errors.CharsetParameter(text)
        params.charset = "UTF-8"


def parse_parameters(raw_params: list[RawParameter]) -> Parameters:
    """Build :class:`Parameters` from the lexer's raw parameter list.

    Multi-valued parameters accumulate across repeated occurrences; a
    repeated single-valued parameter is an error.
    """
    params = Parameters()
    seen: set[str] = set()

    for raw in raw_params:
        name = raw.name
        if name.startswith("X-"):
            params.extensions.setdefault(name, []).extend(
                caret_decode(v) for v in raw.values
            )
            continue
        if name not in _ATTRIBUTES:
            raise errors.UnknownParameter(name)

        if name in _MULTI_VALUED:
            values = [caret_decode(v) for v in raw.values]
            if name == "PID":
                params.pid.extend(parse_pid(v) for v in values)
            elif name == "TYPE":
                # TYPE="work,voice" is a quoted list, not one value
                params.types.extend(
                    part.lower() for v in values for part in v.split(",") if part
                )
            else:
                params.sort_as.extend(part for v in values for part in v.split(","))
            continue

        if name in seen:
            raise errors.IncorrectToken(name)
        seen.add(name)
        _parse_single(params, raw)

    return params
