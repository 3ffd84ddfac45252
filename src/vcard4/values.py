"""Typed property values and their sub-parsers.

Each ``parse_*`` function takes the raw text after the colon of a content
line (or a parameter value) and returns a typed value, raising one of the
errors in :mod:`vcard4.errors`. The matching ``format_*`` helpers render the
value back to its wire form.
"""
from __future__ import annotations

import datetime
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from urllib.parse import SplitResult, urlsplit

from langcodes import Language

from . import errors
from .text import escape, split_escaped, split_text_list, unescape


class ValueType(str, Enum):
    """Value types selectable through the ``VALUE`` parameter."""

    TEXT = "text"
    URI = "uri"
    DATE = "date"
    TIME = "time"
    DATE_TIME = "date-time"
    DATE_AND_OR_TIME = "date-and-or-time"
    TIMESTAMP = "timestamp"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    UTC_OFFSET = "utc-offset"
    LANGUAGE_TAG = "language-tag"

    @classmethod
    def from_param(cls, text: str) -> ValueType:
        try:
            return cls(text.lower())
        except ValueError:
            raise errors.UnknownValueType(text) from None

    def __str__(self) -> str:
        return self.value


# ── URI and language tag ───────────────────────────────────────────────────────

_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")


@dataclass(frozen=True)
class Uri:
    value: str

    @property
    def scheme(self) -> str:
        return self.value.split(":", 1)[0].lower()

    @property
    def parts(self) -> SplitResult:
        return urlsplit(self.value)

    def __str__(self) -> str:
        return self.value


def parse_uri(text: str) -> Uri:
    if not _SCHEME_RE.match(text) or any(c.isspace() for c in text):
        raise errors.UriParse(text)
    try:
        urlsplit(text)
    except ValueError as exc:
        raise errors.UriParse(text) from exc
    return Uri(text)


def parse_language_tag(text: str) -> str:
    if not text:
        raise errors.LanguageParse(text)
    try:
        Language.get(text, normalize=False)
    except ValueError as exc:
        raise errors.LanguageParse(text) from exc
    return text


# ── Dates and times (RFC 6350 §4.3) ────────────────────────────────────────────

@dataclass(frozen=True)
class Date:
    """A possibly truncated or reduced-accuracy calendar date."""

    year: int | None = None
    month: int | None = None
    day: int | None = None

    def __str__(self) -> str:
        if self.year is not None:
            if self.month is None:
                return f"{self.year:04d}"
            if self.day is None:
                return f"{self.year:04d}-{self.month:02d}"
            return f"{self.year:04d}{self.month:02d}{self.day:02d}"
        if self.month is not None:
            if self.day is None:
                return f"--{self.month:02d}"
            return f"--{self.month:02d}{self.day:02d}"
        return f"---{self.day:02d}"

    def to_date(self) -> datetime.date | None:
        if None in (self.year, self.month, self.day):
            return None
        return datetime.date(self.year, self.month, self.day)


@dataclass(frozen=True)
class Time:
    """A possibly truncated time of day with an optional UTC offset."""

    hour: int | None = None
    minute: int | None = None
    second: int | None = None
    offset: datetime.timedelta | None = None

    def __str__(self) -> str:
        if self.hour is not None:
            text = f"{self.hour:02d}"
            if self.minute is not None:
                text += f"{self.minute:02d}"
                if self.second is not None:
                    text += f"{self.second:02d}"
        elif self.minute is not None:
            text = f"-{self.minute:02d}"
            if self.second is not None:
                text += f"{self.second:02d}"
        else:
            text = f"--{self.second:02d}"
        if self.offset is not None:
            text += format_zone(self.offset)
        return text


@dataclass(frozen=True)
class DateTime:
    date: Date = field(default_factory=Date)
    time: Time = field(default_factory=Time)

    def __str__(self) -> str:
        return f"{self.date}T{self.time}"


_DATE_PATTERNS = (
    re.compile(r"(?P<year>\d{4})(?P<month>\d{2})(?P<day>\d{2})"),
    re.compile(r"(?P<year>\d{4})-(?P<month>\d{2})"),
    re.compile(r"(?P<year>\d{4})"),
    re.compile(r"--(?P<month>\d{2})(?P<day>\d{2})?"),
    re.compile(r"---(?P<day>\d{2})"),
)
# date-noreduc: the forms allowed in front of "T"
_DATE_NOREDUC_PATTERNS = (_DATE_PATTERNS[0], _DATE_PATTERNS[3], _DATE_PATTERNS[4])

_ZONE = r"(?P<zone>Z|[+-]\d{2}(?:\d{2})?)?"
_TIME_PATTERNS = (
    re.compile(r"(?P<hour>\d{2})(?:(?P<minute>\d{2})(?P<second>\d{2})?)?" + _ZONE),
    re.compile(r"-(?P<minute>\d{2})(?P<second>\d{2})?" + _ZONE),
    re.compile(r"--(?P<second>\d{2})" + _ZONE),
)
# time-notrunc: the forms allowed after "T" in a date-time
_TIME_NOTRUNC_PATTERNS = _TIME_PATTERNS[:1]

_TIMESTAMP_RE = re.compile(
    r"(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})(?P<zone>Z|[+-]\d{2}(?:\d{2})?)?"
)
_UTC_OFFSET_RE = re.compile(r"[+-]\d{4}")
_DIGITS_RE = re.compile(r"[0-9]+")


def _int_or_none(text: str | None) -> int | None:
    return None if text is None else int(text)


def _parse_date(text: str, patterns) -> Date:
    for pattern in patterns:
        match = pattern.fullmatch(text)
        if match is None:
            continue
        parts = match.groupdict()
        date = Date(
            year=_int_or_none(parts.get("year")),
            month=_int_or_none(parts.get("month")),
            day=_int_or_none(parts.get("day")),
        )
        _check_date(text, date)
        return date
    raise errors.InvalidDate(text)


def _check_date(text: str, date: Date) -> None:
    if date.month is not None and not 1 <= date.month <= 12:
        raise errors.InvalidDate(text)
    if date.day is not None and not 1 <= date.day <= 31:
        raise errors.InvalidDate(text)
    if date.month is not None and date.day is not None:
        # 2000 is a leap year, so --0229 stays valid without a year
        year = date.year if date.year is not None else 2000
        try:
            datetime.date(year, date.month, date.day)
        except ValueError as exc:
            raise errors.InvalidDate(text) from exc


def _parse_time(text: str, patterns) -> Time:
    for pattern in patterns:
        match = pattern.fullmatch(text)
        if match is None:
            continue
        parts = match.groupdict()
        time = Time(
            hour=_int_or_none(parts.get("hour")),
            minute=_int_or_none(parts.get("minute")),
            second=_int_or_none(parts.get("second")),
            offset=_parse_zone(text, parts.get("zone"), errors.InvalidTime),
        )
        if time.hour is not None and time.hour > 23:
            raise errors.InvalidTime(text)
        if time.minute is not None and time.minute > 59:
            raise errors.InvalidTime(text)
        # 60 allows for a leap second
        if time.second is not None and time.second > 60:
            raise errors.InvalidTime(text)
        return time
    raise errors.InvalidTime(text)


def _parse_zone(text: str, zone: str | None, error) -> datetime.timedelta | None:
    if zone is None:
        return None
    if zone == "Z":
        return datetime.timedelta(0)
    hours = int(zone[1:3])
    minutes = int(zone[3:5] or 0)
    if hours > 23 or minutes > 59:
        raise error(text)
    offset = datetime.timedelta(hours=hours, minutes=minutes)
    return -offset if zone[0] == "-" else offset


def format_zone(offset: datetime.timedelta) -> str:
    if not offset:
        return "Z"
    return format_utc_offset(offset)


def parse_date(text: str) -> Date:
    return _parse_date(text, _DATE_PATTERNS)


def parse_time(text: str) -> Time:
    return _parse_time(text, _TIME_PATTERNS)


def parse_date_time(text: str) -> DateTime:
    if "T" not in text:
        raise errors.InvalidDateTime(text)
    date_text, time_text = text.split("T", 1)
    return DateTime(
        date=_parse_date(date_text, _DATE_NOREDUC_PATTERNS),
        time=_parse_time(time_text, _TIME_NOTRUNC_PATTERNS),
    )


def parse_date_and_or_time(text: str) -> Date | Time | DateTime:
    """Parse a date, a time or a date-time, tried in that precedence.

    A leading ``T`` marks a standalone time; any other ``T`` separates a
    date from a time.
    """
    if text.startswith("T"):
        return parse_time(text[1:])
    if "T" in text:
        return parse_date_time(text)
    try:
        return parse_date(text)
    except errors.InvalidDate as exc:
        date_error = exc
    try:
        return parse_time(text)
    except errors.InvalidTime:
        raise date_error from None


def format_date_and_or_time(value: Date | Time | DateTime) -> str:
    if isinstance(value, Time):
        return f"T{value}"
    return str(value)


def parse_timestamp(text: str) -> datetime.datetime:
    match = _TIMESTAMP_RE.fullmatch(text)
    if match is None:
        raise errors.InvalidDateTime(text)
    offset = _parse_zone(text, match.group("zone"), errors.InvalidDateTime)
    tzinfo = None if offset is None else datetime.timezone(offset)
    try:
        return datetime.datetime(*(int(g) for g in match.groups()[:6]), tzinfo=tzinfo)
    except ValueError as exc:
        raise errors.ComponentRange(text) from exc


def format_timestamp(value: datetime.datetime) -> str:
    text = (
        f"{value.year:04d}{value.month:02d}{value.day:02d}"
        f"T{value.hour:02d}{value.minute:02d}{value.second:02d}"
    )
    offset = value.utcoffset()
    if offset is not None:
        text += format_zone(offset)
    return text


def parse_utc_offset(text: str) -> datetime.timedelta:
    if not _UTC_OFFSET_RE.fullmatch(text):
        raise errors.InvalidUtcOffset(text)
    hours = int(text[1:3])
    minutes = int(text[3:5])
    if hours > 23 or minutes > 59:
        raise errors.InvalidUtcOffset(text)
    offset = datetime.timedelta(hours=hours, minutes=minutes)
    return -offset if text[0] == "-" else offset


def format_utc_offset(offset: datetime.timedelta) -> str:
    sign = "-" if offset < datetime.timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{sign}{minutes // 60:02d}{minutes % 60:02d}"


def is_utc_offset(text: str) -> bool:
    return bool(_UTC_OFFSET_RE.fullmatch(text))


# ── Scalars ────────────────────────────────────────────────────────────────────

_INTEGER_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?\d+(?:\.\d+)?")


def parse_boolean(text: str) -> bool:
    upper = text.upper()
    if upper == "TRUE":
        return True
    if upper == "FALSE":
        return False
    raise errors.InvalidBoolean(text)


def parse_integer(text: str) -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise errors.NumberParse(text)
    try:
        return int(text)
    except ValueError as exc:
        raise errors.NumberParse(text) from exc


def parse_float(text: str) -> float:
    if not _FLOAT_RE.fullmatch(text):
        raise errors.NumberParse(text)
    try:
        return float(text)
    except ValueError as exc:
        raise errors.NumberParse(text) from exc


def format_float(value: float) -> str:
    # positional notation only, the wire grammar has no exponent
    return format(Decimal(repr(value)), "f")


# ── Structured values ──────────────────────────────────────────────────────────

@dataclass
class DeliveryAddress:
    po_box: str | None = None
    extended: str | None = None
    street: str | None = None
    locality: str | None = None
    region: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def components(self) -> list[str | None]:
        return [
            self.po_box, self.extended, self.street, self.locality,
            self.region, self.postal_code, self.country,
        ]

    def __str__(self) -> str:
        return ";".join(escape(c or "", separators=";") for c in self.components())


def parse_address(text: str) -> DeliveryAddress:
    fields = split_escaped(text, ";")
    if len(fields) != 7:
        raise errors.InvalidAddress(text)
    return DeliveryAddress(*[unescape(f) or None for f in fields])


@dataclass
class StructuredName:
    family: list[str] = field(default_factory=list)
    given: list[str] = field(default_factory=list)
    additional: list[str] = field(default_factory=list)
    prefixes: list[str] = field(default_factory=list)
    suffixes: list[str] = field(default_factory=list)

    def components(self) -> list[list[str]]:
        return [self.family, self.given, self.additional, self.prefixes, self.suffixes]

    def __str__(self) -> str:
        return ";".join(
            ",".join(escape(v) for v in component) for component in self.components()
        )


def parse_structured_name(text: str) -> StructuredName:
    components = split_escaped(text, ";")
    if len(components) != 5:
        raise errors.InvalidPropertyValue(text)
    return StructuredName(*[
        [v for v in split_text_list(c) if v] for c in components
    ])


class Kind(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"
    ORG = "org"
    LOCATION = "location"

    def __str__(self) -> str:
        return self.value


def parse_kind(text: str) -> Kind:
    try:
        return Kind(text.lower())
    except ValueError:
        raise errors.UnknownKind(text) from None


class Sex(str, Enum):
    MALE = "M"
    FEMALE = "F"
    OTHER = "O"
    NOT_APPLICABLE = "N"
    UNKNOWN = "U"

    def __str__(self) -> str:
        return self.value


@dataclass
class Gender:
    sex: Sex | None = None
    identity: str | None = None

    def __str__(self) -> str:
        sex = str(self.sex) if self.sex is not None else ""
        if self.identity:
            return f"{sex};{escape(self.identity)}"
        return sex


def parse_gender(text: str) -> Gender:
    if not text:
        return Gender()
    parts = split_escaped(text, ";")
    sex_text = parts[0]
    identity = unescape(";".join(parts[1:])) if len(parts) > 1 else None
    sex = None
    if sex_text:
        try:
            sex = Sex(sex_text)
        except ValueError:
            raise errors.UnknownSex(sex_text) from None
    return Gender(sex=sex, identity=identity or None)


@dataclass
class ClientPidMap:
    source: int
    uri: Uri

    def __str__(self) -> str:
        return f"{self.source};{self.uri}"


def parse_client_pid_map(text: str) -> ClientPidMap:
    source, sep, uri = text.partition(";")
    if not sep or not _DIGITS_RE.fullmatch(source):
        raise errors.InvalidClientPidMap(text)
    try:
        return ClientPidMap(source=int(source), uri=parse_uri(uri))
    except errors.UriParse as exc:
        raise errors.InvalidClientPidMap(text) from exc


# ── Dispatch by value type ─────────────────────────────────────────────────────

_SCALAR_PARSERS = {
    ValueType.TEXT: unescape,
    ValueType.URI: parse_uri,
    ValueType.DATE: parse_date,
    ValueType.TIME: parse_time,
    ValueType.DATE_TIME: parse_date_time,
    ValueType.DATE_AND_OR_TIME: parse_date_and_or_time,
    ValueType.TIMESTAMP: parse_timestamp,
    ValueType.BOOLEAN: parse_boolean,
    ValueType.INTEGER: parse_integer,
    ValueType.FLOAT: parse_float,
    ValueType.UTC_OFFSET: parse_utc_offset,
    ValueType.LANGUAGE_TAG: parse_language_tag,
}


def parse_value(text: str, value_type: ValueType):
    return _SCALAR_PARSERS[value_type](text)


def format_value(value, value_type: ValueType) -> str:
    if value_type is ValueType.TEXT:
        if isinstance(value, str):
            return escape(value)
        if isinstance(value, list):
            return ",".join(escape(v) for v in value)
    if value_type is ValueType.DATE_AND_OR_TIME:
        return format_date_and_or_time(value)
    if value_type is ValueType.TIMESTAMP:
        return format_timestamp(value)
    if value_type is ValueType.UTC_OFFSET:
        return format_utc_offset(value)
    if value_type is ValueType.BOOLEAN:
        return "TRUE" if value else "FALSE"
    if value_type is ValueType.FLOAT:
        return format_float(value)
    return str(value)
