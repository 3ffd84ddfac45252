import datetime

import pytest

from vcard4 import errors
from vcard4.text import caret_decode, caret_encode, escape, fold, split_escaped, unescape
from vcard4.values import (
    Date,
    DateTime,
    DeliveryAddress,
    Gender,
    Kind,
    Sex,
    StructuredName,
    Time,
    ValueType,
    format_float,
    format_utc_offset,
    format_value,
    parse_address,
    parse_boolean,
    parse_client_pid_map,
    parse_date,
    parse_date_and_or_time,
    parse_date_time,
    parse_float,
    parse_gender,
    parse_integer,
    parse_kind,
    parse_language_tag,
    parse_structured_name,
    parse_timestamp,
    parse_uri,
    parse_utc_offset,
)


# ── Text escaping ──────────────────────────────────────────────────────────────

def test_unescape_known_sequences():
    assert unescape(r"a\,b\;c\\d\ne\Nf") == "a,b;c\\d\ne\nf"


def test_escape_then_unescape_is_identity():
    s = "Line one\nback\\slash, comma; semi"
    assert unescape(escape(s)) == s


def test_split_escaped_ignores_escaped_separator():
    assert split_escaped(r"a\;b;c", ";") == [r"a\;b", "c"]


def test_caret_encoding():
    assert caret_decode("^'quoted^' ^^ line^nbreak") == "\"quoted\" ^ line\nbreak"
    assert caret_encode('say "hi"\n') == "say ^'hi^'^n"


def test_fold_respects_octet_width():
    line = "NOTE:" + "é" * 80
    folded = fold(line)
    physical = folded.split("\r\n")
    assert all(len(p.encode("utf-8")) <= 75 for p in physical)
    assert "".join(p[1:] if i else p for i, p in enumerate(physical)) == line


def test_short_line_is_not_folded():
    assert fold("FN:x") == "FN:x"


# ── UTC offset ─────────────────────────────────────────────────────────────────

def test_utc_offset_valid():
    assert parse_utc_offset("+1200") == datetime.timedelta(hours=12)
    assert parse_utc_offset("-0500") == -datetime.timedelta(hours=5)
    assert parse_utc_offset("-0530") == -datetime.timedelta(hours=5, minutes=30)


@pytest.mark.parametrize("text", ["0500", "+4400", "+2400", "+0560", "+05", "+05:00", ""])
def test_utc_offset_invalid(text):
    with pytest.raises(errors.InvalidUtcOffset):
        parse_utc_offset(text)


def test_utc_offset_formatting():
    assert format_utc_offset(-datetime.timedelta(hours=5, minutes=30)) == "-0530"
    assert format_utc_offset(datetime.timedelta(0)) == "+0000"


# ── Dates and times ────────────────────────────────────────────────────────────

def test_date_forms():
    assert parse_date("19850415") == Date(1985, 4, 15)
    assert parse_date("1985-04") == Date(1985, 4)
    assert parse_date("1985") == Date(1985)
    assert parse_date("--0415") == Date(None, 4, 15)
    assert parse_date("---15") == Date(day=15)
    assert str(Date(None, 4, 15)) == "--0415"


def test_leap_day_without_year():
    assert parse_date("--0229") == Date(None, 2, 29)
    with pytest.raises(errors.InvalidDate):
        parse_date("19850229")


def test_date_and_or_time_forms():
    assert parse_date_and_or_time("19850415") == Date(1985, 4, 15)
    assert parse_date_and_or_time("T102200") == Time(10, 22, 0)
    assert parse_date_and_or_time("19531015T231000Z") == DateTime(
        Date(1953, 10, 15), Time(23, 10, 0, datetime.timedelta(0)),
    )
    value = parse_date_and_or_time("20090808T1430-0500")
    assert value.time.offset == -datetime.timedelta(hours=5)
    assert format_value(value, ValueType.DATE_AND_OR_TIME) == "20090808T1430-0500"
    assert format_value(Time(10, 22), ValueType.DATE_AND_OR_TIME) == "T1022"


def test_invalid_dates_and_times():
    with pytest.raises(errors.InvalidDate):
        parse_date_and_or_time("19850231")
    with pytest.raises(errors.InvalidTime):
        parse_date_and_or_time("T250000")
    with pytest.raises(errors.InvalidDateTime):
        parse_date_time("19850415")


def test_timestamp():
    ts = parse_timestamp("20240101T120000Z")
    assert ts == datetime.datetime(2024, 1, 1, 12, tzinfo=datetime.timezone.utc)
    assert format_value(ts, ValueType.TIMESTAMP) == "20240101T120000Z"
    with pytest.raises(errors.ComponentRange):
        parse_timestamp("20240230T120000Z")


def test_timestamp_pads_early_years():
    ts = parse_timestamp("09990101T000000Z")
    assert ts.year == 999
    assert format_value(ts, ValueType.TIMESTAMP) == "09990101T000000Z"


# ── Scalars ────────────────────────────────────────────────────────────────────

def test_boolean():
    assert parse_boolean("TRUE") is True
    assert parse_boolean("false") is False
    with pytest.raises(errors.InvalidBoolean):
        parse_boolean("yes")


def test_numbers():
    assert parse_integer("-42") == -42
    assert parse_float("1.5") == 1.5
    assert format_float(0.00001) == "0.00001"
    with pytest.raises(errors.NumberParse):
        parse_integer("12a")
    with pytest.raises(errors.NumberParse):
        parse_float("1e5")


def test_uri():
    uri = parse_uri("urn:uuid:f81d4fae-7dec-11d0-a765-00a0c91e6bf6")
    assert uri.scheme == "urn"
    assert str(uri) == "urn:uuid:f81d4fae-7dec-11d0-a765-00a0c91e6bf6"
    with pytest.raises(errors.UriParse):
        parse_uri("not a uri")


def test_language_tag():
    assert parse_language_tag("en-US") == "en-US"
    with pytest.raises(errors.LanguageParse):
        parse_language_tag("")


# ── Structured values ──────────────────────────────────────────────────────────

def test_address_components():
    adr = parse_address(";;123 Main St;Springfield;IL;62701;USA")
    assert adr == DeliveryAddress(
        street="123 Main St", locality="Springfield", region="IL",
        postal_code="62701", country="USA",
    )
    assert str(adr) == ";;123 Main St;Springfield;IL;62701;USA"


def test_address_needs_seven_components():
    with pytest.raises(errors.InvalidAddress):
        parse_address(";;123 Main St")


def test_structured_name():
    n = parse_structured_name("Perreault;Simon;;;ing. jr,M.Sc.")
    assert n == StructuredName(["Perreault"], ["Simon"], [], [], ["ing. jr", "M.Sc."])
    assert str(n) == "Perreault;Simon;;;ing. jr,M.Sc."
    with pytest.raises(errors.InvalidPropertyValue):
        parse_structured_name("Doe;John")


def test_kind():
    assert parse_kind("Group") is Kind.GROUP
    with pytest.raises(errors.UnknownKind):
        parse_kind("robot")


def test_gender():
    assert parse_gender("M") == Gender(Sex.MALE)
    assert parse_gender("O;intersex") == Gender(Sex.OTHER, "intersex")
    assert parse_gender(";it's complicated") == Gender(None, "it's complicated")
    assert parse_gender("") == Gender()
    assert parse_gender(";") == Gender()
    with pytest.raises(errors.UnknownSex):
        parse_gender("X")


def test_client_pid_map():
    cpm = parse_client_pid_map("1;urn:uuid:3df403f4-5924-4bb7-b077-3c711d9eb34b")
    assert cpm.source == 1
    assert cpm.uri.scheme == "urn"
    with pytest.raises(errors.InvalidClientPidMap):
        parse_client_pid_map("abc")
    with pytest.raises(errors.InvalidClientPidMap):
        parse_client_pid_map("\u00b2;urn:uuid:3df403f4-5924-4bb7-b077-3c711d9eb34b")
