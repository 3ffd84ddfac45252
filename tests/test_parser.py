import datetime

import pytest

from conftest import wrap
from vcard4 import (
    Date,
    DeliveryAddress,
    Kind,
    Property,
    StructuredName,
    ValueType,
    errors,
    iter_cards,
    parse,
    parse_one,
)
from vcard4.config import Settings
from vcard4.properties import ONCE_PROPERTIES


# ── Basic cards ────────────────────────────────────────────────────────────────

def test_minimal_card():
    card = parse_one("BEGIN:VCARD\r\nVERSION:4.0\r\nFN:John Doe\r\nEND:VCARD\r\n")
    assert card.version == "4.0"
    assert card.properties == [Property("FN", "John Doe", ValueType.TEXT)]
    assert card.fn == "John Doe"


def test_folded_line_is_joined():
    card = parse_one("BEGIN:VCARD\r\nVERSION:4.0\r\nFN:John\r\n  Doe\r\nEND:VCARD\r\n")
    assert card.fn == "John Doe"


def test_single_space_continuation_joins_without_space():
    card = parse_one("BEGIN:VCARD\r\nVERSION:4.0\r\nFN:John\r\n Doe\r\nEND:VCARD\r\n")
    assert card.fn == "JohnDoe"


def test_address():
    card = parse_one(wrap("FN:x", "ADR:;;123 Main St;Springfield;IL;62701;USA"))
    adr = card.get("ADR").value
    assert adr == DeliveryAddress(
        po_box=None, extended=None, street="123 Main St", locality="Springfield",
        region="IL", postal_code="62701", country="USA",
    )


def test_birthday_forms():
    card = parse_one(wrap("FN:x", "BDAY:19850415"))
    bday = card.get("BDAY")
    assert bday.value == Date(1985, 4, 15)
    assert bday.value_type is ValueType.DATE_AND_OR_TIME

    card = parse_one(wrap("FN:x", "BDAY:--0415"))
    assert card.get("BDAY").value == Date(month=4, day=15)


def test_member_requires_group_kind():
    with pytest.raises(errors.MemberRequiresGroup):
        parse_one(wrap("FN:x", "MEMBER:urn:uuid:abc"))

    card = parse_one(wrap("KIND:group", "FN:x", "MEMBER:urn:uuid:abc"))
    assert card.kind is Kind.GROUP
    assert str(card.get("MEMBER").value) == "urn:uuid:abc"


def test_rfc_example(rfc_example):
    card = parse_one(rfc_example)
    assert card.fn == "Simon Perreault"
    assert card.get("N").value == StructuredName(
        ["Perreault"], ["Simon"], [], [], ["ing. jr", "M.Sc."],
    )
    assert card.get("ADR").value.locality == "Quebec"
    tels = card.get_all("TEL")
    assert tels[0].parameters.types == ["work", "voice"]
    assert tels[0].parameters.pref == 1
    assert str(tels[0].value) == "tel:+1-418-656-9254;ext=102"
    assert card.get("TZ").value == -datetime.timedelta(hours=5)
    assert card.get("TZ").value_type is ValueType.UTC_OFFSET
    assert card.get("EMAIL").value_type is ValueType.TEXT
    assert card.get("KEY").parameters.value is ValueType.URI
    assert [p.value for p in card.get_all("LANG")] == ["fr", "en"]


# ── Value dispatch ─────────────────────────────────────────────────────────────

def test_text_values_unescaped():
    card = parse_one(wrap(r"FN:Doe\, John", r"NOTE:one\ntwo\; three"))
    assert card.fn == "Doe, John"
    assert card.get("NOTE").value == "one\ntwo; three"


def test_text_lists():
    card = parse_one(wrap("FN:x", r"NICKNAME:Jim,Jimmie", r"ORG:ABC\, Inc.;North American Division"))
    assert card.get("NICKNAME").value == ["Jim", "Jimmie"]
    assert card.get("ORG").value == ["ABC, Inc.", "North American Division"]


def test_fallback_to_text():
    card = parse_one(wrap("FN:x", "TZ:America/New_York", "UID:not a uri"))
    assert card.get("TZ").value == "America/New_York"
    assert card.get("TZ").value_type is ValueType.TEXT
    assert card.get("UID").value_type is ValueType.TEXT


def test_timestamp_and_extension():
    card = parse_one(wrap(
        "FN:x", "REV:20240101T120000Z", r"X-FOO;X-BAR=1:kept\,verbatim",
        "X-COUNT;VALUE=integer:42",
    ))
    assert card.get("REV").value.year == 2024
    assert card.get("X-FOO").value == r"kept\,verbatim"
    assert card.get("X-COUNT").value == 42


def test_groups_and_accessors():
    card = parse_one(wrap("FN:x", "item1.EMAIL:a@example.com", "ITEM1.X-ABLABEL:Work"))
    assert set(card.groups()) == {"item1"}
    assert len(card.groups()["item1"]) == 2
    assert card.names() == ["FN", "EMAIL", "X-ABLABEL"]


@pytest.mark.parametrize("line, exc", [
    ("LABEL:old", errors.UnknownPropertyName),
    ("KIND:robot", errors.UnknownKind),
    ("GENDER:X", errors.UnknownSex),
    ("ADR:;;street", errors.InvalidAddress),
    ("CLIENTPIDMAP:abc", errors.InvalidClientPidMap),
    ("X-FLAG;VALUE=boolean:yes", errors.InvalidBoolean),
    ("X-N;VALUE=integer:12a", errors.NumberParse),
    ("X-D;VALUE=date-time:19850415", errors.InvalidDateTime),
    ("BDAY:19850231", errors.InvalidDate),
    ("BDAY:T250000", errors.InvalidTime),
    ("REV:20240230T120000Z", errors.ComponentRange),
    ("LANG:", errors.LanguageParse),
    ("URL:not a uri", errors.UriParse),
    ("N:Doe;John", errors.InvalidPropertyValue),
])
def test_invalid_values(line, exc):
    with pytest.raises(exc) as info:
        parse_one(wrap("FN:x", line))
    assert info.value.line == 4


# ── Card structure ─────────────────────────────────────────────────────────────

def test_several_cards_and_blank_lines():
    text = wrap("FN:a") + "\r\n\r\n" + wrap("FN:b")
    cards = parse(text)
    assert [c.fn for c in cards] == ["a", "b"]
    assert cards[1].line == 7


def test_empty_input():
    assert parse("") == []


def test_bytes_input_must_be_utf8():
    assert parse_one(wrap("FN:Zoë").encode("utf-8")).fn == "Zoë"
    with pytest.raises(errors.EncodingError):
        parse(b"BEGIN:VCARD\r\nVERSION:4.0\r\nFN:\xff\r\nEND:VCARD\r\n")


def test_version_must_follow_begin():
    with pytest.raises(errors.VersionMisplaced) as exc:
        parse("BEGIN:VCARD\r\nFN:x\r\nVERSION:4.0\r\nEND:VCARD\r\n")
    assert exc.value.line == 2


def test_only_version_four():
    with pytest.raises(errors.VersionMisplaced):
        parse("BEGIN:VCARD\r\nVERSION:3.0\r\nFN:x\r\nEND:VCARD\r\n")


def test_second_version_rejected():
    with pytest.raises(errors.VersionMisplaced):
        parse(wrap("FN:x", "VERSION:4.0"))


def test_missing_end():
    with pytest.raises(errors.TokenExpected):
        parse("BEGIN:VCARD\r\nVERSION:4.0\r\nFN:x\r\n")


def test_junk_outside_card():
    with pytest.raises(errors.IncorrectToken) as exc:
        parse("hello\r\n")
    assert exc.value.line == 1


def test_nested_begin_rejected():
    with pytest.raises(errors.IncorrectToken):
        parse(wrap("FN:x", "BEGIN:VCARD"))


def test_missing_delimiter_inside_card():
    with pytest.raises(errors.DelimiterExpected):
        parse(wrap("FN:x", "NOTE"))


def test_formatted_name_required():
    with pytest.raises(errors.NoFormattedName):
        parse(wrap("NOTE:nameless"))


ONCE_SAMPLES = {
    "KIND": "KIND:individual",
    "N": "N:Doe;John;;;",
    "BDAY": "BDAY:19850415",
    "ANNIVERSARY": "ANNIVERSARY:20090808",
    "GENDER": "GENDER:F",
    "PRODID": "PRODID:-//Example//vcard4//EN",
    "REV": "REV:20240101T120000Z",
    "UID": "UID:urn:uuid:f81d4fae-7dec-11d0-a765-00a0c91e6bf6",
}


def test_once_samples_cover_every_once_property():
    assert set(ONCE_SAMPLES) == ONCE_PROPERTIES


@pytest.mark.parametrize("name", sorted(ONCE_SAMPLES))
def test_only_once_properties(name):
    line = ONCE_SAMPLES[name]
    assert parse_one(wrap("FN:x", line)).get(name) is not None
    with pytest.raises(errors.OnlyOnce) as exc:
        parse(wrap("FN:x", line, line))
    assert exc.value.args[0] == name


def test_altid_alternatives_count_once():
    card = parse_one(wrap(
        "FN:x",
        "N;ALTID=1;LANGUAGE=ja:Yamada;Taro;;;",
        "N;ALTID=1;LANGUAGE=en:Yamada;Taro;;;",
    ))
    assert len(card.get_all("N")) == 2


def test_first_error_stops_iteration():
    cards = iter_cards(wrap("FN:ok") + wrap("NOTE:no name"))
    assert next(cards).fn == "ok"
    with pytest.raises(errors.NoFormattedName):
        next(cards)


def test_parse_one_requires_exactly_one_card():
    with pytest.raises(errors.TokenExpected):
        parse_one("")
    with pytest.raises(errors.IncorrectToken):
        parse_one(wrap("FN:a") + wrap("FN:b"))


def test_strict_line_endings_setting():
    text = "BEGIN:VCARD\nVERSION:4.0\nFN:x\nEND:VCARD\n"
    assert parse_one(text).fn == "x"
    with pytest.raises(errors.IncorrectToken):
        parse(text, Settings(strict_line_endings=True))


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse("junk\r\n")


def test_fold_anywhere_gives_same_card():
    line = "NOTE:Folding may happen at any position"
    expected = parse_one(wrap("FN:x", line))
    for i in range(1, len(line)):
        folded = line[:i] + "\r\n " + line[i:]
        assert parse_one(wrap("FN:x", folded)) == expected
