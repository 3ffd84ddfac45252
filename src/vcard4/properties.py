"""Property dispatch: name → value grammar and parameter policy.

Each known property has a :class:`PropertySpec` describing the value types
its ``VALUE`` parameter may select (the first is the default), the
parameters it accepts, whether it may appear only once per card, and how a
``text`` value is split and joined. Any other well-formed name is an
extension property whose text is preserved verbatim.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from . import errors
from .lexer import ContentLine
from .model import Property
from .parameters import KNOWN_PARAMETERS, Parameters, parse_parameters
from .text import escape, split_text_list, unescape
from .values import (
    ValueType,
    format_value,
    parse_address,
    parse_client_pid_map,
    parse_gender,
    parse_kind,
    parse_structured_name,
    parse_value,
)

logger = logging.getLogger(__name__)

# Always accepted, whatever the property
_UNIVERSAL = frozenset({"CHARSET"})

# Dropped in vCard 4.0 (RFC 6350 Appendix A)
REMOVED_PROPERTIES = frozenset({
    "AGENT", "CLASS", "LABEL", "MAILER", "NAME", "PROFILE", "SORT-STRING",
})

TELEPHONE_TYPES = frozenset({
    "text", "voice", "fax", "cell", "video", "pager", "textphone", "work", "home",
})
RELATED_TYPES = frozenset({
    "contact", "acquaintance", "friend", "met", "co-worker", "colleague",
    "co-resident", "neighbor", "child", "parent", "sibling", "spouse", "kin",
    "muse", "crush", "date", "sweetheart", "me", "agent", "emergency",
    "work", "home",
})


def _join_list(separator: str) -> Callable[[list[str]], str]:
    def join(values: list[str]) -> str:
        return separator.join(escape(v) for v in values)
    return join


def _split_org(text: str) -> list[str]:
    return split_text_list(text, ";")


def _verbatim(text: str) -> str:
    return text


@dataclass(frozen=True)
class PropertySpec:
    name: str
    value_types: tuple[ValueType, ...]
    parameters: frozenset[str]
    once: bool = False
    parse_text: Callable[[str], Any] = unescape
    format_text: Callable[[Any], str] = escape
    fallback: ValueType | None = None
    allow_value: bool = True
    types: frozenset[str] | None = None
    type_error: type[errors.VCardError] | None = None

    @property
    def default_type(self) -> ValueType:
        return self.value_types[0]

    def parse(self, text: str, value_type: ValueType):
        if value_type is ValueType.TEXT:
            return self.parse_text(text)
        return parse_value(text, value_type)

    def format(self, value, value_type: ValueType) -> str:
        if value_type is ValueType.TEXT:
            return self.format_text(value)
        return format_value(value, value_type)


T = ValueType
_URI_PARAMS = frozenset({"PID", "PREF", "TYPE", "MEDIATYPE", "ALTID"})
_TEXT_PARAMS = frozenset({"LANGUAGE", "PID", "PREF", "ALTID", "TYPE"})
_TEXT_LIST = dict(parse_text=split_text_list, format_text=_join_list(","))


def _specs(*specs: PropertySpec) -> dict[str, PropertySpec]:
    return {spec.name: spec for spec in specs}


PROPERTIES: dict[str, PropertySpec] = _specs(
    # General (RFC 6350 §6.1)
    PropertySpec("SOURCE", (T.URI,), frozenset({"PID", "PREF", "ALTID", "MEDIATYPE"})),
    PropertySpec("KIND", (T.TEXT,), frozenset(), once=True,
                 parse_text=parse_kind, format_text=str),
    PropertySpec("XML", (T.TEXT,), frozenset({"ALTID"})),
    # Identification (§6.2)
    PropertySpec("FN", (T.TEXT,), _TEXT_PARAMS),
    PropertySpec("N", (T.TEXT,), frozenset({"SORT-AS", "LANGUAGE", "ALTID"}), once=True,
                 parse_text=parse_structured_name, format_text=str),
    PropertySpec("NICKNAME", (T.TEXT,), _TEXT_PARAMS, **_TEXT_LIST),
    PropertySpec("PHOTO", (T.URI,), _URI_PARAMS),
    PropertySpec("BDAY", (T.DATE_AND_OR_TIME, T.TEXT),
                 frozenset({"ALTID", "CALSCALE", "LANGUAGE"}), once=True),
    PropertySpec("ANNIVERSARY", (T.DATE_AND_OR_TIME, T.TEXT),
                 frozenset({"ALTID", "CALSCALE", "LANGUAGE"}), once=True),
    PropertySpec("GENDER", (T.TEXT,), frozenset(), once=True,
                 parse_text=parse_gender, format_text=str),
    # Delivery addressing (§6.3)
    PropertySpec("ADR", (T.TEXT,),
                 frozenset({"LABEL", "LANGUAGE", "GEO", "TZ", "ALTID", "PID",
                            "PREF", "TYPE", "CC"}),
                 parse_text=parse_address, format_text=str),
    # Communications (§6.4)
    PropertySpec("TEL", (T.URI, T.TEXT), frozenset({"TYPE", "PID", "PREF", "ALTID"}),
                 fallback=T.TEXT, types=TELEPHONE_TYPES,
                 type_error=errors.UnknownTelephoneType),
    PropertySpec("EMAIL", (T.URI, T.TEXT), frozenset({"PID", "PREF", "TYPE", "ALTID"}),
                 fallback=T.TEXT),
    PropertySpec("IMPP", (T.URI,), _URI_PARAMS),
    PropertySpec("LANG", (T.LANGUAGE_TAG,), frozenset({"PID", "PREF", "ALTID", "TYPE"})),
    # Geographical (§6.5)
    PropertySpec("TZ", (T.UTC_OFFSET, T.TEXT, T.URI), _URI_PARAMS, fallback=T.TEXT),
    PropertySpec("GEO", (T.URI,), _URI_PARAMS),
    # Organizational (§6.6)
    PropertySpec("TITLE", (T.TEXT,), _TEXT_PARAMS),
    PropertySpec("ROLE", (T.TEXT,), _TEXT_PARAMS),
    PropertySpec("LOGO", (T.URI,), _URI_PARAMS | {"LANGUAGE"}),
    PropertySpec("ORG", (T.TEXT,), _TEXT_PARAMS | {"SORT-AS"},
                 parse_text=_split_org, format_text=_join_list(";")),
    PropertySpec("MEMBER", (T.URI,), frozenset({"PID", "PREF", "ALTID", "MEDIATYPE"})),
    PropertySpec("RELATED", (T.URI, T.TEXT), _URI_PARAMS | {"LANGUAGE"},
                 fallback=T.TEXT, types=RELATED_TYPES,
                 type_error=errors.UnknownRelatedType),
    # Explanatory (§6.7)
    PropertySpec("CATEGORIES", (T.TEXT,), frozenset({"PID", "PREF", "TYPE", "ALTID"}),
                 **_TEXT_LIST),
    PropertySpec("NOTE", (T.TEXT,), _TEXT_PARAMS),
    PropertySpec("PRODID", (T.TEXT,), frozenset(), once=True),
    PropertySpec("REV", (T.TIMESTAMP,), frozenset(), once=True),
    PropertySpec("SOUND", (T.URI,), _URI_PARAMS | {"LANGUAGE"}),
    PropertySpec("UID", (T.URI, T.TEXT), frozenset(), once=True, fallback=T.TEXT),
    PropertySpec("CLIENTPIDMAP", (T.TEXT,), frozenset(), allow_value=False,
                 parse_text=parse_client_pid_map, format_text=str),
    PropertySpec("URL", (T.URI,), _URI_PARAMS),
    # Security (§6.8)
    PropertySpec("KEY", (T.URI, T.TEXT), _URI_PARAMS, fallback=T.TEXT),
    # Calendar (§6.9)
    PropertySpec("FBURL", (T.URI,), _URI_PARAMS),
    PropertySpec("CALADRURI", (T.URI,), _URI_PARAMS),
    PropertySpec("CALURI", (T.URI,), _URI_PARAMS),
)

ONCE_PROPERTIES = frozenset(name for name, spec in PROPERTIES.items() if spec.once)


def extension_spec(name: str) -> PropertySpec:
    return PropertySpec(
        name,
        (T.TEXT, *(t for t in ValueType if t is not T.TEXT)),
        frozenset(KNOWN_PARAMETERS) - {"LABEL"},
        parse_text=_verbatim,
        format_text=_verbatim,
    )


def spec_for(name: str) -> PropertySpec:
    name = name.upper()
    if name in PROPERTIES:
        return PROPERTIES[name]
    return extension_spec(name)


def is_extension(name: str) -> bool:
    return name.upper() not in PROPERTIES


# ── Parameter policy ───────────────────────────────────────────────────────────

def check_parameters(spec: PropertySpec, params: Parameters) -> None:
    for param in params.present():
        if param == "VALUE" and spec.allow_value:
            continue
        if param in spec.parameters or param in _UNIVERSAL:
            continue
        if param == "LABEL":
            raise errors.InvalidLabel(spec.name)
        if param == "PID" and spec.name == "CLIENTPIDMAP":
            raise errors.ClientPidMapPidNotAllowed()
        raise errors.TypeParameter(spec.name, param)

    if spec.types is not None:
        for value in params.types:
            if value not in spec.types and not value.startswith("x-"):
                raise spec.type_error(value)


def _check_value_parameters(spec: PropertySpec, params: Parameters,
                            value_type: ValueType) -> None:
    # BDAY and ANNIVERSARY: LANGUAGE only with text, CALSCALE only without
    if spec.name in ("BDAY", "ANNIVERSARY"):
        if params.language is not None and value_type is not T.TEXT:
            raise errors.TypeParameter(spec.name, "LANGUAGE")
        if params.calscale is not None and value_type is T.TEXT:
            raise errors.TypeParameter(spec.name, "CALSCALE")


# ── Property parser ────────────────────────────────────────────────────────────

def parse_property(content: ContentLine) -> Property:
    """Turn a lexed content line into a typed :class:`Property`."""
    name = content.name
    try:
        if name in REMOVED_PROPERTIES:
            raise errors.UnknownPropertyName(name)

        spec = spec_for(name)
        params = parse_parameters(content.params)
        check_parameters(spec, params)

        if params.value is not None:
            value_type = params.value
            if value_type not in spec.value_types:
                raise errors.UnsupportedValueType(str(value_type), name)
            value = spec.parse(content.value, value_type)
        else:
            value_type = spec.default_type
            try:
                value = spec.parse(content.value, value_type)
            except errors.VCardError:
                if spec.fallback is None:
                    raise
                value_type = spec.fallback
                value = spec.parse(content.value, value_type)

        _check_value_parameters(spec, params, value_type)
    except errors.VCardError as exc:
        if content.line is not None:
            exc.at_line(content.line)
        raise

    if is_extension(name):
        logger.debug("line %s: keeping extension property %s", content.line, name)

    return Property(
        name=name,
        value=value,
        value_type=value_type,
        group=content.group,
        parameters=params,
    )
