"""vCard 4.0 (RFC 6350) parser and serializer."""
from __future__ import annotations

from .config import Settings, load_settings
from .errors import VCardError
from .exporter import export_vcards, serialize, serialize_all
from .model import Card, Property
from .parameters import Parameters, Pid
from .parser import iter_cards, parse, parse_one
from .values import (
    ClientPidMap,
    Date,
    DateTime,
    DeliveryAddress,
    Gender,
    Kind,
    Sex,
    StructuredName,
    Time,
    Uri,
    ValueType,
)

__all__ = [
    "Card",
    "ClientPidMap",
    "Date",
    "DateTime",
    "DeliveryAddress",
    "Gender",
    "Kind",
    "Parameters",
    "Pid",
    "Property",
    "Settings",
    "Sex",
    "StructuredName",
    "Time",
    "Uri",
    "VCardError",
    "ValueType",
    "export_vcards",
    "iter_cards",
    "load_settings",
    "parse",
    "parse_one",
    "serialize",
    "serialize_all",
]
