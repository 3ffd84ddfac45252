from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from .parameters import Parameters
from .values import Kind, ValueType

VERSION = "4.0"


@dataclass
class Property:
    """One content line: a typed value bound to its group and parameters.

    ``value_type`` tags which variant ``value`` holds, e.g. a ``TZ`` is
    ``utc-offset`` (a ``timedelta``), ``text`` (a ``str``) or ``uri``.
    """

    name: str
    value: Any
    value_type: ValueType = ValueType.TEXT
    group: str | None = None
    parameters: Parameters = field(default_factory=Parameters)

    def display(self) -> str:
        """The value as it appears on the wire, after the colon."""
        from .properties import spec_for
        return spec_for(self.name).format(self.value, self.value_type)

    def content_line(self) -> str:
        """The unfolded content line for this property."""
        prefix = f"{self.group}." if self.group else ""
        return f"{prefix}{self.name}{self.parameters.render()}:{self.display()}"


@dataclass
class Card:
    properties: list[Property] = field(default_factory=list)
    # physical line of BEGIN:VCARD when parsed
    line: int | None = field(default=None, compare=False, repr=False)

    @property
    def version(self) -> str:
        return VERSION

    def add(self, prop: Property) -> None:
        self.properties.append(prop)

    def get(self, name: str) -> Property | None:
        name = name.upper()
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def get_all(self, name: str) -> list[Property]:
        name = name.upper()
        return [prop for prop in self.properties if prop.name == name]

    def names(self) -> list[str]:
        seen: dict[str, None] = {}
        for prop in self.properties:
            seen.setdefault(prop.name, None)
        return list(seen)

    def groups(self) -> dict[str, list[Property]]:
        out: dict[str, list[Property]] = {}
        for prop in self.properties:
            if prop.group:
                out.setdefault(prop.group.lower(), []).append(prop)
        return out

    @property
    def formatted_names(self) -> list[str]:
        return [prop.value for prop in self.get_all("FN")]

    @property
    def fn(self) -> str | None:
        names = self.formatted_names
        return names[0] if names else None

    @property
    def kind(self) -> Kind | None:
        prop = self.get("KIND")
        return prop.value if prop is not None else None

    @property
    def uid(self) -> str | None:
        prop = self.get("UID")
        return str(prop.value) if prop is not None else None

    def __iter__(self) -> Iterator[Property]:
        return iter(self.properties)

    def __len__(self) -> int:
        return len(self.properties)
