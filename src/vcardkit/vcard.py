"""vcard.py — the VCard aggregate.

A VCard is an ordered bag of properties plus a version. The version is an
attribute of the card, never a property: writers emit VERSION from it.
Properties are looked up by their exact class, so a subclass of Note is not
returned by ``get_properties(Note)``.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TypeVar

from .datatype import VCardDataType
from .property import (
    FormattedName,
    Gender,
    HasAltId,
    Note,
    Photo,
    RawProperty,
    Revision,
    StructuredName,
    VCardProperty,
)
from .validation import ValidationWarning, ValidationWarnings
from .version import VCardVersion

P = TypeVar("P", bound=VCardProperty)


def generate_alt_id(props: Iterable[HasAltId]) -> str:
    """Lowest positive integer not already used as an ALTID, as a string.

    Non-numeric ALTIDs are ignored.
    """
    taken: set[int] = set()
    for p in props:
        alt_id = p.alt_id
        if alt_id is None:
            continue
        try:
            taken.add(int(alt_id))
        except ValueError:
            continue

    n = 1
    while n in taken:
        n += 1
    return str(n)


class VCard:
    def __init__(self, original: VCard | None = None, version: VCardVersion = VCardVersion.V3_0):
        self.version = version
        self._properties: list[VCardProperty] = []
        if original is not None:
            self.version = original.version
            self._properties = [p.copy() for p in original._properties]

    def copy(self) -> VCard:
        return VCard(self)

    # ── Generic access ─────────────────────────────────────────────────────────

    def add_property(self, prop: VCardProperty) -> None:
        if prop is None:
            raise TypeError("property must not be None")
        self._properties.append(prop)

    def remove_property(self, prop: VCardProperty) -> bool:
        for i, p in enumerate(self._properties):
            if p is prop:
                del self._properties[i]
                return True
        return False

    def remove_properties(self, cls: type[P]) -> list[P]:
        removed = [p for p in self._properties if type(p) is cls]
        self._properties = [p for p in self._properties if type(p) is not cls]
        return removed  # type: ignore[return-value]

    def get_properties(self, cls: type[P] | None = None) -> list:
        if cls is None:
            return list(self._properties)
        return [p for p in self._properties if type(p) is cls]

    def get_property(self, cls: type[P]) -> P | None:
        for p in self._properties:
            if type(p) is cls:
                return p  # type: ignore[return-value]
        return None

    def set_property(self, cls: type[P], prop: P | None) -> list[P]:
        """Replace every property of exactly ``cls`` with ``prop``."""
        removed = self.remove_properties(cls)
        if prop is not None:
            self.add_property(prop)
        return removed

    def __iter__(self) -> Iterator[VCardProperty]:
        return iter(list(self._properties))

    def __len__(self) -> int:
        return len(self._properties)

    # ── Alternative representations (ALTID) ────────────────────────────────────

    def add_property_alt(self, cls: type[P], *props: P) -> None:
        """Add properties that represent the same datum, under a fresh ALTID."""
        if not (isinstance(cls, type) and issubclass(cls, HasAltId)):
            raise TypeError(f"{cls!r} properties do not carry an ALTID")
        alt_id = generate_alt_id(self.get_properties(cls))
        for p in props:
            p.alt_id = alt_id  # type: ignore[attr-defined]
            self.add_property(p)

    def get_properties_alt(self, cls: type[P]) -> list[list[P]]:
        """Properties of ``cls`` grouped by ALTID.

        Groups with an ALTID come first, in order of first appearance. Each
        property without an ALTID is a group of its own.
        """
        grouped: dict[str, list[P]] = {}
        ungrouped: list[list[P]] = []
        for p in self.get_properties(cls):
            alt_id = p.alt_id
            if alt_id is None:
                ungrouped.append([p])
            else:
                grouped.setdefault(alt_id, []).append(p)
        return list(grouped.values()) + ungrouped

    # ── Extended properties ────────────────────────────────────────────────────

    def get_extended_properties(self, name: str) -> list[RawProperty]:
        name = name.upper()
        return [p for p in self._properties if type(p) is RawProperty and p.name == name]

    def get_extended_property(self, name: str) -> RawProperty | None:
        found = self.get_extended_properties(name)
        return found[0] if found else None

    def add_extended_property(
        self,
        name: str,
        value: str | None,
        data_type: VCardDataType | None = None,
    ) -> RawProperty:
        prop = RawProperty(name, value, data_type)
        self.add_property(prop)
        return prop

    def remove_extended_property(self, name: str) -> list[RawProperty]:
        removed = self.get_extended_properties(name)
        for p in removed:
            self.remove_property(p)
        return removed

    # ── Typed accessors ────────────────────────────────────────────────────────

    def get_formatted_name(self) -> FormattedName | None:
        return self.get_property(FormattedName)

    def set_formatted_name(self, value: str | FormattedName | None) -> FormattedName | None:
        if isinstance(value, str):
            value = FormattedName(value)
        self.set_property(FormattedName, value)
        return value

    def get_structured_name(self) -> StructuredName | None:
        return self.get_property(StructuredName)

    def set_structured_name(self, value: StructuredName | None) -> None:
        self.set_property(StructuredName, value)

    def get_gender(self) -> Gender | None:
        return self.get_property(Gender)

    def set_gender(self, value: Gender | None) -> None:
        self.set_property(Gender, value)

    def get_revision(self) -> Revision | None:
        return self.get_property(Revision)

    def set_revision(self, value: Revision | None) -> None:
        self.set_property(Revision, value)

    def get_notes(self) -> list[Note]:
        return self.get_properties(Note)

    def add_note(self, value: str | Note) -> Note:
        if isinstance(value, str):
            value = Note(value)
        self.add_property(value)
        return value

    def get_photos(self) -> list[Photo]:
        return self.get_properties(Photo)

    def add_photo(self, photo: Photo) -> None:
        self.add_property(photo)

    # ── Validation ─────────────────────────────────────────────────────────────

    def validate(self, version: VCardVersion) -> ValidationWarnings:
        """Check the card against a vCard version. Collects, never raises."""
        result = ValidationWarnings()

        card_level: list[ValidationWarning] = []
        if version in (VCardVersion.V2_1, VCardVersion.V3_0) and self.get_structured_name() is None:
            card_level.append(ValidationWarning(0))
        if version in (VCardVersion.V3_0, VCardVersion.V4_0) and self.get_formatted_name() is None:
            card_level.append(ValidationWarning(1))
        result.add(None, *card_level)

        for prop in self._properties:
            result.add(prop, *prop.validate(version, self))

        return result

    # ── Equality ───────────────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, VCard):
            return NotImplemented
        if self.version != other.version:
            return False
        if len(self._properties) != len(other._properties):
            return False

        # multiset comparison without hashing; equal props may collide
        remaining = list(other._properties)
        for prop in self._properties:
            for i, candidate in enumerate(remaining):
                if prop == candidate:
                    del remaining[i]
                    break
            else:
                return False
        return not remaining

    def __hash__(self) -> int:
        return hash(self.version) + sum(hash(p) for p in self._properties)

    def __repr__(self) -> str:
        return f"VCard(version={self.version.value}, properties={self._properties!r})"
