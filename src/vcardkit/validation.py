from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .property import VCardProperty

MESSAGES: dict[int, str] = {
    0: "A StructuredName property is required for vCard versions 2.1 and 3.0.",
    1: "A FormattedName property is required for vCard versions 3.0 and 4.0.",
    2: "Property is not supported in this vCard version.  Supported versions are: {0}",
    3: "Property has no value.",
    4: 'Data type "{0}" is not supported in this vCard version.',
    5: 'Property name "{0}" contains invalid characters.',
    6: "Property has neither a URL nor binary data attached to it.",
    7: 'Gender value "{0}" is not one of M, F, O, N, U.',
}


class ValidationWarning:
    """A single validation problem. Either a catalog code or free text."""

    __slots__ = ("code", "args", "message")

    def __init__(self, code: int | str, *args: object):
        if isinstance(code, str):
            self.code: int | None = None
            self.args: tuple[object, ...] = ()
            self.message = code
        else:
            self.code = code
            self.args = args
            self.message = MESSAGES.get(code, f"Unknown warning {code}.").format(*args)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationWarning):
            return NotImplemented
        return self.code == other.code and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.code, self.message))

    def __repr__(self) -> str:
        return f"ValidationWarning({self.code!r}, {self.message!r})"

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"({self.code}) {self.message}"


class ValidationWarnings:
    """Warnings produced by a validation pass, grouped by property.

    Entries are keyed by property *identity*: two structurally equal NOTEs
    get separate entries. Card-level warnings are stored under ``None``.
    """

    def __init__(self) -> None:
        self._entries: list[tuple[VCardProperty | None, list[ValidationWarning]]] = []

    def add(self, prop: VCardProperty | None, *warnings: ValidationWarning) -> None:
        if not warnings:
            return
        for owner, found in self._entries:
            if owner is prop:
                found.extend(warnings)
                return
        self._entries.append((prop, list(warnings)))

    def __getitem__(self, prop: VCardProperty | None) -> list[ValidationWarning]:
        for owner, found in self._entries:
            if owner is prop:
                return list(found)
        return []

    def get_by_property(self, cls: type) -> list[ValidationWarning]:
        return [w for owner, found in self._entries if type(owner) is cls for w in found]

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[VCardProperty | None, list[ValidationWarning]]]:
        for owner, found in self._entries:
            yield owner, list(found)

    def __str__(self) -> str:
        lines: list[str] = []
        for owner, found in self._entries:
            label = owner.name if owner is not None else ""
            for w in found:
                code = "" if w.code is None else f"W{w.code:02d}: "
                lines.append(f"[{label}] | {code}{w.message}")
        return "\n".join(lines)
