from __future__ import annotations

from enum import Enum


class VCardVersion(Enum):
    V2_1 = "2.1"
    V3_0 = "3.0"
    V4_0 = "4.0"

    @property
    def version(self) -> str:
        return self.value

    @classmethod
    def value_of(cls, text: str | None) -> VCardVersion | None:
        """Return the version matching a VERSION property value, else None."""
        if text is None:
            return None
        text = text.strip()
        for v in cls:
            if v.value == text:
                return v
        return None

    def __str__(self) -> str:
        return self.value


ALL_VERSIONS: tuple[VCardVersion, ...] = tuple(VCardVersion)
