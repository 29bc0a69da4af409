"""property.py — the property model.

Every property on a card is a VCardProperty subclass. The base class holds the
parts every property shares (group and parameters), and defines structural
equality, deep copy and the validation hook the card calls. Concrete classes
add their own value fields and rules.
"""
from __future__ import annotations

import copy
import re
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar

from .datatype import VCardDataType
from .datauri import DataUri, DataUriError
from .validation import ValidationWarning
from .version import ALL_VERSIONS, VCardVersion

if TYPE_CHECKING:
    from .vcard import VCard


# ── Parameters ─────────────────────────────────────────────────────────────────

class VCardParameters:
    """Case-insensitive, multi-valued, insertion-ordered parameter map."""

    def __init__(self, initial: dict[str, list[str]] | None = None):
        self._params: dict[str, list[str]] = {}
        for name, values in (initial or {}).items():
            for v in values:
                self.put(name, v)

    def get(self, name: str) -> str | None:
        values = self._params.get(name.upper())
        return values[0] if values else None

    def get_all(self, name: str) -> list[str]:
        return list(self._params.get(name.upper(), []))

    def put(self, name: str, value: str) -> None:
        self._params.setdefault(name.upper(), []).append(value)

    def replace(self, name: str, value: str | None) -> None:
        self._params.pop(name.upper(), None)
        if value is not None:
            self.put(name, value)

    def remove(self, name: str) -> list[str]:
        return self._params.pop(name.upper(), [])

    def names(self) -> list[str]:
        return list(self._params)

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for name, values in self._params.items():
            yield name, list(values)

    # typed helpers

    @property
    def alt_id(self) -> str | None:
        return self.get("ALTID")

    @alt_id.setter
    def alt_id(self, value: str | None) -> None:
        self.replace("ALTID", value)

    @property
    def language(self) -> str | None:
        return self.get("LANGUAGE")

    @language.setter
    def language(self, value: str | None) -> None:
        self.replace("LANGUAGE", value)

    @property
    def value(self) -> VCardDataType | None:
        raw = self.get("VALUE")
        return None if raw is None else VCardDataType.get(raw)

    @value.setter
    def value(self, data_type: VCardDataType | None) -> None:
        self.replace("VALUE", None if data_type is None else data_type.name)

    @property
    def types(self) -> list[str]:
        return self.get_all("TYPE")

    def _key(self) -> frozenset:
        return frozenset((name, tuple(values)) for name, values in self._params.items())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VCardParameters):
            return NotImplemented
        return self._params == other._params

    def __hash__(self) -> int:
        return hash(self._key())

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"VCardParameters({self._params!r})"


# ── Base ───────────────────────────────────────────────────────────────────────

class VCardProperty:
    name: ClassVar[str] = ""
    supported_versions: ClassVar[tuple[VCardVersion, ...]] = ALL_VERSIONS

    def __init__(self) -> None:
        self.group: str | None = None
        self.parameters = VCardParameters()

    def validate(self, version: VCardVersion, vcard: VCard) -> list[ValidationWarning]:
        """Check the property against a vCard version. Never raises."""
        warnings: list[ValidationWarning] = []
        if version not in self.supported_versions:
            supported = ", ".join(v.value for v in self.supported_versions)
            warnings.append(ValidationWarning(2, supported))
        self._validate(warnings, version, vcard)
        return warnings

    def _validate(self, warnings: list[ValidationWarning], version: VCardVersion, vcard: VCard) -> None:
        """Subclass hook for property-specific rules."""

    def _values(self) -> tuple:
        """The value fields that take part in equality."""
        return ()

    def copy(self) -> VCardProperty:
        return copy.deepcopy(self)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, VCardProperty):
            return NotImplemented
        if type(self) is not type(other):
            return False
        return (
            self.group == other.group
            and self.parameters == other.parameters
            and self._values() == other._values()
        )

    def __hash__(self) -> int:
        return hash((type(self).__qualname__, self.group, self.parameters, self._values()))

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self._values()!r}"


class HasAltId:
    """Mixin for properties that can take part in an ALTID group."""

    parameters: VCardParameters

    @property
    def alt_id(self) -> str | None:
        return self.parameters.alt_id

    @alt_id.setter
    def alt_id(self, value: str | None) -> None:
        self.parameters.alt_id = value


# ── Text properties ────────────────────────────────────────────────────────────

class TextProperty(VCardProperty):
    def __init__(self, value: str | None = None):
        super().__init__()
        self.value = value

    def _validate(self, warnings, version, vcard):
        if not self.value:
            warnings.append(ValidationWarning(3))

    def _values(self) -> tuple:
        return (self.value,)


class FormattedName(HasAltId, TextProperty):
    name = "FN"


class Note(HasAltId, TextProperty):
    name = "NOTE"


# ── Structured name ────────────────────────────────────────────────────────────

class StructuredName(HasAltId, VCardProperty):
    name = "N"

    def __init__(
        self,
        family: str | None = None,
        given: str | None = None,
        additional_names: list[str] | None = None,
        prefixes: list[str] | None = None,
        suffixes: list[str] | None = None,
    ):
        super().__init__()
        self.family = family
        self.given = given
        self.additional_names = list(additional_names or [])
        self.prefixes = list(prefixes or [])
        self.suffixes = list(suffixes or [])

    def _values(self) -> tuple:
        return (
            self.family,
            self.given,
            tuple(self.additional_names),
            tuple(self.prefixes),
            tuple(self.suffixes),
        )


# ── Gender ─────────────────────────────────────────────────────────────────────

SEX_VALUES = ("M", "F", "O", "N", "U")


class Gender(VCardProperty):
    name = "GENDER"
    supported_versions = (VCardVersion.V4_0,)

    def __init__(self, sex: str | None = None, text: str | None = None):
        super().__init__()
        self.sex = sex
        self.text = text

    @classmethod
    def male(cls) -> Gender:
        return cls("M")

    @classmethod
    def female(cls) -> Gender:
        return cls("F")

    @classmethod
    def other(cls) -> Gender:
        return cls("O")

    @classmethod
    def none(cls) -> Gender:
        return cls("N")

    @classmethod
    def unknown(cls) -> Gender:
        return cls("U")

    def _validate(self, warnings, version, vcard):
        if self.sex is None:
            warnings.append(ValidationWarning(3))
        elif self.sex.upper() not in SEX_VALUES:
            warnings.append(ValidationWarning(7, self.sex))

    def _values(self) -> tuple:
        return (self.sex, self.text)


# ── Revision ───────────────────────────────────────────────────────────────────

_REV_FORMATS = (
    "%Y%m%dT%H%M%SZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y%m%dT%H%M%S%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y%m%d",
    "%Y-%m-%d",
)


class Revision(VCardProperty):
    name = "REV"

    def __init__(self, value: datetime | None = None):
        super().__init__()
        self.value = value

    @classmethod
    def now(cls) -> Revision:
        return cls(datetime.now(UTC).replace(microsecond=0))

    @classmethod
    def parse(cls, text: str) -> Revision:
        """Parse a REV timestamp. Raises ValueError when no format matches."""
        text = text.strip()
        for fmt in _REV_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
            return cls(parsed)
        raise ValueError(f"unrecognised REV timestamp: {text!r}")

    def format(self) -> str | None:
        if self.value is None:
            return None
        return self.value.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")

    def _validate(self, warnings, version, vcard):
        if self.value is None:
            warnings.append(ValidationWarning(3))

    def _values(self) -> tuple:
        return (self.value,)


# ── Photo ──────────────────────────────────────────────────────────────────────

class Photo(HasAltId, VCardProperty):
    """PHOTO: either a link to an image or the image bytes themselves."""

    name = "PHOTO"

    def __init__(
        self,
        url: str | None = None,
        data: bytes | None = None,
        content_type: str | None = None,
    ):
        super().__init__()
        self.url = url
        self.data = data
        self.content_type = content_type

    @classmethod
    def from_uri(cls, uri: str) -> Photo:
        """Build from a URI value; ``data:`` URIs are decoded inline."""
        try:
            data_uri = DataUri.parse(uri)
        except DataUriError:
            return cls(url=uri)
        return cls(data=data_uri.data, content_type=data_uri.content_type)

    @property
    def data_uri(self) -> DataUri | None:
        if self.data is None:
            return None
        return DataUri(self.content_type or "application/octet-stream", self.data)

    def _validate(self, warnings, version, vcard):
        if self.url is None and self.data is None:
            warnings.append(ValidationWarning(6))

    def _values(self) -> tuple:
        ct = self.content_type.lower() if self.content_type else None
        return (self.url, self.data, ct)


# ── Extension properties ───────────────────────────────────────────────────────

_NAME_CHARS = re.compile(r"^[A-Za-z0-9-]+$")


class RawProperty(VCardProperty):
    """A property the model has no class for. The value is kept verbatim."""

    def __init__(self, name: str, value: str | None = None, data_type: VCardDataType | None = None):
        super().__init__()
        self.name = name.upper()
        self.value = value
        self.data_type = data_type

    def _validate(self, warnings, version, vcard):
        if not _NAME_CHARS.match(self.name):
            warnings.append(ValidationWarning(5, self.name))
        if self.data_type is not None and not self.data_type.is_supported_by(version):
            warnings.append(ValidationWarning(4, self.data_type.name))

    def _values(self) -> tuple:
        return (self.name, self.value, self.data_type)

    def __repr__(self) -> str:
        return f"RawProperty({self.name!r}, {self.value!r})"
