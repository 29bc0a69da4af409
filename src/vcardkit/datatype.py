"""datatype.py — value types (the VALUE parameter).

The fifteen types defined by the vCard RFCs are module-level singletons.
Any other name gets a runtime instance on first use, so callers always get a
stable object per name, but `find()` and `all()` only ever see the standard
ones.
"""
from __future__ import annotations

import logging
import threading

from .version import ALL_VERSIONS, VCardVersion

logger = logging.getLogger(__name__)


class VCardDataType:
    __slots__ = ("name", "_versions")

    # populated below, after the class body
    URL: VCardDataType
    CONTENT_ID: VCardDataType
    BINARY: VCardDataType
    URI: VCardDataType
    TEXT: VCardDataType
    DATE: VCardDataType
    TIME: VCardDataType
    DATE_TIME: VCardDataType
    DATE_AND_OR_TIME: VCardDataType
    TIMESTAMP: VCardDataType
    BOOLEAN: VCardDataType
    INTEGER: VCardDataType
    FLOAT: VCardDataType
    UTC_OFFSET: VCardDataType
    LANGUAGE_TAG: VCardDataType

    _well_known: dict[str, VCardDataType] = {}
    _runtime: dict[str, VCardDataType] = {}
    _lock = threading.Lock()

    def __init__(self, name: str, *versions: VCardVersion):
        self.name = name
        self._versions = tuple(versions) if versions else ALL_VERSIONS

    # ── Lookup ─────────────────────────────────────────────────────────────────

    @classmethod
    def find(cls, name: str) -> VCardDataType | None:
        """Standard data type by case-insensitive name. Ignores runtime types."""
        return cls._well_known.get(name.lower())

    @classmethod
    def get(cls, name: str) -> VCardDataType:
        """Standard data type by name, or a runtime one (created if needed)."""
        key = name.lower()
        found = cls._well_known.get(key)
        if found is not None:
            return found

        with cls._lock:
            found = cls._runtime.get(key)
            if found is None:
                found = cls(name)
                cls._runtime[key] = found
                logger.debug("registered runtime data type %r", name)
            return found

    @classmethod
    def all(cls) -> frozenset[VCardDataType]:
        return frozenset(cls._well_known.values())

    # ── Versions ───────────────────────────────────────────────────────────────

    @property
    def supported_versions(self) -> tuple[VCardVersion, ...]:
        return self._versions

    def is_supported_by(self, version: VCardVersion) -> bool:
        return version in self._versions

    # instances are singletons per name; copying a property must not clone them
    def __copy__(self) -> VCardDataType:
        return self

    def __deepcopy__(self, memo: dict) -> VCardDataType:
        return self

    def __repr__(self) -> str:
        return f"VCardDataType({self.name!r})"

    def __str__(self) -> str:
        return self.name


def _register(attr: str, name: str, *versions: VCardVersion) -> None:
    data_type = VCardDataType(name, *versions)
    VCardDataType._well_known[name.lower()] = data_type
    setattr(VCardDataType, attr, data_type)


_V21, _V30, _V40 = VCardVersion.V2_1, VCardVersion.V3_0, VCardVersion.V4_0

_register("URL", "url", _V21)
_register("CONTENT_ID", "content-id", _V21)
_register("BINARY", "binary", _V30)
_register("URI", "uri", _V30, _V40)
_register("TEXT", "text")
_register("DATE", "date", _V30, _V40)
_register("TIME", "time", _V30, _V40)
_register("DATE_TIME", "date-time", _V30, _V40)
_register("DATE_AND_OR_TIME", "date-and-or-time", _V40)
_register("TIMESTAMP", "timestamp", _V40)
_register("BOOLEAN", "boolean", _V40)
_register("INTEGER", "integer", _V40)
_register("FLOAT", "float", _V40)
_register("UTC_OFFSET", "utc-offset", _V40)
_register("LANGUAGE_TAG", "language-tag", _V40)
