"""datauri.py — binary payloads embedded as ``data:`` URIs.

Format:  data:<content-type>;base64,<payload>

The scheme and the encoding token are matched case-insensitively. The content
type is kept exactly as written (no normalisation), because real-world cards
carry unescaped media types that a general URI parser would reject.
"""
from __future__ import annotations

import base64
import binascii
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

SCHEME = "data:"
ENCODING = "base64"


class DataUriErrorCause(Enum):
    NOT_DATA_SCHEME = "not a data URI"
    MALFORMED = "malformed data URI"
    UNSUPPORTED_ENCODING = "unsupported encoding"


class DataUriError(ValueError):
    def __init__(self, cause: DataUriErrorCause, token: str | None = None):
        self.cause = cause
        self.token = token
        if cause is DataUriErrorCause.NOT_DATA_SCHEME:
            msg = f"Not a data URI: must start with {token!r}."
        elif cause is DataUriErrorCause.UNSUPPORTED_ENCODING:
            msg = f"Unsupported data URI encoding {token!r}: only 'base64' is supported."
        else:
            msg = "Malformed data URI: expected data:<content-type>;base64,<data>."
        super().__init__(msg)


@dataclass(frozen=True, eq=False)
class DataUri:
    content_type: str | None
    data: bytes

    def __post_init__(self) -> None:
        # "data:;base64,..." has no content type; keep one spelling for it
        if self.content_type == "":
            object.__setattr__(self, "content_type", None)

    @classmethod
    def parse(cls, uri: str) -> DataUri:
        if len(uri) < len(SCHEME) or uri[: len(SCHEME)].lower() != SCHEME:
            raise DataUriError(DataUriErrorCause.NOT_DATA_SCHEME, SCHEME)

        semicolon = uri.find(";")
        if semicolon < 0:
            raise DataUriError(DataUriErrorCause.MALFORMED)

        comma = uri.find(",", semicolon + 1)
        if comma < 0:
            raise DataUriError(DataUriErrorCause.MALFORMED)

        content_type = uri[len(SCHEME):semicolon]

        encoding = uri[semicolon + 1:comma]
        if encoding.lower() != ENCODING:
            raise DataUriError(DataUriErrorCause.UNSUPPORTED_ENCODING, encoding)

        payload = "".join(uri[comma + 1:].split())
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DataUriError(DataUriErrorCause.MALFORMED) from exc

        return cls(content_type, data)

    @classmethod
    def from_file(cls, path: Path, content_type: str | None = None) -> DataUri:
        """Build a data URI from a file, guessing the media type from its name."""
        if content_type is None:
            content_type, _ = mimetypes.guess_type(path.name)
            content_type = content_type or "application/octet-stream"
        return cls(content_type, path.read_bytes())

    def __str__(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"{SCHEME}{self.content_type or ''};{ENCODING},{encoded}"

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, DataUri):
            return NotImplemented
        if self.content_type is None:
            if other.content_type is not None:
                return False
        elif other.content_type is None or self.content_type.lower() != other.content_type.lower():
            return False
        return self.data == other.data

    def __hash__(self) -> int:
        ct = 0 if self.content_type is None else hash(self.content_type.lower())
        return hash((ct, self.data))
