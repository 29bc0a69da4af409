from __future__ import annotations

import base64
import logging
import re
from pathlib import Path

import vobject
from vobject.base import backslashEscape
from vobject.vcard import ADDRESS_ORDER, Address, Name, serializeFields

from .datatype import VCardDataType
from .property import (
    FormattedName,
    Gender,
    Note,
    Photo,
    RawProperty,
    Revision,
    StructuredName,
    VCardParameters,
    VCardProperty,
)
from .vcard import VCard
from .version import VCardVersion

logger = logging.getLogger(__name__)

# Properties whose value is kept on a RawProperty in wire form (escaped,
# with ; and , separators) rather than as decoded text.
_STRUCTURED_RAW = {"ADR", "ORG", "CATEGORIES", "GEO"}

# ── Pre-parse sanitisation ─────────────────────────────────────────────────────
#
# vobject treats PHOTO/LOGO/SOUND values as text and splits them on unescaped
# commas, which truncates a vCard 4.0 data URI after ";base64". Escape that
# comma (and fix malformed iCloud group prefixes) before vobject sees the text.
#
#   item1..ADR                 double-dot group prefix → item1.ADR
#   .ADR                       bare leading dot        → ADR
#   PHOTO:data:x/y;base64,...  unescaped data URI      → PHOTO:data:x/y;base64\,...

_ITEM_DOUBLE_DOT = re.compile(r"^(item\d+)\.\.", re.IGNORECASE)
_BARE_DOT        = re.compile(r"^\.(?=[A-Z])", re.IGNORECASE)
_DATA_URI_VALUE  = re.compile(
    r"^((?:[\w-]+\.)?(?:PHOTO|LOGO|SOUND|KEY)(?:;[^:]*)?:data:[^;,\r\n]*;base64),",
    re.IGNORECASE,
)


def _sanitise_vcf(data: str, source_label: str) -> str:
    """Clean up known malformed line patterns before vobject sees them."""
    lines = data.splitlines(keepends=True)
    out: list[str] = []
    fixed = 0

    for line in lines:
        if _ITEM_DOUBLE_DOT.match(line):
            line = _ITEM_DOUBLE_DOT.sub(r"\1.", line)
            fixed += 1
        elif _BARE_DOT.match(line):
            line = _BARE_DOT.sub("", line)
            fixed += 1

        if _DATA_URI_VALUE.match(line):
            line = _DATA_URI_VALUE.sub(r"\1\\,", line)

        out.append(line)

    if fixed:
        logger.debug("%s: %d line(s) fixed", source_label, fixed)

    return "".join(out)


# ── vobject → model ────────────────────────────────────────────────────────────

def _text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, list):
        return ",".join(str(v) for v in value)
    return str(value)


def _as_list(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [str(v) for v in value if v]
    return [str(value)]


def _params_of(line) -> VCardParameters:
    params = VCardParameters()
    for name, values in line.params.items():
        for v in values:
            params.put(name, v)
    # vCard 2.1 style bare parameters (TEL;HOME:...) are TYPE values
    for v in getattr(line, "singletonparams", []) or []:
        params.put("TYPE", v)
    return params


def _photo_content_type(params: VCardParameters) -> str | None:
    mediatype = params.remove("MEDIATYPE")
    if mediatype:
        return mediatype[0]
    types = params.remove("TYPE")
    if types:
        t = types[0]
        return t.lower() if "/" in t else f"image/{t.lower()}"
    return None


def _to_property(line) -> VCardProperty:
    name = line.name.upper()
    value = line.value
    params = _params_of(line)

    prop: VCardProperty
    if name == "FN":
        prop = FormattedName(_text(value))
    elif name == "NOTE":
        prop = Note(_text(value))
    elif name == "N":
        if isinstance(value, Name):
            prop = StructuredName(
                family=_text(value.family) or None,
                given=_text(value.given) or None,
                additional_names=_as_list(value.additional),
                prefixes=_as_list(value.prefix),
                suffixes=_as_list(value.suffix),
            )
        else:
            prop = StructuredName(family=_text(value) or None)
    elif name == "GENDER":
        sex, _, text = (_text(value) or "").partition(";")
        prop = Gender(sex or None, text or None)
    elif name == "REV":
        try:
            prop = Revision.parse(_text(value) or "")
        except ValueError:
            logger.warning("unparseable REV %r kept as a raw property", value)
            prop = RawProperty(name, _text(value))
    elif name == "PHOTO":
        encoding = params.remove("ENCODING")
        params.remove("VALUE")
        if encoding and isinstance(value, str):
            # vCard 2.1 ENCODING=BASE64 is not decoded by vobject
            value = base64.b64decode("".join(value.split()))
        if isinstance(value, bytes):
            prop = Photo(data=value, content_type=_photo_content_type(params))
        else:
            prop = Photo.from_uri(_text(value) or "")
    else:
        data_type = params.remove("VALUE")
        if isinstance(value, Address):
            raw = serializeFields(value, ADDRESS_ORDER)
        elif isinstance(value, list) and name == "ORG":
            raw = serializeFields(value)
        elif isinstance(value, list):
            raw = ",".join(backslashEscape(str(v)) for v in value)
        elif isinstance(value, bytes):
            raw = base64.b64encode(value).decode("ascii")
        else:
            raw = _text(value)
        prop = RawProperty(name, raw, VCardDataType.get(data_type[0]) if data_type else None)

    prop.group = line.group or None
    for pname, pvalues in params.items():
        for v in pvalues:
            prop.parameters.put(pname, v)
    return prop


def _to_vcard(component, keep_unknown: bool = True) -> VCard:
    card = VCard()
    version_line = getattr(component, "version", None)
    if version_line is not None:
        version = VCardVersion.value_of(_text(version_line.value))
        if version is None:
            logger.warning("unknown vCard version %r, assuming 3.0", version_line.value)
            version = VCardVersion.V3_0
        card.version = version

    dropped = 0
    for line in component.getChildren():
        if line.name.upper() == "VERSION":
            continue
        if not keep_unknown and line.name.upper().startswith("X-"):
            dropped += 1
            continue
        card.add_property(_to_property(line))

    if dropped:
        logger.debug("dropped %d extension propert(ies)", dropped)
    return card


# ── model → vobject ────────────────────────────────────────────────────────────

def _is_wire_form(prop: RawProperty) -> bool:
    return prop.name in _STRUCTURED_RAW or prop.parameters.get("ENCODING") is not None


def _add_line(vc, prop: VCardProperty, value, encoded: bool = False):
    line = vc.add(prop.name.lower(), group=prop.group)
    if encoded:
        line.isNative = False
        line.encoded = True
    line.value = value
    for pname, pvalues in prop.parameters.items():
        line.params[pname] = list(pvalues)
    return line


def _from_vcard(card: VCard) -> list:
    """Build the content lines of ``card``: VERSION first, then card order."""
    vc = vobject.vCard()
    version = vc.add("version")
    version.value = card.version.value
    lines = [version]

    for prop in card:
        if isinstance(prop, (FormattedName, Note)):
            line = _add_line(vc, prop, prop.value or "")
        elif isinstance(prop, StructuredName):
            line = _add_line(vc, prop, Name(
                family=prop.family or "",
                given=prop.given or "",
                additional=list(prop.additional_names),
                prefix=list(prop.prefixes),
                suffix=list(prop.suffixes),
            ))
        elif isinstance(prop, Gender):
            value = backslashEscape(prop.sex or "")
            if prop.text:
                value += ";" + backslashEscape(prop.text)
            line = _add_line(vc, prop, value, encoded=True)
        elif isinstance(prop, Revision):
            line = _add_line(vc, prop, prop.format() or "")
        elif isinstance(prop, Photo):
            line = _add_photo(vc, prop, card.version)
        elif isinstance(prop, RawProperty):
            line = _add_line(vc, prop, prop.value or "", encoded=_is_wire_form(prop))
            if prop.data_type is not None:
                line.params["VALUE"] = [prop.data_type.name]
        else:
            logger.debug("no writer for %s, skipped", type(prop).__name__)
            continue
        lines.append(line)
    return lines


def _add_photo(vc, photo: Photo, version: VCardVersion):
    if photo.data is None:
        line = _add_line(vc, photo, photo.url or "", encoded=True)
        if version is not VCardVersion.V2_1:
            line.params["VALUE"] = ["uri"]
        return line

    if version is VCardVersion.V4_0:
        return _add_line(vc, photo, str(photo.data_uri), encoded=True)

    line = _add_line(vc, photo, base64.b64encode(photo.data).decode("ascii"), encoded=True)
    line.params["ENCODING"] = ["b" if version is VCardVersion.V3_0 else "BASE64"]
    if photo.content_type:
        line.params["TYPE"] = [photo.content_type.split("/")[-1].upper()]
    return line


def _serialize(card: VCard) -> str:
    # vobject's Component.serialize sorts children by name; emit them one by
    # one so the card's own order survives.
    out = ["BEGIN:VCARD\r\n"]
    out.extend(line.serialize(validate=False) for line in _from_vcard(card))
    out.append("END:VCARD\r\n")
    return "".join(out)


# ── Public API ─────────────────────────────────────────────────────────────────

def parse_vcards(text: str, source_label: str = "<string>", keep_unknown: bool = True) -> list[VCard]:
    """Parse every VCARD component in ``text`` into the model."""
    data = _sanitise_vcf(text, source_label)
    cards: list[VCard] = []
    for vc in vobject.readComponents(data, ignoreUnreadable=True):
        if vc.name.upper() == "VCARD":
            cards.append(_to_vcard(vc, keep_unknown=keep_unknown))
    logger.debug("%s: parsed %d vCard(s)", source_label, len(cards))
    return cards


def read_vcards_from_files(
    paths: list[Path],
    keep_unknown: bool = True,
) -> list[tuple[VCard, str]]:
    """Parse all .vcf files and return (vcard, source_label) pairs."""
    results: list[tuple[VCard, str]] = []
    for p in paths:
        label = p.stem
        raw = p.read_text(encoding="utf-8", errors="replace")
        for card in parse_vcards(raw, label, keep_unknown=keep_unknown):
            results.append((card, label))
    return results


def write_vcards(cards: list[VCard]) -> str:
    """Serialise ``cards`` to vCard text, keeping each card's property order."""
    return "".join(_serialize(c) for c in cards)


def export_vcards(cards: list[VCard], path: Path) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(write_vcards(cards), encoding="utf-8")
    return len(cards)

