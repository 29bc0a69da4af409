"""Tests for the VCard aggregate — property access, ALTID groups, equality, copy."""
from __future__ import annotations

import pytest

from vcardkit.property import (
    FormattedName,
    Gender,
    HasAltId,
    Note,
    RawProperty,
    Revision,
    StructuredName,
    VCardProperty,
)
from vcardkit.vcard import VCard, generate_alt_id
from vcardkit.version import VCardVersion


# ── helpers ────────────────────────────────────────────────────────────────────

class AltIdProp(HasAltId, VCardProperty):
    name = "X-ALT"

    def __init__(self, alt_id: str | None):
        super().__init__()
        self.alt_id = alt_id


def _card(*notes: str, fn: str = "Name") -> VCard:
    card = VCard()
    card.set_formatted_name(fn)
    card.set_gender(Gender.male())
    for n in notes:
        card.add_note(n)
    return card


# ── property access ────────────────────────────────────────────────────────────

def test_get_all_properties():
    card = VCard()
    rev = Revision.now()
    card.set_revision(rev)
    note = card.add_note("A note.")
    x_gender = card.add_extended_property("X-GENDER", "male")
    x_manager1 = card.add_extended_property("X-MANAGER", "Michael Scott")
    x_manager2 = card.add_extended_property("X-MANAGER", "Pointy Haired Boss")

    props = card.get_properties()
    assert props == [rev, note, x_gender, x_manager1, x_manager2]
    assert len(card) == 5


def test_version_only_card_has_no_properties():
    card = VCard()
    card.version = VCardVersion.V2_1
    assert card.get_properties() == []


def test_default_version():
    assert VCard().version is VCardVersion.V3_0


def test_add_extended_property():
    card = VCard()
    prop = card.add_extended_property("name", "value")
    assert prop.name == "NAME"
    assert prop.value == "value"
    assert card.get_extended_properties("NAME") == [prop]
    assert card.get_extended_properties("nAmE") == [prop]
    assert card.get_extended_property("name") is prop


def test_remove_extended_property():
    card = VCard()
    card.add_extended_property("X-A", "1")
    card.add_extended_property("X-A", "2")
    keep = card.add_extended_property("X-B", "3")
    removed = card.remove_extended_property("x-a")
    assert len(removed) == 2
    assert card.get_properties() == [keep]


def test_add_property_by_exact_class():
    class Custom(VCardProperty):
        name = "X-CUSTOM"

    class SubNote(Note):
        pass

    card = VCard()
    custom = Custom()
    note = Note("plain")
    sub = SubNote("subclass")
    card.add_property(custom)
    card.add_property(note)
    card.add_property(sub)

    assert card.get_properties(Custom) == [custom]
    assert card.get_properties(Note) == [note]
    assert card.get_properties(SubNote) == [sub]


def test_add_none_rejected():
    with pytest.raises(TypeError):
        VCard().add_property(None)  # type: ignore[arg-type]


def test_no_deduplication():
    card = VCard()
    card.add_note("same")
    card.add_note("same")
    assert len(card.get_notes()) == 2


def test_remove_property_by_identity():
    card = VCard()
    first = card.add_note("same")
    second = card.add_note("same")
    assert card.remove_property(second)
    assert card.get_notes()[0] is first
    assert len(card) == 1
    assert not card.remove_property(second)


def test_remove_properties():
    card = VCard()
    card.add_note("1")
    card.add_note("2")
    fn = card.set_formatted_name("Name")
    removed = card.remove_properties(Note)
    assert len(removed) == 2
    assert card.get_properties() == [fn]


def test_typed_setter_replaces():
    card = VCard()
    card.set_formatted_name("John")
    card.add_property(FormattedName("Johnny"))
    card.set_formatted_name("Jane")
    names = card.get_properties(FormattedName)
    assert [n.value for n in names] == ["Jane"]

    card.set_formatted_name(None)
    assert card.get_formatted_name() is None


def test_typed_getters():
    card = VCard()
    n = StructuredName(family="Doe", given="John")
    card.set_structured_name(n)
    card.set_gender(Gender.female())
    assert card.get_structured_name() is n
    assert card.get_gender() == Gender("F")
    assert card.get_revision() is None


# ── ALTID ──────────────────────────────────────────────────────────────────────

def test_add_property_alt():
    card = VCard()
    one1 = AltIdProp("1")
    card.add_property(one1)
    null1 = AltIdProp(None)
    card.add_property(null1)

    two1 = AltIdProp("3")
    two2 = AltIdProp(None)
    card.add_property_alt(AltIdProp, two1, two2)

    assert card.get_properties(AltIdProp) == [one1, null1, two1, two2]
    assert [p.alt_id for p in (one1, null1, two1, two2)] == ["1", None, "2", "2"]


def test_add_property_alt_on_notes():
    card = VCard()
    en = Note("Hello")
    en.parameters.language = "en"
    fr = Note("Bonjour")
    fr.parameters.language = "fr"
    card.add_property_alt(Note, en, fr)
    assert en.alt_id == fr.alt_id == "1"
    assert en.parameters.get("ALTID") == "1"


def test_add_property_alt_rejects_class_without_alt_id():
    card = VCard()
    card.version = VCardVersion.V4_0
    card.set_gender(Gender.male())
    with pytest.raises(TypeError):
        card.add_property_alt(Gender, Gender.female())
    assert len(card.get_properties(Gender)) == 1


@pytest.mark.parametrize(
    "existing, expected",
    [
        (["1", "1", "2"], "3"),
        (["1", "1", "3"], "2"),
        (["2", "2", "3"], "1"),
        ([], "1"),
        (["one", "one", "three"], "1"),
        ([None, "1", None], "2"),
    ],
)
def test_generate_alt_id(existing, expected):
    assert generate_alt_id([AltIdProp(a) for a in existing]) == expected


def test_get_properties_alt():
    card = VCard()
    one1 = AltIdProp("1")
    null1 = AltIdProp(None)
    two1 = AltIdProp("2")
    one2 = AltIdProp("1")
    null2 = AltIdProp(None)
    for p in (one1, null1, two1, one2, null2):
        card.add_property(p)

    groups = card.get_properties_alt(AltIdProp)
    assert len(groups) == 4
    assert groups[0][0] is one1 and groups[0][1] is one2 and len(groups[0]) == 2
    assert groups[1][0] is two1 and len(groups[1]) == 1
    assert groups[2][0] is null1 and len(groups[2]) == 1
    assert groups[3][0] is null2 and len(groups[3]) == 1


def test_get_properties_alt_empty():
    assert VCard().get_properties_alt(AltIdProp) == []


# ── copy ───────────────────────────────────────────────────────────────────────

def test_copy():
    card = VCard()
    card.set_formatted_name("John Doe")
    card.version = VCardVersion.V2_1

    copy = VCard(card)

    assert copy.version is card.version
    assert len(copy.get_properties()) == 1
    assert copy.get_formatted_name() is not card.get_formatted_name()
    assert copy.get_formatted_name().value == card.get_formatted_name().value
    assert copy == card


def test_copy_is_deep():
    card = _card("Note 1", "Note 2")
    card.add_extended_property("X-TEST", "x")
    copy = card.copy()
    assert copy == card
    for a, b in zip(card.get_properties(), copy.get_properties()):
        assert a is not b
        assert a == b
        assert a.parameters is not b.parameters

    copy.get_notes()[0].value = "changed"
    assert card.get_notes()[0].value == "Note 1"
    assert copy != card


# ── equality ───────────────────────────────────────────────────────────────────

def test_equals_essentials():
    one = VCard()
    one.set_formatted_name("Name")
    assert one == one
    assert one != None  # noqa: E711
    assert one != "Name"
    assert hash(one) == hash(one.copy())


def test_equals_different_version():
    one = VCard()
    one.set_formatted_name("Name")
    one.version = VCardVersion.V2_1
    two = VCard()
    two.set_formatted_name("Name")
    two.version = VCardVersion.V3_0
    assert one != two
    assert two != one


def test_equals_different_number_of_properties():
    one = VCard()
    one.set_formatted_name("Name")
    two = VCard()
    two.set_gender(Gender.male())
    two.set_formatted_name("Name")
    assert one != two
    assert two != one


def test_equals_properties_not_equal():
    one = VCard()
    one.set_formatted_name("John")
    two = VCard()
    two.set_formatted_name("Jane")
    assert one != two
    assert two != one


def test_equals_ignore_property_order():
    one = VCard()
    one.set_formatted_name("Name")
    one.set_gender(Gender.male())
    one.add_note("Note 1")
    one.add_note("Note 2")

    two = VCard()
    two.set_gender(Gender.male())
    two.set_formatted_name("Name")
    two.add_note("Note 2")
    two.add_note("Note 1")

    assert one == two
    assert hash(one) == hash(two)


def test_equals_multiple_identical_properties():
    one = _card("Note 1", "Note 1")
    two = _card("Note 1", "Note 1")
    assert one == two
    assert hash(one) == hash(two)


def test_equals_multiple_identical_properties_not_equal():
    one = _card("Note 1", "Note 1", "Note 2")
    two = _card("Note 1", "Note 2", "Note 2")
    assert one != two
    assert two != one


def test_property_equality_includes_group_and_parameters():
    a = Note("x")
    b = Note("x")
    assert a == b and hash(a) == hash(b)
    b.group = "item1"
    assert a != b
    b.group = None
    b.parameters.put("type", "work")
    assert a != b


def test_property_equality_requires_same_class():
    assert Note("x") != FormattedName("x")
    assert RawProperty("NOTE", "x") != Note("x")
