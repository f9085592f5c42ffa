"""Tests for free-form answer normalization."""

import pytest

from matchmaker.domain.normalizer import (
    map_interest_to_category,
    match_option,
    normalize_age,
    normalize_field_value,
    normalize_height,
    parse_number_from_text,
)
from matchmaker.domain.options import GENDER_OPTIONS


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("5.4", "5'4\""),
        ("64", "5'4\""),
        ("170cm", "170cm"),
        ("170 cm", "170cm"),
        ("5 ft 10", "5'10\""),
        ("6 feet", "6'0\""),
        ("5'11", "5'11\""),
        ("1.75m", "175cm"),
        ("70 inches", "5'10\""),
        ("5.75", "5'9\""),
        (5.4, "5'4\""),
        (70, "5'10\""),
        (180, "180cm"),
    ],
)
def test_normalize_height(raw, expected) -> None:
    assert normalize_height(raw) == expected


def test_normalize_height_keeps_unrecognized_text() -> None:
    assert normalize_height("  pretty tall  ") == "pretty tall"


def test_parse_number_from_text() -> None:
    assert parse_number_from_text("twenty-five") == 25
    assert parse_number_from_text("I'm 31 years old") == 31
    assert parse_number_from_text("forty two") == 42
    assert parse_number_from_text("not a number") is None
    assert parse_number_from_text(True) is None
    assert parse_number_from_text("1000") == 1000


def test_normalize_age_hands_back_unparseable_input() -> None:
    assert normalize_age("twenty five") == 25
    assert normalize_age(" not a number ") == "not a number"


def test_match_option_prefers_longest_synonym() -> None:
    synonyms = {"man": "Male", "woman": "Female"}

    assert match_option("I'm a woman", GENDER_OPTIONS, synonyms) == "Female"
    assert match_option("male", GENDER_OPTIONS, synonyms) == "Male"
    assert match_option("", GENDER_OPTIONS, synonyms) is None


@pytest.mark.parametrize(
    ("field", "raw", "expected"),
    [
        ("gender", "guy", "Male"),
        ("gender", "enby", "Non-binary"),
        ("interested_in", "women", "Female"),
        ("interested_in", "honestly both", "Everyone"),
        ("sexual_orientation", "bi", "Bisexual"),
        ("relationship_intent", "something serious", "Long-term only"),
        ("education_level", "masters", "Master's Degree"),
        ("schools", "indiana university", ["Indiana University"]),
        ("interests", [" hiking ", "", "music"], ["hiking", "music"]),
        ("name", "  Alex ", "Alex"),
    ],
)
def test_normalize_field_value(field, raw, expected) -> None:
    assert normalize_field_value(field, raw) == expected


def test_normalize_field_value_is_idempotent() -> None:
    for field, raw in [
        ("height", "5 ft 4"),
        ("gender", "woman"),
        ("schools", "purdue"),
        ("age", "twenty"),
    ]:
        once = normalize_field_value(field, raw)
        assert normalize_field_value(field, once) == once


def test_normalize_field_value_leaves_unknown_fields_alone() -> None:
    assert normalize_field_value("zodiac", " Leo ") == " Leo "


def test_map_interest_to_category() -> None:
    assert map_interest_to_category("hiking") == "Outdoor & Nature"
    assert map_interest_to_category("basketball") == "Sports & Athletics"
    assert map_interest_to_category("Gaming") == "Gaming"
    assert map_interest_to_category("stamp licking") is None
