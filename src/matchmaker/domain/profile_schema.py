"""Profile field definitions and schema-level queries."""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from matchmaker.domain.normalizer import normalize_field_value
from matchmaker.domain.options import (
    EDUCATION_LEVEL_OPTIONS,
    GENDER_OPTIONS,
    INTEREST_CATEGORIES,
    INTERESTED_IN_OPTIONS,
    ORIENTATION_OPTIONS,
    RELATIONSHIP_INTENT_OPTIONS,
)

FieldKind = Literal["string", "number", "array", "object"]

MIN_AGE = 18
MAX_AGE = 100
MAX_NAME_LENGTH = 50
MAX_BIO_LENGTH = 500
MAX_PROMPTS = 3
MIN_INTERESTS = 2

_IMPERIAL_HEIGHT = re.compile(r"^(\d)'(\d{1,2})\"$")
_METRIC_HEIGHT = re.compile(r"^(\d{2,3})cm$")


def _non_empty_string(value: object, max_length: int | None = None) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    return max_length is None or len(value.strip()) <= max_length


def _string_list(value: object, min_items: int = 0) -> bool:
    if not isinstance(value, list) or len(value) < min_items:
        return False
    return all(_non_empty_string(item) for item in value)


def _one_of(options: tuple[str, ...]) -> Callable[[object], bool]:
    lowered = {option.lower() for option in options}

    def validate(value: object) -> bool:
        return isinstance(value, str) and value.strip().lower() in lowered

    return validate


def _valid_name(value: object) -> bool:
    return _non_empty_string(value, MAX_NAME_LENGTH)


def _valid_age(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_AGE <= value <= MAX_AGE


def _valid_height(value: object) -> bool:
    if not isinstance(value, str):
        return False
    imperial = _IMPERIAL_HEIGHT.match(value)
    if imperial:
        feet, inches = int(imperial.group(1)), int(imperial.group(2))
        return 3 <= feet <= 8 and 0 <= inches <= 11
    metric = _METRIC_HEIGHT.match(value)
    if metric:
        return 90 <= int(metric.group(1)) <= 250
    return False


def _valid_prompts(value: object) -> bool:
    if not isinstance(value, list) or not 0 < len(value) <= MAX_PROMPTS:
        return False
    return all(
        isinstance(prompt, dict)
        and _non_empty_string(prompt.get("question"))
        and _non_empty_string(prompt.get("answer"))
        for prompt in value
    )


def _valid_pets(value: object) -> bool:
    return isinstance(value, list) and all(_non_empty_string(pet) for pet in value)


@dataclass(frozen=True)
class FieldSpec:
    """Declarative definition of a single profile field."""

    name: str
    kind: FieldKind
    required: bool
    label: str
    description: str
    validator: Callable[[object], bool]
    options: tuple[str, ...] = ()


PROFILE_FIELDS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec("name", "string", True, "name", "First name", _valid_name),
        FieldSpec("age", "number", True, "age", "Age in years (18-100)", _valid_age),
        FieldSpec(
            "gender",
            "string",
            True,
            "gender",
            "Gender identity",
            _one_of(GENDER_OPTIONS),
            GENDER_OPTIONS,
        ),
        FieldSpec(
            "sexual_orientation",
            "string",
            False,
            "orientation",
            "Sexual orientation",
            _one_of(ORIENTATION_OPTIONS),
            ORIENTATION_OPTIONS,
        ),
        FieldSpec(
            "interested_in",
            "string",
            True,
            "who you're interested in",
            "Gender(s) they want to date",
            _one_of(INTERESTED_IN_OPTIONS),
            INTERESTED_IN_OPTIONS,
        ),
        FieldSpec(
            "relationship_intent",
            "string",
            False,
            "what you're looking for",
            "Relationship intent",
            _one_of(RELATIONSHIP_INTENT_OPTIONS),
            RELATIONSHIP_INTENT_OPTIONS,
        ),
        FieldSpec(
            "height", "string", False, "height", "Height as 5'10\" or 178cm", _valid_height
        ),
        FieldSpec(
            "photo",
            "string",
            True,
            "profile photo",
            "Primary photo URL (must be an uploaded URL)",
            lambda value: _non_empty_string(value),
        ),
        FieldSpec(
            "photos",
            "array",
            False,
            "extra photos",
            "Additional photo URLs",
            lambda value: _string_list(value, 1),
        ),
        FieldSpec(
            "schools",
            "array",
            True,
            "school(s)",
            "Schools attended",
            lambda value: _string_list(value, 1),
        ),
        FieldSpec(
            "education_level",
            "string",
            False,
            "education level",
            "Highest education level",
            _one_of(EDUCATION_LEVEL_OPTIONS),
            EDUCATION_LEVEL_OPTIONS,
        ),
        FieldSpec(
            "major",
            "string",
            False,
            "major",
            "Field of study",
            lambda value: _non_empty_string(value, 100),
        ),
        FieldSpec(
            "interests",
            "array",
            True,
            "interests",
            "At least two interests",
            lambda value: _string_list(value, MIN_INTERESTS),
            INTEREST_CATEGORIES,
        ),
        FieldSpec(
            "bio",
            "string",
            False,
            "bio",
            "Short bio",
            lambda value: _non_empty_string(value, MAX_BIO_LENGTH),
        ),
        FieldSpec(
            "prompts",
            "array",
            False,
            "prompt answers",
            "Up to three {question, answer} prompt answers",
            _valid_prompts,
        ),
        FieldSpec("pets", "array", False, "pets", "Pets they have", _valid_pets),
    )
}

MINIMUM_FIELDS: tuple[str, ...] = ("name", "age", "photo")


def initial_profile_schema() -> dict[str, object]:
    """Return an empty profile record."""
    return {
        name: [] if spec.kind == "array" else None
        for name, spec in PROFILE_FIELDS.items()
    }


def is_field_filled(profile: dict[str, object], field: str) -> bool:
    """Return True when the field holds a present, valid value."""
    spec = PROFILE_FIELDS.get(field)
    if spec is None:
        return False
    value = profile.get(field)
    if value is None or value == []:
        return False
    return spec.validator(value)


def get_missing_fields(profile: dict[str, object]) -> list[str]:
    """Return required fields that are absent or invalid."""
    return [
        name
        for name, spec in PROFILE_FIELDS.items()
        if spec.required and not is_field_filled(profile, name)
    ]


def get_missing_minimum_fields(profile: dict[str, object]) -> list[str]:
    """Return the minimum fields still needed before a profile can be built."""
    return [name for name in MINIMUM_FIELDS if not is_field_filled(profile, name)]


def is_schema_complete(profile: dict[str, object]) -> bool:
    return not get_missing_fields(profile)


def get_completion_percentage(profile: dict[str, object]) -> int:
    """Return the share of required fields filled, 0-100."""
    required = [spec for spec in PROFILE_FIELDS.values() if spec.required]
    filled = len(required) - len(get_missing_fields(profile))
    return round(filled / len(required) * 100)


def get_field_display_name(field: str) -> str:
    spec = PROFILE_FIELDS.get(field)
    return spec.label if spec else field


@dataclass(frozen=True)
class FieldUpdate:
    """Outcome of validating a value for a profile field."""

    field: str
    success: bool
    value: object = None
    error: str | None = None


def validate_field_value(field: str, raw: object) -> FieldUpdate:
    """Normalize and validate a value without touching any profile."""
    spec = PROFILE_FIELDS.get(field)
    if spec is None:
        return FieldUpdate(field=field, success=False, error=f"Unknown field: {field}")
    value = normalize_field_value(field, raw)
    if value is None or not spec.validator(value):
        return FieldUpdate(
            field=field,
            success=False,
            value=value,
            error=f"Invalid value for {spec.label} ({field}): {raw!r}",
        )
    return FieldUpdate(field=field, success=True, value=value)


def update_field(profile: dict[str, object], field: str, raw: object) -> FieldUpdate:
    """Normalize, validate and store a field value in place."""
    outcome = validate_field_value(field, raw)
    if outcome.success:
        profile[field] = outcome.value
    return outcome


def format_profile_summary(profile: dict[str, object]) -> str:
    """Render filled fields as one `Label: value` line each."""
    lines = []
    for name, spec in PROFILE_FIELDS.items():
        if name in {"photo", "photos"} or not is_field_filled(profile, name):
            continue
        value = profile[name]
        if name == "prompts":
            rendered = "; ".join(
                f"{prompt['question']} {prompt['answer']}" for prompt in value
            )
        elif isinstance(value, list):
            rendered = ", ".join(str(item) for item in value)
        else:
            rendered = str(value)
        lines.append(f"{spec.label.capitalize()}: {rendered}")
    return "\n".join(lines)
