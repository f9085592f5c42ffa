"""Normalization of free-form answers into canonical profile field values.

Every function here is total: when no confident transform applies the trimmed
input is handed back unchanged and the schema validator makes the call.
"""

import logging
import re

from matchmaker.domain.options import (
    EDUCATION_LEVEL_OPTIONS,
    GENDER_OPTIONS,
    INTEREST_CATEGORIES,
    INTERESTED_IN_OPTIONS,
    ORIENTATION_OPTIONS,
    RELATIONSHIP_INTENT_OPTIONS,
)

_logger = logging.getLogger(__name__)

GENDER_SYNONYMS: dict[str, str] = {
    "male": "Male",
    "man": "Male",
    "m": "Male",
    "guy": "Male",
    "boy": "Male",
    "female": "Female",
    "woman": "Female",
    "f": "Female",
    "girl": "Female",
    "gal": "Female",
    "nb": "Non-binary",
    "nonbinary": "Non-binary",
    "non binary": "Non-binary",
    "enby": "Non-binary",
    "other": "Other",
}

ORIENTATION_SYNONYMS: dict[str, str] = {
    "straight": "Straight",
    "hetero": "Straight",
    "heterosexual": "Straight",
    "gay": "Gay",
    "homosexual": "Gay",
    "lesbian": "Lesbian",
    "bi": "Bisexual",
    "bisexual": "Bisexual",
    "pan": "Pansexual",
    "pansexual": "Pansexual",
    "ace": "Asexual",
    "asexual": "Asexual",
    "queer": "Queer",
    "questioning": "Questioning",
}

INTERESTED_IN_SYNONYMS: dict[str, str] = {
    **GENDER_SYNONYMS,
    "men": "Male",
    "guys": "Male",
    "dudes": "Male",
    "boys": "Male",
    "women": "Female",
    "girls": "Female",
    "ladies": "Female",
    "everyone": "Everyone",
    "anyone": "Everyone",
    "people": "Everyone",
    "both": "Everyone",
    "all": "Everyone",
}

RELATIONSHIP_SYNONYMS: dict[str, str] = {
    "serious": "Long-term only",
    "commitment": "Long-term only",
    "committed": "Long-term only",
    "long term": "Long-term only",
    "long-term": "Long-term only",
    "relationship": "Long-term only",
    "long term mostly": "Long-term, open to short",
    "mostly long term": "Long-term, open to short",
    "mostly serious": "Long-term, open to short",
    "casual": "Short-term, open to long",
    "short term": "Short-term, open to long",
    "short-term": "Short-term, open to long",
    "flexible": "Short-term, open to long",
    "exploring": "Still figuring it out",
    "unsure": "Still figuring it out",
    "not sure": "Still figuring it out",
    "figuring it out": "Still figuring it out",
}

EDUCATION_SYNONYMS: dict[str, str] = {
    "highschool": "High School",
    "high school": "High School",
    "hs": "High School",
    "college": "In College",
    "undergrad": "In College",
    "university": "In College",
    "associates": "Associate Degree",
    "associate's": "Associate Degree",
    "associate": "Associate Degree",
    "bachelor": "Bachelor's Degree",
    "bachelors": "Bachelor's Degree",
    "bachelor's": "Bachelor's Degree",
    "ba": "Bachelor's Degree",
    "bs": "Bachelor's Degree",
    "masters": "Master's Degree",
    "master's": "Master's Degree",
    "ms": "Master's Degree",
    "ma": "Master's Degree",
    "mba": "Master's Degree",
    "graduate": "Master's Degree",
    "phd": "PhD",
    "doctorate": "PhD",
    "trade": "Trade School",
    "trade school": "Trade School",
    "bootcamp": "Trade School",
}

NUMBER_WORDS: dict[str, int] = {
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
    "twenty": 20,
    "thirty": 30,
    "forty": 40,
    "fifty": 50,
    "sixty": 60,
    "seventy": 70,
    "eighty": 80,
    "ninety": 90,
}

INTEREST_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Sports & Athletics": (
        "sport",
        "gym",
        "running",
        "basketball",
        "football",
        "soccer",
        "tennis",
        "swim",
    ),
    "Music": ("music", "concert", "band", "singing", "instrument", "piano", "guitar"),
    "Pop Culture": ("pop culture", "celeb", "celebrity", "trending"),
    "Outdoor & Nature": ("outdoor", "nature", "hiking", "camping", "beach", "mountain"),
    "Movies & TV": ("movie", "film", "tv", "television", "netflix", "cinema", "show"),
    "Nightlife & Social": ("nightlife", "bar", "club", "party", "social", "dancing"),
    "Beauty & Fashion": ("fashion", "beauty", "makeup", "style", "clothes"),
    "Hobbies & Crafts": ("hobby", "craft", "diy", "knit", "sew"),
    "Arts & Creativity": ("art", "creative", "painting", "drawing", "design", "photo"),
    "Performing Arts": ("theater", "theatre", "acting", "drama", "dance"),
    "Gaming": ("gaming", "game", "esports", "playstation", "xbox"),
    "Technology": ("tech", "coding", "programming", "computer", "gadget"),
    "Food & Dining": ("food", "cooking", "dining", "restaurant", "cuisine", "eating"),
    "Travel & Adventure": ("travel", "adventure", "exploring", "trip", "vacation"),
    "Social Causes & Activism": ("activism", "volunteer", "charity", "social justice"),
    "Fitness & Wellness": ("fitness", "wellness", "yoga", "meditation", "workout"),
    "Lifestyle": ("lifestyle", "routine", "daily life"),
    "Business & Career": ("business", "career", "work", "entrepreneur", "startup"),
}

_CANONICAL_IMPERIAL = re.compile(r"^(\d)'(\d{1,2})\"$")
_CANONICAL_METRIC = re.compile(r"^(\d{2,3})cm$")
_CENTIMETERS = re.compile(r"(\d{2,3}(?:\.\d+)?)\s*(?:cm|centimet(?:er|re)s?)\b")
_METERS = re.compile(r"^(\d)[.,](\d{1,2})\s*m(?:eters?|etres?)?$")
_FEET_INCHES = re.compile(
    r"(\d+)\s*(?:ft|foot|feet|')\s*(?:(\d{1,2})\s*(?:in|inch|inches|\"|'')?)?"
)
_INCHES_ONLY = re.compile(r"^(\d{1,3})\s*(?:in|inch|inches|\")$")
_DECIMAL_FEET = re.compile(r"^(\d)\s*\.\s*(\d{1,2})$")
_BARE_NUMBER = re.compile(r"^\d+$")


def normalize_whitespace(value: object) -> object:
    """Trim surrounding whitespace from strings."""
    return value.strip() if isinstance(value, str) else value


def match_option(
    value: object, options: tuple[str, ...], synonyms: dict[str, str]
) -> str | None:
    """Resolve free text to a canonical option, or None when nothing fits."""
    if not isinstance(value, str):
        return None
    normalized = " ".join(value.strip().lower().split())
    if not normalized:
        return None

    for option in options:
        if option.lower() == normalized:
            return option

    mapped = synonyms.get(normalized)
    if mapped:
        return mapped

    # Longest keys first so "woman" wins over "man" inside a sentence.
    for key in sorted(synonyms, key=len, reverse=True):
        if re.search(rf"(?<![\w']){re.escape(key)}(?![\w'])", normalized):
            return synonyms[key]
    return None


def parse_number_from_text(value: object) -> int | None:
    """Parse digits or English number words into an integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if not isinstance(value, str):
        return None

    digits = re.search(r"\d+", value)
    if digits:
        return int(digits.group(0))

    words = [word for word in re.split(r"[-\s]+", value.lower()) if word]
    current = 0
    recognized = False
    for word in words:
        if word in NUMBER_WORDS:
            current += NUMBER_WORDS[word]
            recognized = True
        elif word == "hundred" and recognized:
            current *= 100
    return current if recognized else None


def normalize_age(value: object) -> object:
    parsed = parse_number_from_text(value)
    if parsed is None:
        return normalize_whitespace(value)
    return parsed


def format_imperial_height(feet: int, inches: int) -> str:
    """Render feet and inches in the canonical form, clamping inches to 0-11."""
    clamped = max(0, min(11, inches))
    return f"{feet}'{clamped}\""


def normalize_height(value: object) -> object:  # noqa: PLR0911
    """Normalize height input to `F'I"` or `Ncm`."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float) and not value.is_integer():
        value = str(value)
    if isinstance(value, int | float):
        total_inches = round(value)
        if total_inches > 100:
            return f"{total_inches}cm"
        return format_imperial_height(total_inches // 12, total_inches % 12)
    if not isinstance(value, str):
        return value

    text = value.strip().lower()
    if not text:
        return value.strip()
    if _CANONICAL_IMPERIAL.match(text) or _CANONICAL_METRIC.match(text):
        return value.strip()

    cm_match = _CENTIMETERS.search(text)
    if cm_match:
        return f"{round(float(cm_match.group(1)))}cm"

    meters_match = _METERS.match(text)
    if meters_match:
        fraction = meters_match.group(2).ljust(2, "0")
        return f"{int(meters_match.group(1)) * 100 + int(fraction)}cm"

    fi_match = _FEET_INCHES.search(text)
    if fi_match:
        feet = int(fi_match.group(1))
        inches = int(fi_match.group(2) or 0)
        return format_imperial_height(feet, inches)

    inches_match = _INCHES_ONLY.match(text)
    if inches_match:
        total_inches = int(inches_match.group(1))
        return format_imperial_height(total_inches // 12, total_inches % 12)

    decimal_match = _DECIMAL_FEET.match(text)
    if decimal_match:
        feet = int(decimal_match.group(1))
        decimal = int(decimal_match.group(2))
        inches = decimal if decimal <= 11 else round(decimal / 100 * 12)
        return format_imperial_height(feet, inches)

    if _BARE_NUMBER.match(text):
        numeric = int(text)
        if numeric > 100:
            return f"{numeric}cm"
        if numeric >= 12:
            return format_imperial_height(numeric // 12, numeric % 12)

    return value.strip()


def _title_case(text: str) -> str:
    return " ".join(part[0].upper() + part[1:] for part in text.split())


def _as_list(value: object) -> object:
    if isinstance(value, str):
        return [value]
    if isinstance(value, tuple):
        return list(value)
    return value


def normalize_schools(value: object) -> object:
    items = _as_list(value)
    if not isinstance(items, list):
        return value
    return [
        _title_case(item.strip()) if isinstance(item, str) else item
        for item in items
        if not (isinstance(item, str) and not item.strip())
    ]


def normalize_text_list(value: object) -> object:
    """Trim every entry of a free-text list and drop the empty ones."""
    items = _as_list(value)
    if not isinstance(items, list):
        return value
    return [
        item.strip() if isinstance(item, str) else item
        for item in items
        if not (isinstance(item, str) and not item.strip())
    ]


def normalize_prompts(value: object) -> object:
    """Trim prompt questions and answers; a single prompt becomes a list."""
    items = [value] if isinstance(value, dict) else value
    if not isinstance(items, list):
        return value
    normalized = []
    for prompt in items:
        if isinstance(prompt, dict):
            prompt = {
                **prompt,
                "question": normalize_whitespace(prompt.get("question")),
                "answer": normalize_whitespace(prompt.get("answer")),
            }
        normalized.append(prompt)
    return normalized


def normalize_gender(value: object) -> object:
    return match_option(value, GENDER_OPTIONS, GENDER_SYNONYMS) or normalize_whitespace(
        value
    )


def normalize_orientation(value: object) -> object:
    return match_option(
        value, ORIENTATION_OPTIONS, ORIENTATION_SYNONYMS
    ) or normalize_whitespace(value)


def normalize_interested_in(value: object) -> object:
    return match_option(
        value, INTERESTED_IN_OPTIONS, INTERESTED_IN_SYNONYMS
    ) or normalize_whitespace(value)


def normalize_relationship_intent(value: object) -> object:
    return match_option(
        value, RELATIONSHIP_INTENT_OPTIONS, RELATIONSHIP_SYNONYMS
    ) or normalize_whitespace(value)


def normalize_education_level(value: object) -> object:
    return match_option(
        value, EDUCATION_LEVEL_OPTIONS, EDUCATION_SYNONYMS
    ) or normalize_whitespace(value)


def map_interest_to_category(interest: object) -> str | None:
    """Suggest an interest category for free text. Advisory only."""
    if not isinstance(interest, str) or not interest.strip():
        return None
    text = interest.strip().lower()
    for category in INTEREST_CATEGORIES:
        if text == category.lower():
            return category
    for category, keywords in INTEREST_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return category
    return None


_NORMALIZERS = {
    "age": normalize_age,
    "height": normalize_height,
    "gender": normalize_gender,
    "sexual_orientation": normalize_orientation,
    "interested_in": normalize_interested_in,
    "relationship_intent": normalize_relationship_intent,
    "education_level": normalize_education_level,
    "schools": normalize_schools,
    "interests": normalize_text_list,
    "pets": normalize_text_list,
    "photos": normalize_text_list,
    "prompts": normalize_prompts,
    "name": normalize_whitespace,
    "photo": normalize_whitespace,
    "major": normalize_whitespace,
    "bio": normalize_whitespace,
}


def normalize_field_value(field: str, raw: object) -> object:
    """Normalize a raw value for the given profile field."""
    if raw is None:
        return raw
    normalizer = _NORMALIZERS.get(field)
    if normalizer is None:
        return raw
    try:
        value = normalizer(raw)
    except (TypeError, ValueError):
        _logger.warning("Normalizer failed for field %s; keeping raw value", field)
        return normalize_whitespace(raw)
    if value != raw:
        _logger.debug("Normalized %s: %r -> %r", field, raw, value)
    return value
