"""Canonical option sets for enumerated profile fields."""

INTEREST_CATEGORIES: tuple[str, ...] = (
    "Sports & Athletics",
    "Music",
    "Pop Culture",
    "Outdoor & Nature",
    "Movies & TV",
    "Nightlife & Social",
    "Beauty & Fashion",
    "Hobbies & Crafts",
    "Arts & Creativity",
    "Performing Arts",
    "Gaming",
    "Technology",
    "Food & Dining",
    "Travel & Adventure",
    "Social Causes & Activism",
    "Fitness & Wellness",
    "Lifestyle",
    "Business & Career",
)

GENDER_OPTIONS: tuple[str, ...] = ("Male", "Female", "Non-binary", "Other")

INTERESTED_IN_OPTIONS: tuple[str, ...] = (*GENDER_OPTIONS, "Everyone")

ORIENTATION_OPTIONS: tuple[str, ...] = (
    "Straight",
    "Gay",
    "Lesbian",
    "Bisexual",
    "Pansexual",
    "Asexual",
    "Queer",
    "Questioning",
)

RELATIONSHIP_INTENT_OPTIONS: tuple[str, ...] = (
    "Long-term only",
    "Long-term, open to short",
    "Short-term, open to long",
    "Still figuring it out",
)

EDUCATION_LEVEL_OPTIONS: tuple[str, ...] = (
    "High School",
    "In College",
    "Associate Degree",
    "Bachelor's Degree",
    "Master's Degree",
    "PhD",
    "Trade School",
    "Prefer not to say",
)

PROFILE_PROMPTS: tuple[str, ...] = (
    "My weakness is...",
    "Perks of dating me...",
    "People would describe me as...",
)
