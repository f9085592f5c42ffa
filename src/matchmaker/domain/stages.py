"""Conversation stages and legacy stage names."""

from enum import StrEnum


class Stage(StrEnum):
    """Canonical workflow stages of a profile session."""

    GREETING = "greeting"
    COLLECTING = "collecting"
    CONFIRMING = "confirming"
    REVIEWING = "reviewing"
    FINALIZED = "finalized"
    FETCHING_PROFILES = "fetching_profiles"


# Names persisted by older sessions. Resolved once, when a session is loaded.
LEGACY_STAGE_ALIASES: dict[str, Stage] = {
    "introduction": Stage.GREETING,
    "profile_creation": Stage.COLLECTING,
    "profile_confirmation": Stage.CONFIRMING,
    "profile_generation": Stage.CONFIRMING,
    "profile_review": Stage.REVIEWING,
    "profile_committed": Stage.FINALIZED,
}

TERMINAL_STAGES: frozenset[Stage] = frozenset({Stage.FETCHING_PROFILES})


class UnknownStageError(ValueError):
    """Raised when a stage name matches neither a canonical stage nor an alias."""


def parse_stage(raw: object) -> Stage:
    """Resolve a canonical or legacy stage name."""
    if isinstance(raw, Stage):
        return raw
    if not isinstance(raw, str):
        raise UnknownStageError(f"Unknown stage: {raw!r}")
    name = raw.strip().lower()
    try:
        return Stage(name)
    except ValueError:
        pass
    alias = LEGACY_STAGE_ALIASES.get(name)
    if alias is None:
        raise UnknownStageError(f"Unknown stage: {raw!r}")
    return alias
