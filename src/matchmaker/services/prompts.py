"""System prompt assembly for the matchmaker conversation."""

import json

from matchmaker.domain.actions import action_catalog
from matchmaker.domain.normalizer import map_interest_to_category
from matchmaker.domain.options import GENDER_OPTIONS, INTEREST_CATEGORIES
from matchmaker.domain.profile_schema import (
    PROFILE_FIELDS,
    get_completion_percentage,
    get_field_display_name,
    get_missing_fields,
    get_missing_minimum_fields,
)
from matchmaker.domain.sessions import Session

BASE_PROMPT = """\
You are a warm AI matchmaker helping a group of friends build a dating profile
together in a WhatsApp group chat.

Style:
- Text like a supportive friend. Keep replies to one to three short sentences.
- Ask one question at a time and speak to the person who just answered.
- Use at most two emojis, only when they add warmth.

Group chat:
- One person is the primary user; everyone else is a friend helping out.
- Work out who the profile is for from the conversation. If unsure, ask, then
  record it with set_primary_user.
- Any participant may answer questions about the primary user.

Flow:
1. greeting: welcome everyone and confirm who the profile is for.
2. collecting: gather the profile fields conversationally. When name, age and
   a photo are known, call show_confirmation.
3. confirming: the group checks the recap. Apply edits, then call
   generate_profile once the primary user approves.
4. reviewing: the group checks the generated profile link. Apply edits and
   regenerate, or call finalize_profile on approval.
5. finalized: the profile is locked. Offer today's matches with request_matches.
6. fetching_profiles: present matches and record the user's pick.

Reply with a single JSON object:
{"message": "<text for the group>", "actions": [<action objects>], "reasoning": "<short note>"}
"""


def _format_participants(session: Session) -> str:
    lines = []
    for participant in session.participants:
        name = participant.display_name or "unknown"
        lines.append(f"- {name} ({participant.contact_id}, {participant.role})")
    return "\n".join(lines)


def _format_interest_hints(session: Session) -> str | None:
    interests = session.profile_schema.get("interests")
    if not isinstance(interests, list) or not interests:
        return None
    hints = []
    for interest in interests:
        category = map_interest_to_category(str(interest))
        hints.append(f"{interest} -> {category}" if category else str(interest))
    return ", ".join(hints)


def build_state_digest(session: Session) -> str:
    """Summarize the session state the model needs to pick its next move."""
    primary = session.primary_user.display_name if session.primary_user else "unknown"
    missing = get_missing_fields(session.profile_schema)
    missing_minimum = get_missing_minimum_fields(session.profile_schema)
    lines = [
        f"Stage: {session.stage.value}",
        f"Primary user: {primary}",
        "Participants:",
        _format_participants(session),
        f"Profile completion: {get_completion_percentage(session.profile_schema)}%",
    ]
    if missing:
        lines.append(
            "Missing required fields: "
            + ", ".join(f"{name} ({get_field_display_name(name)})" for name in missing)
        )
    else:
        lines.append("All required fields are filled.")
    if missing_minimum:
        lines.append("Still needed before generating: " + ", ".join(missing_minimum))

    filled = {
        name: value
        for name, value in session.profile_schema.items()
        if value not in (None, [], "")
    }
    lines.append("Current profile: " + json.dumps(filled, ensure_ascii=False))

    photos = session.uploaded_photos()
    if photos:
        lines.append("Uploaded photos (use these exact URLs for photo/photos):")
        lines.extend(f"{index}. {url}" for index, url in enumerate(photos, start=1))
    else:
        lines.append("No photos uploaded yet.")

    interest_hints = _format_interest_hints(session)
    if interest_hints:
        lines.append(f"Interest categories: {interest_hints}")

    if session.generated_profile and session.generated_profile.profile_url:
        lines.append(f"Generated profile: {session.generated_profile.profile_url}")
    if session.daily_drops:
        latest = session.daily_drops[-1]
        names = ", ".join(candidate.name for candidate in latest.candidates)
        lines.append(f"Latest matches shown: {names or 'none'}")
    return "\n".join(lines)


def build_field_guide() -> str:
    lines = []
    for spec in PROFILE_FIELDS.values():
        required = "required" if spec.required else "optional"
        line = f"- {spec.name} ({spec.kind}, {required}): {spec.description}"
        if spec.options and spec.name != "interests":
            line = f"{line}. One of: {', '.join(spec.options)}"
        lines.append(line)
    lines.append(
        "Suggested interest categories: " + ", ".join(INTEREST_CATEGORIES[:8]) + ", ..."
    )
    lines.append(f"Gender options: {', '.join(GENDER_OPTIONS)}")
    return "\n".join(lines)


def build_system_prompt(session: Session, max_actions: int) -> str:
    """Compose the full system instruction for one turn."""
    catalog = {
        "actions": action_catalog(session.stage),
        "limits": {"max_actions_per_turn": max_actions},
    }
    return "\n\n".join(
        [
            BASE_PROMPT,
            "## Profile fields\n" + build_field_guide(),
            "## Current state\n" + build_state_digest(session),
            "## Available actions\n" + json.dumps(catalog, indent=2),
        ]
    )


def format_history(session: Session, limit: int) -> list[dict[str, str]]:
    """Render the latest logged messages as chat-completion messages."""
    history = []
    for entry in session.message_log[-limit:]:
        if entry.role == "agent":
            history.append({"role": "assistant", "content": entry.text})
            continue
        sender = entry.sender_name or entry.sender_contact_id or "someone"
        history.append({"role": "user", "content": f"{sender}: {entry.text}"})
    return history
