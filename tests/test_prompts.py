"""Tests for the per-turn system prompt."""

import json

from matchmaker.domain.sessions import LoggedMessage, PrimaryUser
from matchmaker.domain.stages import Stage
from matchmaker.services.prompts import (
    build_state_digest,
    build_system_prompt,
    format_history,
)
from tests.conftest import make_session


def test_state_digest_reports_progress() -> None:
    session = make_session()
    session.primary_user = PrimaryUser(display_name="Alex")
    session.profile_schema["name"] = "Alex"
    session.profile_schema["interests"] = ["hiking", "stamp licking"]
    session.aux_data["photos"] = ["https://media.example/1.jpg"]

    digest = build_state_digest(session)

    assert "Stage: collecting" in digest
    assert "Primary user: Alex" in digest
    assert "Still needed before generating: age, photo" in digest
    assert "1. https://media.example/1.jpg" in digest
    assert "hiking -> Outdoor & Nature" in digest
    assert '"name": "Alex"' in digest


def test_system_prompt_lists_stage_actions() -> None:
    prompt = build_system_prompt(make_session(stage=Stage.GREETING), max_actions=4)

    catalog = json.loads(prompt.split("## Available actions\n", 1)[1])
    assert catalog["limits"] == {"max_actions_per_turn": 4}
    assert {entry["type"] for entry in catalog["actions"]} == {
        "send_message",
        "update_stage",
        "set_primary_user",
    }


def test_format_history_keeps_latest_turns() -> None:
    session = make_session()
    session.message_log = [
        LoggedMessage(role="agent", text="Welcome!"),
        LoggedMessage(role="user", text="hi", sender_name="Sam"),
        LoggedMessage(role="user", text="yo", sender_contact_id="+15550009"),
    ]

    history = format_history(session, limit=2)

    assert history == [
        {"role": "user", "content": "Sam: hi"},
        {"role": "user", "content": "+15550009: yo"},
    ]
