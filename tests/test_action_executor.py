"""Tests for action execution against sessions."""

import asyncio

from matchmaker.domain.sessions import MatchCandidate
from matchmaker.domain.stages import Stage
from matchmaker.services.actions import ActionExecutor
from tests.conftest import FakeMatcher, FakePublisher, fill_minimum_fields, make_session


def _run(executor: ActionExecutor, session, *actions):  # type: ignore[no-untyped-def]
    async def run_all():  # type: ignore[no-untyped-def]
        return [await executor.execute(action, session) for action in actions]

    return asyncio.run(run_all())


def test_field_updates_succeed_or_fail_independently(executor) -> None:
    session = make_session()

    results = _run(
        executor,
        session,
        {"type": "update_profile_field", "field": "name", "value": "Alex"},
        {"type": "update_profile_field", "field": "age", "value": "5"},
        {"type": "update_profile_field", "field": "gender", "value": "woman"},
    )

    assert [result.success for result in results] == [True, False, True]
    assert results[1].data["label"] == "age"
    assert session.profile_schema["name"] == "Alex"
    assert session.profile_schema["age"] is None
    assert session.profile_schema["gender"] == "Female"
    assert [entry.success for entry in session.action_log] == [True, False, True]


def test_missing_value_is_reported(executor) -> None:
    session = make_session()

    (result,) = _run(
        executor, session, {"type": "update_profile_field", "field": "bio", "value": None}
    )

    assert not result.success
    assert result.error == "Field and value are required"


def test_rejected_action_only_adds_audit_entry(executor) -> None:
    session = make_session()
    fill_minimum_fields(session)
    before = session.model_dump(exclude={"action_log"})

    (result,) = _run(executor, session, {"type": "generate_profile"})

    assert not result.success
    assert result.action_type == "generate_profile"
    assert session.model_dump(exclude={"action_log"}) == before
    assert len(session.action_log) == 1
    assert session.action_log[0].success is False
    assert session.action_log[0].action_payload == {"type": "generate_profile"}


def test_send_message_targets(executor) -> None:
    session = make_session()

    broadcast, direct, unknown = _run(
        executor,
        session,
        {"type": "send_message", "target": "all", "message": "Hi all"},
        {"type": "send_message", "target": "sam", "message": "Hi Sam"},
        {"type": "send_message", "target": "Jordan", "message": "Hi?"},
    )

    assert [d.recipient for d in broadcast.deliveries] == ["+15550001", "+15550002"]
    assert [d.recipient for d in direct.deliveries] == ["+15550002"]
    assert not unknown.success
    assert unknown.deliveries == []


def test_set_primary_user_then_start_collecting(executor) -> None:
    session = make_session(stage=Stage.GREETING)

    blocked, named, moved = _run(
        executor,
        session,
        {"type": "update_stage", "stage": "collecting"},
        {"type": "set_primary_user", "name": "Sam"},
        {"type": "update_stage", "stage": "collecting"},
    )

    assert not blocked.success
    assert named.success
    assert session.primary_user is not None
    assert session.primary_user.contact_id == "+15550002"
    assert moved.data == {"old_stage": "greeting", "new_stage": "collecting"}
    assert session.stage is Stage.COLLECTING


def test_set_primary_user_rejects_outside_contact(executor) -> None:
    session = make_session(stage=Stage.GREETING)

    (result,) = _run(
        executor,
        session,
        {"type": "set_primary_user", "display_name": "Kim", "contact_id": "+19990000"},
    )

    assert not result.success
    assert session.primary_user is None


def test_update_stage_cannot_skip_gated_edges(executor) -> None:
    session = make_session()
    fill_minimum_fields(session)

    (result,) = _run(executor, session, {"type": "update_stage", "stage": "confirming"})

    assert not result.success
    assert "show_confirmation" in (result.error or "")
    assert session.stage is Stage.COLLECTING


def test_show_confirmation_needs_minimum_fields(executor) -> None:
    session = make_session()

    (early,) = _run(executor, session, {"type": "show_confirmation"})
    assert not early.success
    assert session.stage is Stage.COLLECTING

    fill_minimum_fields(session)
    (ready,) = _run(executor, session, {"type": "show_confirmation"})

    assert ready.success
    assert session.stage is Stage.CONFIRMING
    assert len(ready.deliveries) == 2
    assert "Name: Alex" in ready.deliveries[0].text


def test_generate_profile_lists_missing_fields(executor) -> None:
    session = make_session(stage=Stage.CONFIRMING)

    (result,) = _run(executor, session, {"type": "generate_profile"})

    assert not result.success
    assert result.error == "Profile incomplete. Missing: name, age, photo"
    assert session.generated_profile is None
    assert session.stage is Stage.CONFIRMING


def test_generate_profile_publishes_snapshot(executor, publisher) -> None:
    session = make_session(stage=Stage.CONFIRMING)
    fill_minimum_fields(session)
    session.aux_data["photos"] = ["https://media.example/beach.jpg"]

    (result,) = _run(executor, session, {"type": "generate_profile"})

    assert result.success
    assert session.stage is Stage.REVIEWING
    snapshot = session.generated_profile
    assert snapshot is not None
    assert snapshot.status == "pending_review"
    assert snapshot.profile_url == result.data["profile_url"]
    assert snapshot.photos == [
        "https://media.example/alex.jpg",
        "https://media.example/beach.jpg",
    ]
    assert publisher.published[0][0] == session.session_id
    assert all(snapshot.profile_url in d.text for d in result.deliveries)

    # Later edits do not leak into the frozen snapshot.
    session.profile_schema["name"] = "Alexandra"
    assert snapshot.fields["name"] == "Alex"


def test_publish_failure_leaves_session_unchanged(matcher) -> None:
    executor = ActionExecutor(publisher=FakePublisher(fail=True), matcher=matcher)
    session = make_session(stage=Stage.CONFIRMING)
    fill_minimum_fields(session)

    (result,) = _run(executor, session, {"type": "generate_profile"})

    assert not result.success
    assert (result.error or "").startswith("generate_profile failed")
    assert session.generated_profile is None
    assert session.stage is Stage.CONFIRMING
    assert session.action_log[-1].success is False


def test_finalize_twice_is_idempotent(executor) -> None:
    session = make_session(stage=Stage.CONFIRMING)
    fill_minimum_fields(session)

    _, first, second = _run(
        executor,
        session,
        {"type": "generate_profile"},
        {"type": "finalize_profile"},
        {"type": "finalize_profile"},
    )

    assert first.success
    assert first.data["already_committed"] is False
    assert second.success
    assert second.data["already_committed"] is True
    assert session.stage is Stage.FINALIZED
    assert session.committed_profile is not None
    assert session.committed_profile.status == "committed"
    assert session.committed_profile.committed_at is not None
    assert second.data["profile_id"] == session.committed_profile.id


def test_finalize_without_generated_profile_fails(executor) -> None:
    session = make_session(stage=Stage.REVIEWING)

    (result,) = _run(executor, session, {"type": "finalize_profile"})

    assert not result.success
    assert session.stage is Stage.REVIEWING


def test_request_matches_never_pads_the_drop(executor, matcher) -> None:
    session = make_session(stage=Stage.FINALIZED)

    (result,) = _run(executor, session, {"type": "request_matches"})

    assert result.success
    assert matcher.limits == [3]
    assert len(session.daily_drops) == 1
    assert [c.id for c in session.daily_drops[0].candidates] == ["c1", "c2"]
    assert session.stage is Stage.FETCHING_PROFILES
    assert "1. Ava, 22: Loves hiking" in result.deliveries[0].text


def test_request_matches_truncates_to_sample_size(publisher) -> None:
    matcher = FakeMatcher(
        candidates=[
            MatchCandidate(id=f"c{index}", name=f"N{index}", description="Nice")
            for index in range(5)
        ]
    )
    executor = ActionExecutor(publisher=publisher, matcher=matcher, match_sample_size=3)
    session = make_session(stage=Stage.CONFIRMING)

    _run(executor, session, {"type": "request_matches"}, {"type": "request_matches"})

    assert [len(drop.candidates) for drop in session.daily_drops] == [3, 3]
    assert session.stage is Stage.FETCHING_PROFILES


def test_request_matches_not_open_while_collecting(executor, matcher) -> None:
    session = make_session()

    (result,) = _run(executor, session, {"type": "request_matches"})

    assert not result.success
    assert matcher.limits == []
    assert session.daily_drops == []


def test_matches_on_finalize(publisher, matcher) -> None:
    executor = ActionExecutor(
        publisher=publisher, matcher=matcher, matches_on_finalize=True
    )
    session = make_session(stage=Stage.CONFIRMING)
    fill_minimum_fields(session)

    _, result = _run(
        executor, session, {"type": "generate_profile"}, {"type": "finalize_profile"}
    )

    assert result.success
    assert len(result.data["candidates"]) == 2
    assert session.stage is Stage.FINALIZED


def test_record_match_choice(executor) -> None:
    session = make_session(stage=Stage.FINALIZED)

    _, by_index, by_name, missing = _run(
        executor,
        session,
        {"type": "request_matches"},
        {"type": "record_match_choice", "choice": "2"},
        {"type": "record_match_choice", "choice": "ava"},
        {"type": "record_match_choice", "choice": "Zed"},
    )

    assert by_index.data["candidate_id"] == "c2"
    assert by_name.data["candidate_id"] == "c1"
    assert not missing.success
    assert session.daily_drops[-1].user_choice == "c1"


def test_age_update_clears_it_from_missing_fields(executor) -> None:
    session = make_session()

    ok, too_young, words = _run(
        executor,
        session,
        {"type": "update_profile_field", "field": "age", "value": "25"},
        {"type": "update_profile_field", "field": "age", "value": "5"},
        {"type": "update_profile_field", "field": "age", "value": "not a number"},
    )

    assert ok.success
    assert "age" not in ok.data["missing_fields"]
    assert not too_young.success
    assert not words.success
    assert "age" in (words.error or "")
    assert session.profile_schema["age"] == 25


def test_no_action_leaves_fetching_profiles(executor) -> None:
    session = make_session(stage=Stage.FINALIZED)
    _run(executor, session, {"type": "request_matches"})

    results = _run(
        executor,
        session,
        *[{"type": "update_stage", "stage": stage.value} for stage in Stage],
        {"type": "show_confirmation"},
        {"type": "generate_profile"},
        {"type": "finalize_profile"},
        {"type": "request_matches"},
    )

    assert not any(result.success for result in results[:-1])
    assert results[-1].success
    assert session.stage is Stage.FETCHING_PROFILES
