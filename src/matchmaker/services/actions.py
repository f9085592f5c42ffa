"""Action executor: validates, dispatches and audits model-authored actions."""

import logging
from collections.abc import Awaitable, Callable
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Protocol
from uuid import uuid4

from matchmaker.domain.actions import (
    ACTION_REGISTRY,
    Action,
    ActionResult,
    ActionType,
    FinalizeProfileAction,
    GenerateProfileAction,
    OutboundMessage,
    RecordMatchChoiceAction,
    RequestMatchesAction,
    SendMessageAction,
    SetPrimaryUserAction,
    ShowConfirmationAction,
    UpdateProfileFieldAction,
    UpdateStageAction,
    validate_action,
)
from matchmaker.domain.profile_schema import (
    format_profile_summary,
    get_field_display_name,
    get_missing_fields,
    get_missing_minimum_fields,
    update_field,
)
from matchmaker.domain.sessions import (
    ActionLogEntry,
    DailyDrop,
    MatchCandidate,
    PrimaryUser,
    ProfileSnapshot,
    Session,
    utc_now,
)
from matchmaker.domain.stages import Stage
from matchmaker.services.stage_machine import StageMachine, StageTransitionError

_logger = logging.getLogger(__name__)


class ProfileUrlIssuer(Protocol):
    """Turns a frozen profile snapshot into a permanent shareable URL."""

    async def publish(self, session_id: str, snapshot: ProfileSnapshot) -> str:
        """Store the snapshot and return its public URL."""


class MatchFinder(Protocol):
    """Recommendation collaborator returning candidate profiles."""

    async def find_candidates(
        self, profile: dict[str, object], limit: int
    ) -> list[MatchCandidate]:
        """Return up to `limit` candidates for the given profile."""


Handler = Callable[[Action, Session], Awaitable[ActionResult]]


@dataclass
class ActionExecutor:
    """Runs one action at a time against a session, all-or-nothing."""

    publisher: ProfileUrlIssuer
    matcher: MatchFinder
    stage_machine: StageMachine = field(default_factory=StageMachine)
    match_sample_size: int = 3
    matches_on_finalize: bool = False

    def __post_init__(self) -> None:
        self._handlers: dict[ActionType, Handler] = {
            ActionType.SEND_MESSAGE: self._send_message,
            ActionType.UPDATE_STAGE: self._update_stage,
            ActionType.SET_PRIMARY_USER: self._set_primary_user,
            ActionType.UPDATE_PROFILE_FIELD: self._update_profile_field,
            ActionType.SHOW_CONFIRMATION: self._show_confirmation,
            ActionType.GENERATE_PROFILE: self._generate_profile,
            ActionType.FINALIZE_PROFILE: self._finalize_profile,
            ActionType.REQUEST_MATCHES: self._request_matches,
            ActionType.RECORD_MATCH_CHOICE: self._record_match_choice,
        }

    async def execute(self, raw_action: object, session: Session) -> ActionResult:
        """Validate and run one action; never raises."""
        validation = validate_action(raw_action, session.stage)
        if validation.action is None:
            result = ActionResult.failure(
                validation.error or "Invalid action", validation.action_type
            )
            _logger.warning(
                "Action rejected: session=%s type=%s stage=%s error=%s",
                session.session_id,
                validation.action_type,
                session.stage.value,
                result.error,
            )
        else:
            result = await self._run(validation.action, session)
        self._audit(session, raw_action, result)
        return result

    async def _run(self, action: Action, session: Session) -> ActionResult:
        action_type = ActionType(action.type)
        draft = session.model_copy(deep=True)
        try:
            result = await self._handlers[action_type](action, draft)
        except Exception as exc:
            _logger.exception(
                "Action failed: session=%s type=%s",
                session.session_id,
                action_type.value,
            )
            result = ActionResult.failure(
                f"{action_type.value} failed: {exc}", action_type.value
            )
        result.action_type = action_type.value
        if result.success:
            _apply_draft(draft, session)
            _logger.info(
                "Action executed: session=%s type=%s stage=%s",
                session.session_id,
                action_type.value,
                session.stage.value,
            )
        else:
            _logger.warning(
                "Action unsuccessful: session=%s type=%s error=%s",
                session.session_id,
                action_type.value,
                result.error,
            )
        return result

    def _audit(self, session: Session, raw_action: object, result: ActionResult) -> None:
        session.action_log.append(
            ActionLogEntry(
                action_type=result.action_type,
                action_payload=raw_action,
                result=result.model_dump(mode="json"),
                success=result.success,
            )
        )

    def _stage_error(self, action_type: ActionType, session: Session) -> str | None:
        if ACTION_REGISTRY[action_type].allows(session.stage):
            return None
        return f"Action {action_type.value} is not allowed in stage {session.stage.value}"

    async def _send_message(
        self, action: SendMessageAction, session: Session
    ) -> ActionResult:
        if action.target.strip().lower() == "all":
            recipients = session.contact_ids()
        else:
            participant = session.find_participant(action.target)
            if participant is None:
                return ActionResult.failure(f"Unknown recipient: {action.target}")
            recipients = [participant.contact_id]
        return ActionResult(
            success=True,
            data={"recipients": recipients},
            deliveries=[
                OutboundMessage(
                    recipient=recipient, text=action.text, media_url=action.media_url
                )
                for recipient in recipients
            ],
        )

    async def _update_stage(
        self, action: UpdateStageAction, session: Session
    ) -> ActionResult:
        old_stage = session.stage
        try:
            new_stage = self.stage_machine.transition(session, action.stage)
        except StageTransitionError as exc:
            return ActionResult.failure(str(exc))
        return ActionResult(
            success=True,
            data={"old_stage": old_stage.value, "new_stage": new_stage.value},
        )

    async def _set_primary_user(
        self, action: SetPrimaryUserAction, session: Session
    ) -> ActionResult:
        if error := self._stage_error(ActionType.SET_PRIMARY_USER, session):
            return ActionResult.failure(error)
        contact_id = action.contact_id
        if contact_id is not None and contact_id not in session.contact_ids():
            return ActionResult.failure(f"{contact_id} is not part of this session")
        if contact_id is None:
            participant = session.find_participant(action.display_name)
            contact_id = participant.contact_id if participant else None
        session.primary_user = PrimaryUser(
            contact_id=contact_id,
            display_name=action.display_name.strip(),
            confirmed_at=utc_now(),
        )
        return ActionResult(
            success=True,
            data={"display_name": session.primary_user.display_name, "contact_id": contact_id},
        )

    async def _update_profile_field(
        self, action: UpdateProfileFieldAction, session: Session
    ) -> ActionResult:
        if error := self._stage_error(ActionType.UPDATE_PROFILE_FIELD, session):
            return ActionResult.failure(error)
        if action.value is None:
            return ActionResult.failure("Field and value are required")
        outcome = update_field(session.profile_schema, action.field, action.value)
        if not outcome.success:
            return ActionResult(
                success=False,
                error=outcome.error,
                data={
                    "field": action.field,
                    "label": get_field_display_name(action.field),
                },
            )
        return ActionResult(
            success=True,
            data={
                "field": action.field,
                "value": outcome.value,
                "missing_fields": get_missing_fields(session.profile_schema),
            },
        )

    async def _show_confirmation(
        self, action: ShowConfirmationAction, session: Session
    ) -> ActionResult:
        if error := self._stage_error(ActionType.SHOW_CONFIRMATION, session):
            return ActionResult.failure(error)
        missing = get_missing_minimum_fields(session.profile_schema)
        if missing:
            return ActionResult.failure(
                f"Cannot confirm yet. Missing: {', '.join(missing)}"
            )
        self.stage_machine.transition(
            session, Stage.CONFIRMING, via=ActionType.SHOW_CONFIRMATION
        )
        summary = format_profile_summary(session.profile_schema)
        recap = f"Here's what I've got so far:\n\n{summary}\n\nDoes this look right?"
        return ActionResult(
            success=True,
            data={"summary": summary},
            deliveries=_broadcast(session, recap),
        )

    async def _generate_profile(
        self, action: GenerateProfileAction, session: Session
    ) -> ActionResult:
        if error := self._stage_error(ActionType.GENERATE_PROFILE, session):
            return ActionResult.failure(error)
        missing = get_missing_minimum_fields(session.profile_schema)
        if missing:
            return ActionResult.failure(
                f"Profile incomplete. Missing: {', '.join(missing)}"
            )
        self.stage_machine.check(
            session.stage, Stage.REVIEWING, via=ActionType.GENERATE_PROFILE
        )

        snapshot = ProfileSnapshot(
            id=f"profile_{session.session_id}_{uuid4().hex[:8]}",
            fields=deepcopy(session.profile_schema),
            photos=_collect_photos(session),
        )
        snapshot.profile_url = await self.publisher.publish(session.session_id, snapshot)

        session.generated_profile = snapshot
        self.stage_machine.transition(
            session, Stage.REVIEWING, via=ActionType.GENERATE_PROFILE
        )
        return ActionResult(
            success=True,
            data={"profile_id": snapshot.id, "profile_url": snapshot.profile_url},
            deliveries=_broadcast(
                session, f"The profile is ready! Take a look: {snapshot.profile_url}"
            ),
        )

    async def _finalize_profile(
        self, action: FinalizeProfileAction, session: Session
    ) -> ActionResult:
        if error := self._stage_error(ActionType.FINALIZE_PROFILE, session):
            return ActionResult.failure(error)
        if session.stage == Stage.FINALIZED:
            if session.committed_profile is None:
                return ActionResult.failure("No committed profile found")
            return ActionResult(
                success=True,
                data={
                    "profile_id": session.committed_profile.id,
                    "already_committed": True,
                },
            )
        if session.generated_profile is None:
            return ActionResult.failure("No generated profile found to finalize")

        committed = session.generated_profile.model_copy(
            update={"status": "committed", "committed_at": utc_now()}, deep=True
        )
        session.generated_profile = committed
        session.committed_profile = committed.model_copy(deep=True)
        self.stage_machine.transition(
            session, Stage.FINALIZED, via=ActionType.FINALIZE_PROFILE
        )
        result = ActionResult(
            success=True,
            data={"profile_id": committed.id, "already_committed": False},
        )
        if self.matches_on_finalize:
            drop = await self._fetch_drop(session)
            result.data["candidates"] = _describe_candidates(drop)
        return result

    async def _request_matches(
        self, action: RequestMatchesAction, session: Session
    ) -> ActionResult:
        if error := self._stage_error(ActionType.REQUEST_MATCHES, session):
            return ActionResult.failure(error)
        if session.stage != Stage.FETCHING_PROFILES:
            self.stage_machine.check(
                session.stage,
                Stage.FETCHING_PROFILES,
                via=ActionType.REQUEST_MATCHES,
            )
        drop = await self._fetch_drop(session)
        if session.stage != Stage.FETCHING_PROFILES:
            self.stage_machine.transition(
                session, Stage.FETCHING_PROFILES, via=ActionType.REQUEST_MATCHES
            )
        return ActionResult(
            success=True,
            data={"candidates": _describe_candidates(drop)},
            deliveries=_broadcast(session, _format_drop(drop)),
        )

    async def _record_match_choice(
        self, action: RecordMatchChoiceAction, session: Session
    ) -> ActionResult:
        if error := self._stage_error(ActionType.RECORD_MATCH_CHOICE, session):
            return ActionResult.failure(error)
        if not session.daily_drops:
            return ActionResult.failure("No candidates have been shown yet")
        drop = session.daily_drops[-1]
        candidate = _find_candidate(drop, action.choice)
        if candidate is None:
            return ActionResult.failure(f"No candidate matches {action.choice!r}")
        drop.user_choice = candidate.id
        return ActionResult(
            success=True, data={"candidate_id": candidate.id, "name": candidate.name}
        )

    async def _fetch_drop(self, session: Session) -> DailyDrop:
        if session.committed_profile is not None:
            profile = dict(session.committed_profile.fields)
        else:
            profile = dict(session.profile_schema)
        candidates = await self.matcher.find_candidates(
            profile, limit=self.match_sample_size
        )
        drop = DailyDrop(candidates=candidates[: self.match_sample_size])
        session.daily_drops.append(drop)
        return drop


def _apply_draft(draft: Session, session: Session) -> None:
    for name in Session.model_fields:
        setattr(session, name, getattr(draft, name))


def _broadcast(session: Session, text: str) -> list[OutboundMessage]:
    return [
        OutboundMessage(recipient=contact_id, text=text)
        for contact_id in session.contact_ids()
    ]


def _collect_photos(session: Session) -> list[str]:
    photos: list[str] = []
    primary = session.profile_schema.get("photo")
    extra = session.profile_schema.get("photos")
    candidates = [primary] if isinstance(primary, str) else []
    if isinstance(extra, list):
        candidates.extend(extra)
    candidates.extend(session.uploaded_photos())
    for photo in candidates:
        if isinstance(photo, str) and photo and photo not in photos:
            photos.append(photo)
    return photos


def _describe_candidates(drop: DailyDrop) -> list[dict[str, object]]:
    return [candidate.model_dump(mode="json") for candidate in drop.candidates]


def _format_drop(drop: DailyDrop) -> str:
    if not drop.candidates:
        return "No new profiles today. Check back tomorrow!"
    lines = ["Today's picks:"]
    for index, candidate in enumerate(drop.candidates, start=1):
        heading = candidate.name
        if candidate.age is not None:
            heading = f"{heading}, {candidate.age}"
        line = f"{index}. {heading}: {candidate.description}"
        if candidate.profile_url:
            line = f"{line}\n{candidate.profile_url}"
        lines.append(line)
    return "\n".join(lines)


def _find_candidate(drop: DailyDrop, choice: str) -> MatchCandidate | None:
    wanted = choice.strip().lower()
    if wanted.isdigit():
        index = int(wanted) - 1
        if 0 <= index < len(drop.candidates):
            return drop.candidates[index]
    for candidate in drop.candidates:
        if wanted in {candidate.id.lower(), candidate.name.lower()}:
            return candidate
    return None
