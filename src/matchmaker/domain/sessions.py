"""Domain models for profile-building sessions."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from matchmaker.domain.profile_schema import initial_profile_schema
from matchmaker.domain.stages import Stage, parse_stage


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class Participant(BaseModel):
    """A contact taking part in a session."""

    contact_id: str
    display_name: str | None = None
    role: Literal["creator", "friend"]
    joined_at: datetime = Field(default_factory=utc_now)


class PrimaryUser(BaseModel):
    """The person whose profile is being built."""

    contact_id: str | None = None
    display_name: str
    confirmed_at: datetime | None = None


class LoggedMessage(BaseModel):
    """One conversational turn kept as memory for the language model."""

    role: Literal["user", "agent"]
    text: str
    sender_contact_id: str | None = None
    sender_name: str | None = None


class ActionLogEntry(BaseModel):
    """Audit record of one executed action."""

    timestamp: datetime = Field(default_factory=utc_now)
    action_type: str | None
    action_payload: object
    result: dict[str, object]
    success: bool


class ProfileSnapshot(BaseModel):
    """Frozen copy of the profile fields at generation time."""

    id: str
    fields: dict[str, object]
    created_at: datetime = Field(default_factory=utc_now)
    status: Literal["pending_review", "committed"] = "pending_review"
    committed_at: datetime | None = None
    photos: list[str] = Field(default_factory=list)
    profile_url: str | None = None


class MatchCandidate(BaseModel):
    """A candidate profile returned by the recommendation collaborator."""

    id: str
    name: str
    age: int | None = None
    description: str
    profile_url: str | None = None


class DailyDrop(BaseModel):
    """A batch of candidates presented to the primary user."""

    timestamp: datetime = Field(default_factory=utc_now)
    candidates: list[MatchCandidate]
    user_choice: str | None = None


class Session(BaseModel):
    """A single profile-creation effort shared by a primary user and friends."""

    session_id: str
    created_at: datetime = Field(default_factory=utc_now)
    created_by: str
    participants: list[Participant] = Field(min_length=1)
    primary_user: PrimaryUser | None = None
    stage: Stage = Stage.GREETING
    profile_schema: dict[str, object] = Field(default_factory=initial_profile_schema)
    aux_data: dict[str, object] = Field(
        default_factory=lambda: {"photos": [], "preferences": {}}
    )
    message_log: list[LoggedMessage] = Field(default_factory=list)
    action_log: list[ActionLogEntry] = Field(default_factory=list)
    generated_profile: ProfileSnapshot | None = None
    committed_profile: ProfileSnapshot | None = None
    daily_drops: list[DailyDrop] = Field(default_factory=list)

    @field_validator("stage", mode="before")
    @classmethod
    def _resolve_stage(cls, value: object) -> Stage:
        return parse_stage(value)

    def find_participant(self, contact_id_or_name: str) -> Participant | None:
        """Return a participant by contact id, falling back to display name."""
        for participant in self.participants:
            if participant.contact_id == contact_id_or_name:
                return participant
        lowered = contact_id_or_name.strip().lower()
        for participant in self.participants:
            if participant.display_name and participant.display_name.lower() == lowered:
                return participant
        return None

    def contact_ids(self) -> list[str]:
        return [participant.contact_id for participant in self.participants]

    def uploaded_photos(self) -> list[str]:
        photos = self.aux_data.get("photos")
        if not isinstance(photos, list):
            return []
        return [photo for photo in photos if isinstance(photo, str)]
