"""Admin service for inspecting and managing sessions."""

from dataclasses import dataclass, field

from matchmaker.domain.sessions import Session
from matchmaker.services.session_store import SessionLocks, SessionStore


def _summarize(session: Session) -> dict[str, object]:
    last_message = session.message_log[-1] if session.message_log else None
    return {
        "session_id": session.session_id,
        "created_at": session.created_at.isoformat(),
        "created_by": session.created_by,
        "participant_count": len(session.participants),
        "participants": [
            participant.model_dump(mode="json") for participant in session.participants
        ],
        "primary_user": session.primary_user.model_dump(mode="json")
        if session.primary_user
        else None,
        "stage": session.stage.value,
        "message_count": len(session.message_log),
        "last_message": last_message.model_dump(mode="json") if last_message else None,
    }


@dataclass
class AdminService:
    """Service behind the admin endpoints."""

    store: SessionStore
    locks: SessionLocks = field(default_factory=SessionLocks, repr=False)

    def list_sessions(self) -> list[dict[str, object]]:
        """Return summaries of every session, newest first."""
        sessions = sorted(
            self.store.list_sessions(),
            key=lambda session: session.created_at,
            reverse=True,
        )
        return [_summarize(session) for session in sessions]

    def get_session(self, session_id: str) -> dict[str, object] | None:
        """Return the full session record, if present."""
        session = self.store.get_session(session_id)
        return session.model_dump(mode="json") if session else None

    async def delete_session(self, session_id: str) -> dict[str, object] | None:
        """Delete a session; returns what was removed."""
        async with self.locks.lock_for(session_id):
            session = self.store.delete_session(session_id)
        if session is None:
            return None
        return {
            "session_id": session.session_id,
            "deleted_participants": len(session.participants),
        }

    async def remove_participant(
        self, session_id: str, contact_id: str
    ) -> dict[str, object] | None:
        """Remove one participant from a session."""
        async with self.locks.lock_for(session_id):
            session = self.store.remove_participant(session_id, contact_id)
        if session is None:
            return None
        return {
            "session_id": session.session_id,
            "removed": contact_id,
            "remaining_participants": len(session.participants),
        }

    def stats(self) -> dict[str, object]:
        """Return aggregate counts across sessions."""
        sessions = self.store.list_sessions()
        total_participants = sum(len(session.participants) for session in sessions)
        total_messages = sum(len(session.message_log) for session in sessions)
        by_stage: dict[str, int] = {}
        for session in sessions:
            by_stage[session.stage.value] = by_stage.get(session.stage.value, 0) + 1
        count = len(sessions)
        return {
            "total_sessions": count,
            "total_participants": total_participants,
            "total_messages": total_messages,
            "sessions_by_stage": by_stage,
            "average_participants_per_session": round(total_participants / count, 2)
            if count
            else 0,
            "average_messages_per_session": round(total_messages / count, 2)
            if count
            else 0,
        }
