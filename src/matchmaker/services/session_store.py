"""Session persistence on top of a simple key/value store."""

import asyncio
import logging
import secrets
import weakref
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Protocol

from matchmaker.domain.sessions import Participant, Session

_logger = logging.getLogger(__name__)

SESSION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SESSION_CODE_LENGTH = 6
_MAX_CODE_ATTEMPTS = 20


class StoreUnavailableError(Exception):
    """Raised when the backing key/value store cannot be reached."""


class ParticipantNotFoundError(LookupError):
    """Raised when a contact is not a participant of the session."""


class ParticipantRemovalError(ValueError):
    """Raised when a participant cannot be removed from a session."""


class KeyValueStore(Protocol):
    """Minimal key/value interface used for session storage."""

    def get(self, key: str) -> str | None:
        """Return the value stored under key, if any."""

    def set(self, key: str, value: str) -> None:
        """Store a value under key."""

    def delete(self, key: str) -> None:
        """Remove key if present."""

    def keys(self, pattern: str) -> list[str]:
        """Return keys matching a glob pattern (only `*` is special)."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local key/value store."""

    _entries: dict[str, str]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, key: str) -> str | None:
        """Return the stored value, if present."""
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value."""
        self._entries[key] = value

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        self._entries.pop(key, None)

    def keys(self, pattern: str) -> list[str]:
        """Return stored keys matching the pattern."""
        return sorted(key for key in self._entries if fnmatchcase(key, pattern))


@dataclass
class FallbackKeyValueStore(KeyValueStore):
    """Uses the primary store until it fails once, then memory for good."""

    primary: KeyValueStore
    fallback: KeyValueStore = field(default_factory=InMemoryKeyValueStore)
    degraded: bool = False

    def _degrade(self, operation: str, exc: StoreUnavailableError) -> None:
        self.degraded = True
        _logger.warning(
            "Key/value store %s failed (%s); switching to in-memory storage",
            operation,
            exc,
        )

    def get(self, key: str) -> str | None:
        """Return a value from the active store."""
        if not self.degraded:
            try:
                return self.primary.get(key)
            except StoreUnavailableError as exc:
                self._degrade("get", exc)
        return self.fallback.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value in the active store."""
        if not self.degraded:
            try:
                self.primary.set(key, value)
                return
            except StoreUnavailableError as exc:
                self._degrade("set", exc)
        self.fallback.set(key, value)

    def delete(self, key: str) -> None:
        """Remove a key from the active store."""
        if not self.degraded:
            try:
                self.primary.delete(key)
                return
            except StoreUnavailableError as exc:
                self._degrade("delete", exc)
        self.fallback.delete(key)

    def keys(self, pattern: str) -> list[str]:
        """Return matching keys from the active store."""
        if not self.degraded:
            try:
                return self.primary.keys(pattern)
            except StoreUnavailableError as exc:
                self._degrade("keys", exc)
        return self.fallback.keys(pattern)


class SessionLocks:
    """Per-session asyncio locks shared by everything that rewrites a session.

    Entries are weak, so a lock disappears once no holder or waiter keeps it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Return the lock guarding one session id."""
        key = session_id.strip().upper()
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


def session_key(session_id: str) -> str:
    return f"session:{session_id}"


def contact_key(contact_id: str) -> str:
    return f"contact:{contact_id}"


@dataclass
class SessionStore:
    """Loads and saves sessions and the contact -> session pointers."""

    store: KeyValueStore

    def generate_session_code(self) -> str:
        """Return an unused join code."""
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = "".join(
                secrets.choice(SESSION_CODE_ALPHABET) for _ in range(SESSION_CODE_LENGTH)
            )
            if self.store.get(session_key(code)) is None:
                return code
        raise RuntimeError("Could not generate a unique session code")

    def create_session(self, contact_id: str, display_name: str | None) -> Session:
        """Create a session owned by contact_id and point the contact at it."""
        session = Session(
            session_id=self.generate_session_code(),
            created_by=contact_id,
            participants=[
                Participant(
                    contact_id=contact_id, display_name=display_name, role="creator"
                )
            ],
        )
        self.save_session(session)
        self.store.set(contact_key(contact_id), session.session_id)
        _logger.info("Created session %s for %s", session.session_id, contact_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Return a session by id, if present."""
        raw = self.store.get(session_key(session_id.strip().upper()))
        if raw is None:
            return None
        return Session.model_validate_json(raw)

    def get_session_for_contact(self, contact_id: str) -> Session | None:
        """Return the session a contact currently belongs to."""
        session_id = self.store.get(contact_key(contact_id))
        if session_id is None:
            return None
        session = self.get_session(session_id)
        if session is None:
            self.store.delete(contact_key(contact_id))
        return session

    def save_session(self, session: Session) -> None:
        """Persist the full session record."""
        self.store.set(session_key(session.session_id), session.model_dump_json())

    def join_session(
        self, session_id: str, contact_id: str, display_name: str | None
    ) -> Session | None:
        """Add a friend to a session; joining twice is a no-op."""
        session = self.get_session(session_id)
        if session is None:
            _logger.warning("Join attempt for unknown session %s", session_id)
            return None
        if contact_id not in session.contact_ids():
            session.participants.append(
                Participant(
                    contact_id=contact_id, display_name=display_name, role="friend"
                )
            )
            self.save_session(session)
            _logger.info(
                "Contact %s joined session %s (%s participants)",
                contact_id,
                session.session_id,
                len(session.participants),
            )
        self.store.set(contact_key(contact_id), session.session_id)
        return session

    def delete_session(self, session_id: str) -> Session | None:
        """Delete a session and the pointers of everyone in it."""
        session = self.get_session(session_id)
        if session is None:
            return None
        for contact_id in session.contact_ids():
            if self.store.get(contact_key(contact_id)) == session.session_id:
                self.store.delete(contact_key(contact_id))
        self.store.delete(session_key(session.session_id))
        _logger.info("Deleted session %s", session.session_id)
        return session

    def remove_participant(self, session_id: str, contact_id: str) -> Session | None:
        """Remove one participant, keeping at least one in the session."""
        session = self.get_session(session_id)
        if session is None:
            return None
        if contact_id not in session.contact_ids():
            raise ParticipantNotFoundError(f"{contact_id} is not in this session")
        if len(session.participants) == 1:
            raise ParticipantRemovalError("Cannot remove the last participant")

        session.participants = [
            participant
            for participant in session.participants
            if participant.contact_id != contact_id
        ]
        if session.created_by == contact_id:
            session.created_by = session.participants[0].contact_id
        if session.primary_user and session.primary_user.contact_id == contact_id:
            session.primary_user = None
        self.save_session(session)
        if self.store.get(contact_key(contact_id)) == session.session_id:
            self.store.delete(contact_key(contact_id))
        return session

    def list_sessions(self) -> list[Session]:
        """Return every stored session."""
        sessions = []
        for key in self.store.keys(session_key("*")):
            raw = self.store.get(key)
            if raw is not None:
                sessions.append(Session.model_validate_json(raw))
        return sessions
