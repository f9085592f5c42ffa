"""Publishing generated profiles under permanent shareable URLs."""

import logging
import secrets
from dataclasses import dataclass

from matchmaker.domain.sessions import ProfileSnapshot
from matchmaker.services.actions import ProfileUrlIssuer
from matchmaker.services.session_store import SESSION_CODE_ALPHABET, KeyValueStore

_logger = logging.getLogger(__name__)

PROFILE_CODE_LENGTH = 8
_MAX_CODE_ATTEMPTS = 20


class PublishError(Exception):
    """Raised when a profile snapshot cannot be published."""


def profile_key(session_id: str) -> str:
    return f"profile:{session_id}"


def profile_code_key(code: str) -> str:
    return f"profile_code:{code}"


@dataclass
class ProfilePublisher(ProfileUrlIssuer):
    """Stores snapshots in the key/value store and issues short-code URLs."""

    store: KeyValueStore
    public_base_url: str

    def _new_code(self) -> str:
        for _ in range(_MAX_CODE_ATTEMPTS):
            code = "".join(
                secrets.choice(SESSION_CODE_ALPHABET) for _ in range(PROFILE_CODE_LENGTH)
            )
            if self.store.get(profile_code_key(code)) is None:
                return code
        raise PublishError("Could not allocate a unique profile code")

    def profile_url(self, code: str) -> str:
        return f"{self.public_base_url.rstrip('/')}/profile/{code}"

    async def publish(self, session_id: str, snapshot: ProfileSnapshot) -> str:
        """Store the snapshot and return its public URL."""
        code = self._new_code()
        url = self.profile_url(code)
        published = snapshot.model_copy(update={"profile_url": url})
        payload = published.model_dump_json()
        try:
            self.store.set(profile_key(session_id), payload)
            self.store.set(profile_code_key(code), payload)
        except Exception as exc:
            raise PublishError(f"Could not store profile {snapshot.id}") from exc
        _logger.info("Published profile %s for session %s", snapshot.id, session_id)
        return url

    def get_by_code(self, code: str) -> ProfileSnapshot | None:
        """Return the published snapshot for a profile code."""
        raw = self.store.get(profile_code_key(code.strip().upper()))
        if raw is None:
            return None
        return ProfileSnapshot.model_validate_json(raw)
