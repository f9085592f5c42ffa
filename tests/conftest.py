"""Shared fixtures and in-memory fakes."""

import json
from dataclasses import dataclass, field

import pytest

from matchmaker.adapters.twilio_client import MessagingClient
from matchmaker.config import Settings
from matchmaker.containers import AppContainer
from matchmaker.domain.actions import OutboundMessage
from matchmaker.domain.sessions import MatchCandidate, Participant, ProfileSnapshot, Session
from matchmaker.domain.stages import Stage
from matchmaker.services.actions import ActionExecutor, MatchFinder, ProfileUrlIssuer
from matchmaker.services.admin import AdminService
from matchmaker.services.conversation import (
    ConversationOrchestrator,
    DecisionClient,
    DecisionClientError,
)
from matchmaker.services.profiles import ProfilePublisher
from matchmaker.services.session_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    SessionStore,
    StoreUnavailableError,
)

WHATSAPP_NUMBER = "whatsapp:+14155238886"


@dataclass
class FakeMessagingClient(MessagingClient):
    """Records outbound messages instead of sending them."""

    sent: list[OutboundMessage] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    async def send_message(
        self, recipient: str, text: str, media_url: str | None = None
    ) -> None:
        if recipient in self.fail_for:
            raise RuntimeError(f"cannot reach {recipient}")
        self.sent.append(
            OutboundMessage(recipient=recipient, text=text, media_url=media_url)
        )

    def texts_for(self, recipient: str) -> list[str]:
        return [message.text for message in self.sent if message.recipient == recipient]


@dataclass
class FakeDecisionClient(DecisionClient):
    """Returns scripted replies in order; raises once the script runs out."""

    replies: list[object] = field(default_factory=list)
    calls: list[tuple[str, list[dict[str, str]]]] = field(default_factory=list)

    def queue(self, message: str = "", actions: list[object] | None = None) -> None:
        self.replies.append(
            json.dumps(
                {"message": message, "actions": actions or [], "reasoning": "scripted"}
            )
        )

    async def decide(self, system_prompt: str, history: list[dict[str, str]]) -> str:
        self.calls.append((system_prompt, list(history)))
        if not self.replies:
            raise DecisionClientError("no scripted reply")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return str(reply)


@dataclass
class FakeMatcher(MatchFinder):
    """Returns a fixed candidate list and records the requested limits."""

    candidates: list[MatchCandidate] = field(
        default_factory=lambda: [
            MatchCandidate(id="c1", name="Ava", age=22, description="Loves hiking"),
            MatchCandidate(id="c2", name="Ben", age=24, description="Plays guitar"),
        ]
    )
    limits: list[int] = field(default_factory=list)

    async def find_candidates(
        self, profile: dict[str, object], limit: int
    ) -> list[MatchCandidate]:
        self.limits.append(limit)
        return list(self.candidates)


@dataclass
class FakePublisher(ProfileUrlIssuer):
    """Issues predictable URLs, or fails when asked to."""

    fail: bool = False
    published: list[tuple[str, ProfileSnapshot]] = field(default_factory=list)

    async def publish(self, session_id: str, snapshot: ProfileSnapshot) -> str:
        if self.fail:
            raise RuntimeError("storage offline")
        self.published.append((session_id, snapshot))
        return f"https://profiles.example/profile/{session_id}-{len(self.published)}"


@dataclass
class BrokenKeyValueStore(KeyValueStore):
    """Key/value store whose backend is always unreachable."""

    calls: int = 0

    def get(self, key: str) -> str | None:
        self.calls += 1
        raise StoreUnavailableError("offline")

    def set(self, key: str, value: str) -> None:
        self.calls += 1
        raise StoreUnavailableError("offline")

    def delete(self, key: str) -> None:
        self.calls += 1
        raise StoreUnavailableError("offline")

    def keys(self, pattern: str) -> list[str]:
        self.calls += 1
        raise StoreUnavailableError("offline")


def make_session(
    stage: Stage = Stage.COLLECTING,
    participants: tuple[tuple[str, str], ...] = (
        ("+15550001", "Alex"),
        ("+15550002", "Sam"),
    ),
    **overrides: object,
) -> Session:
    """Build a session with a creator and friends for unit tests."""
    members = [
        Participant(
            contact_id=contact_id,
            display_name=name,
            role="creator" if index == 0 else "friend",
        )
        for index, (contact_id, name) in enumerate(participants)
    ]
    return Session(
        session_id="ABC234",
        created_by=members[0].contact_id,
        participants=members,
        stage=stage,
        **overrides,
    )


def fill_minimum_fields(session: Session) -> None:
    session.profile_schema.update(
        {"name": "Alex", "age": 25, "photo": "https://media.example/alex.jpg"}
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        twilio_account_sid="AC123",
        twilio_auth_token="twilio-token",
        twilio_whatsapp_number=WHATSAPP_NUMBER,
        supabase_url="https://example.supabase.co",
        supabase_service_key="service.role.key",
        admin_token="admin-token",
        openai_api_key="openai-key",
        public_base_url="https://matchmaker.example",
    )


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def session_store(kv_store: InMemoryKeyValueStore) -> SessionStore:
    return SessionStore(kv_store)


@pytest.fixture
def matcher() -> FakeMatcher:
    return FakeMatcher()


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def executor(publisher: FakePublisher, matcher: FakeMatcher) -> ActionExecutor:
    return ActionExecutor(publisher=publisher, matcher=matcher, match_sample_size=3)


@pytest.fixture
def decision_client() -> FakeDecisionClient:
    return FakeDecisionClient()


@pytest.fixture
def orchestrator(
    session_store: SessionStore,
    executor: ActionExecutor,
    decision_client: FakeDecisionClient,
) -> ConversationOrchestrator:
    return ConversationOrchestrator(
        store=session_store,
        executor=executor,
        decision_client=decision_client,
        whatsapp_number=WHATSAPP_NUMBER,
        max_actions_per_turn=4,
    )


@pytest.fixture
def messaging_client() -> FakeMessagingClient:
    return FakeMessagingClient()


@pytest.fixture
def container(
    settings: Settings,
    kv_store: InMemoryKeyValueStore,
    session_store: SessionStore,
    orchestrator: ConversationOrchestrator,
    decision_client: FakeDecisionClient,
    messaging_client: FakeMessagingClient,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        messaging_client=messaging_client,
        decision_client=decision_client,
        session_store=session_store,
        profile_publisher=ProfilePublisher(
            store=kv_store, public_base_url=settings.public_base_url
        ),
        orchestrator=orchestrator,
        admin_service=AdminService(session_store, locks=orchestrator.locks),
        close_resources=close_resources,
    )
