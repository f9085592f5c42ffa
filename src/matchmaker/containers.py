"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from matchmaker.adapters.openai_decision_client import OpenAIDecisionClient
from matchmaker.adapters.supabase_kv_store import SupabaseKeyValueStore
from matchmaker.adapters.twilio_client import HttpxTwilioClient, MessagingClient
from matchmaker.config import Settings
from matchmaker.services.actions import ActionExecutor
from matchmaker.services.admin import AdminService
from matchmaker.services.conversation import ConversationOrchestrator, DecisionClient
from matchmaker.services.matches import RandomSampleMatcher
from matchmaker.services.profiles import ProfilePublisher
from matchmaker.services.session_store import (
    FallbackKeyValueStore,
    SessionLocks,
    SessionStore,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    messaging_client: MessagingClient
    decision_client: DecisionClient
    session_store: SessionStore
    profile_publisher: ProfilePublisher
    orchestrator: ConversationOrchestrator
    admin_service: AdminService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    kv_store = FallbackKeyValueStore(primary=SupabaseKeyValueStore(supabase_client))
    session_store = SessionStore(kv_store)
    session_locks = SessionLocks()
    profile_publisher = ProfilePublisher(
        store=kv_store, public_base_url=resolved_settings.public_base_url
    )
    matcher = RandomSampleMatcher()
    executor = ActionExecutor(
        publisher=profile_publisher,
        matcher=matcher,
        match_sample_size=resolved_settings.match_sample_size,
    )
    twilio_client = HttpxTwilioClient.create(
        account_sid=resolved_settings.twilio_account_sid,
        auth_token=resolved_settings.twilio_auth_token,
        from_number=resolved_settings.twilio_whatsapp_number,
    )
    decision_client = OpenAIDecisionClient.create(
        api_key=resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        base_url=resolved_settings.openai_base_url,
        temperature=resolved_settings.openai_temperature,
    )
    orchestrator = ConversationOrchestrator(
        store=session_store,
        executor=executor,
        decision_client=decision_client,
        whatsapp_number=resolved_settings.twilio_whatsapp_number,
        max_actions_per_turn=resolved_settings.max_actions_per_turn,
        history_limit=resolved_settings.history_limit,
        locks=session_locks,
    )
    admin_service = AdminService(session_store, locks=session_locks)

    async def close_resources() -> None:
        await twilio_client.close()
        await decision_client.close()

    return AppContainer(
        settings=resolved_settings,
        messaging_client=twilio_client,
        decision_client=decision_client,
        session_store=session_store,
        profile_publisher=profile_publisher,
        orchestrator=orchestrator,
        admin_service=admin_service,
        close_resources=close_resources,
    )
