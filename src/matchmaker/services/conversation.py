"""Conversation orchestration: one inbound message in, deliveries out."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from matchmaker.chat_commands import (
    ChatCommand,
    help_text,
    invite_text,
    join_text,
    parse_command,
    restart_text,
    unknown_session_text,
    welcome_text,
)
from matchmaker.domain.actions import ActionResult, OutboundMessage
from matchmaker.domain.sessions import LoggedMessage, Session
from matchmaker.services.actions import ActionExecutor
from matchmaker.services.prompts import build_system_prompt, format_history
from matchmaker.services.response_parser import Decision, parse_decision
from matchmaker.services.session_store import SessionLocks, SessionStore

_logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Oops! I'm having trouble thinking right now. Can you try that again?"
EMPTY_REPLY_MESSAGE = "Sorry, I lost my train of thought. Could you repeat that?"
PHOTO_PLACEHOLDER = "📷 [Photo sent]"


class DecisionClientError(Exception):
    """Raised when the language model cannot produce a reply."""


class DecisionClient(Protocol):
    """Interface for the language model deciding each turn."""

    async def decide(self, system_prompt: str, history: list[dict[str, str]]) -> str:
        """Return the raw model reply for the conversation so far."""


@dataclass(frozen=True)
class TurnOutcome:
    """Everything the transport needs after one inbound message."""

    session_id: str | None
    deliveries: list[OutboundMessage]
    reasoning: str | None = None
    action_results: list[ActionResult] = field(default_factory=list)


@dataclass
class ConversationOrchestrator:
    """Routes inbound messages through commands or a model-driven turn."""

    store: SessionStore
    executor: ActionExecutor
    decision_client: DecisionClient
    whatsapp_number: str
    max_actions_per_turn: int = 4
    history_limit: int = 40
    relay_user_messages: bool = True
    locks: SessionLocks = field(default_factory=SessionLocks, repr=False)

    async def handle_message(
        self,
        contact_id: str,
        text: str | None,
        display_name: str | None = None,
        media_urls: list[str] | None = None,
    ) -> TurnOutcome:
        """Handle one inbound message and return what should be sent."""
        media_urls = media_urls or []
        text = (text or "").strip()
        command = parse_command(text)

        if command and command.command is ChatCommand.JOIN:
            return await self._join(contact_id, display_name, command.argument or "")
        if command and command.command is ChatCommand.RESTART:
            return self._start_session(contact_id, display_name, restart=True)

        known = self.store.get_session_for_contact(contact_id)
        if known is None:
            return self._start_session(contact_id, display_name, restart=False)

        async with self.locks.lock_for(known.session_id):
            session = self.store.get_session(known.session_id)
            if session is None:
                _logger.warning(
                    "Session %s was deleted before the turn from %s started",
                    known.session_id,
                    contact_id,
                )
                return TurnOutcome(session_id=None, deliveries=[])
            if media_urls:
                self._store_photos(session, media_urls)
            if command and command.command is ChatCommand.HELP:
                self.store.save_session(session)
                return TurnOutcome(
                    session_id=session.session_id,
                    deliveries=[
                        OutboundMessage(
                            recipient=contact_id,
                            text=help_text(session.session_id, len(session.participants)),
                        )
                    ],
                )
            if not text and not media_urls:
                return TurnOutcome(session_id=session.session_id, deliveries=[])
            return await self._run_turn(
                session, contact_id, display_name, text or PHOTO_PLACEHOLDER
            )

    def _start_session(
        self, contact_id: str, display_name: str | None, *, restart: bool
    ) -> TurnOutcome:
        session = self.store.create_session(contact_id, display_name)
        greeting = restart_text() if restart else welcome_text(display_name)
        invite = invite_text(self.whatsapp_number, session.session_id)
        session.message_log.append(LoggedMessage(role="agent", text=greeting))
        session.message_log.append(LoggedMessage(role="agent", text=invite))
        self.store.save_session(session)
        return TurnOutcome(
            session_id=session.session_id,
            deliveries=[
                OutboundMessage(recipient=contact_id, text=greeting),
                OutboundMessage(recipient=contact_id, text=invite),
            ],
        )

    async def _join(
        self, contact_id: str, display_name: str | None, session_id: str
    ) -> TurnOutcome:
        async with self.locks.lock_for(session_id):
            session = self.store.join_session(session_id, contact_id, display_name)
        if session is None:
            return TurnOutcome(
                session_id=None,
                deliveries=[
                    OutboundMessage(
                        recipient=contact_id, text=unknown_session_text(session_id)
                    )
                ],
            )
        text = join_text(display_name, session.session_id, len(session.participants))
        return TurnOutcome(
            session_id=session.session_id,
            deliveries=_broadcast(session.contact_ids(), text),
        )

    def _store_photos(self, session: Session, media_urls: list[str]) -> None:
        photos = session.aux_data.setdefault("photos", [])
        if not isinstance(photos, list):
            photos = []
            session.aux_data["photos"] = photos
        photos.extend(url for url in media_urls if url)
        _logger.info(
            "Stored %s photo(s) for session %s", len(media_urls), session.session_id
        )

    async def _decide(self, session: Session) -> Decision:
        system_prompt = build_system_prompt(session, self.max_actions_per_turn)
        history = format_history(session, self.history_limit)
        try:
            raw = await self.decision_client.decide(system_prompt, history)
        except DecisionClientError as exc:
            _logger.warning("Decision client failed for %s: %s", session.session_id, exc)
            return Decision(message=APOLOGY_MESSAGE, reasoning=f"Error: {exc}")
        except Exception as exc:
            _logger.exception("Unexpected decision failure for %s", session.session_id)
            return Decision(message=APOLOGY_MESSAGE, reasoning=f"Error: {exc}")
        return parse_decision(raw)

    async def _run_turn(
        self,
        session: Session,
        contact_id: str,
        display_name: str | None,
        text: str,
    ) -> TurnOutcome:
        participant = session.find_participant(contact_id)
        sender_name = (participant.display_name if participant else None) or display_name
        session.message_log.append(
            LoggedMessage(
                role="user",
                text=text,
                sender_contact_id=contact_id,
                sender_name=sender_name,
            )
        )

        decision = await self._decide(session)
        if decision.message:
            session.message_log.append(LoggedMessage(role="agent", text=decision.message))

        actions = decision.actions
        if len(actions) > self.max_actions_per_turn:
            _logger.warning(
                "Dropping %s action(s) over the per-turn limit for %s",
                len(actions) - self.max_actions_per_turn,
                session.session_id,
            )
            actions = actions[: self.max_actions_per_turn]

        results = []
        for raw_action in actions:
            results.append(await self.executor.execute(raw_action, session))
        self.store.save_session(session)

        deliveries: list[OutboundMessage] = []
        if self.relay_user_messages:
            relay = f"*{sender_name or contact_id}:* {text}"
            deliveries.extend(
                _broadcast(
                    [cid for cid in session.contact_ids() if cid != contact_id], relay
                )
            )
        message = decision.message
        if not message and not any(result.deliveries for result in results):
            message = EMPTY_REPLY_MESSAGE
        if message:
            deliveries.extend(_broadcast(session.contact_ids(), message))
        for result in results:
            deliveries.extend(result.deliveries)

        _logger.info(
            "Turn complete: session=%s actions=%s succeeded=%s",
            session.session_id,
            len(results),
            sum(1 for result in results if result.success),
        )
        return TurnOutcome(
            session_id=session.session_id,
            deliveries=deliveries,
            reasoning=decision.reasoning,
            action_results=results,
        )


def _broadcast(recipients: list[str], text: str) -> list[OutboundMessage]:
    return [OutboundMessage(recipient=recipient, text=text) for recipient in recipients]
