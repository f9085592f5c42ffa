"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status

from matchmaker.adapters.twilio_client import MessagingClient
from matchmaker.api.admin import router as admin_router
from matchmaker.app_logging import configure_logging
from matchmaker.config import parse_contact_id
from matchmaker.containers import AppContainer
from matchmaker.domain.actions import OutboundMessage

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'
HICCUP_MESSAGE = "Sorry, I had a little hiccup! Can you try that again?"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/twilio/webhook")
    async def twilio_webhook(request: Request) -> Response:
        """Handle an inbound WhatsApp message from Twilio."""
        state_container: AppContainer = request.app.state.container
        form = await request.form()
        contact_id = parse_contact_id(_form_text(form.get("From")))
        if contact_id is None:
            logger.warning("Webhook without a sender address")
            return _twiml()

        media_urls = _media_urls(form)
        body = _form_text(form.get("Body"))
        profile_name = _form_text(form.get("ProfileName"))
        try:
            outcome = await state_container.orchestrator.handle_message(
                contact_id=contact_id,
                text=body,
                display_name=profile_name,
                media_urls=media_urls,
            )
            deliveries = outcome.deliveries
        except Exception:
            logger.exception("Failed to handle message from %s", contact_id)
            deliveries = [OutboundMessage(recipient=contact_id, text=HICCUP_MESSAGE)]

        await _deliver(state_container.messaging_client, deliveries, logger)
        return _twiml()

    @app.get("/profile/{code}")
    async def published_profile(code: str, request: Request) -> dict[str, object]:
        """Return a published profile snapshot."""
        state_container: AppContainer = request.app.state.container
        snapshot = state_container.profile_publisher.get_by_code(code)
        if snapshot is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return {"profile": snapshot.model_dump(mode="json")}

    return app


def _twiml() -> Response:
    return Response(content=EMPTY_TWIML, media_type="application/xml")


def _form_text(value: object) -> str | None:
    if isinstance(value, str):
        return value
    return None


def _media_urls(form: Mapping[str, object]) -> list[str]:
    try:
        count = int(_form_text(form.get("NumMedia")) or 0)
    except ValueError:
        count = 0
    urls = []
    for index in range(count):
        url = _form_text(form.get(f"MediaUrl{index}"))
        if url:
            urls.append(url)
    return urls


async def _deliver(
    client: MessagingClient,
    deliveries: list[OutboundMessage],
    logger: logging.Logger,
) -> None:
    for delivery in deliveries:
        try:
            await client.send_message(
                delivery.recipient, delivery.text, media_url=delivery.media_url
            )
        except Exception:
            logger.exception("Failed to deliver message to %s", delivery.recipient)
