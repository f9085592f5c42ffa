"""Twilio messaging client adapter."""

from dataclasses import dataclass
from typing import Protocol

import httpx

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
WHATSAPP_BODY_LIMIT = 1600


class MessagingClient(Protocol):
    """Interface for outbound chat messages."""

    async def send_message(
        self, recipient: str, text: str, media_url: str | None = None
    ) -> None:
        """Deliver a message to one contact."""


def split_body(text: str, limit: int = WHATSAPP_BODY_LIMIT) -> list[str]:
    """Split text into chunks under the transport limit, preferring line breaks."""
    if len(text) <= limit:
        return [text]
    chunks = []
    remaining = text
    while len(remaining) > limit:
        cut = remaining.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(remaining[:cut].rstrip())
        remaining = remaining[cut:].lstrip("\n")
    if remaining:
        chunks.append(remaining)
    return chunks


@dataclass
class HttpxTwilioClient(MessagingClient):
    """Twilio Messages API client implemented with httpx."""

    account_sid: str
    auth_token: str
    from_number: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, account_sid: str, auth_token: str, from_number: str
    ) -> "HttpxTwilioClient":
        """Create a Twilio client with a managed httpx session."""
        return cls(
            account_sid=account_sid,
            auth_token=auth_token,
            from_number=from_number,
            http_client=httpx.AsyncClient(),
        )

    def _address(self, contact_id: str) -> str:
        if contact_id.startswith("whatsapp:"):
            return contact_id
        return f"whatsapp:{contact_id}"

    async def send_message(
        self, recipient: str, text: str, media_url: str | None = None
    ) -> None:
        """Send a WhatsApp message, splitting long bodies into several messages."""
        url = f"{TWILIO_API_BASE}/Accounts/{self.account_sid}/Messages.json"
        chunks = split_body(text)
        for index, chunk in enumerate(chunks):
            payload = {
                "To": self._address(recipient),
                "From": self._address(self.from_number),
                "Body": chunk,
            }
            if media_url and index == len(chunks) - 1:
                payload["MediaUrl"] = media_url
            response = await self.http_client.post(
                url,
                data=payload,
                auth=(self.account_sid, self.auth_token),
                timeout=10,
            )
            response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
