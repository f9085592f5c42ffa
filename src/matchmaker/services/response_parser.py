"""Parse raw language model output into a message and a list of actions."""

import json
import logging
from dataclasses import dataclass, field

_logger = logging.getLogger(__name__)

PLAIN_TEXT_REASONING = "Plain text response"


@dataclass(frozen=True)
class Decision:
    """What the language model decided for one turn."""

    message: str
    actions: list[object] = field(default_factory=list)
    reasoning: str | None = None
    plain_text_fallback: bool = False


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if not cleaned.startswith("```"):
        return cleaned
    first_newline = cleaned.find("\n")
    if first_newline < 0:
        return cleaned
    cleaned = cleaned[first_newline:].strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3].strip()
    return cleaned


def _decode(raw: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(_strip_code_fence(raw))
    except json.JSONDecodeError:
        return None


def parse_decision(raw: str | None) -> Decision:
    """Decode the model's JSON reply, degrading to plain text when unusable."""
    text = raw or ""
    payload = _decode(text) if text.strip() else None

    if isinstance(payload, dict):
        message = payload.get("message")
        actions = payload.get("actions")
        has_message = isinstance(message, str) and bool(message.strip())
        has_actions = isinstance(actions, list)
        if has_message or has_actions:
            reasoning = payload.get("reasoning")
            return Decision(
                message=message.strip() if has_message else "",
                actions=list(actions) if has_actions else [],
                reasoning=reasoning if isinstance(reasoning, str) else None,
            )

    _logger.info("Model reply was not a usable decision; treating as plain text")
    return Decision(
        message=text.strip(),
        actions=[],
        reasoning=PLAIN_TEXT_REASONING,
        plain_text_fallback=True,
    )
