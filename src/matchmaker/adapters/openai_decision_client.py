"""OpenAI Chat Completions client deciding each conversation turn."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from matchmaker.services.conversation import DecisionClient, DecisionClientError


@dataclass
class OpenAIDecisionClient(DecisionClient):
    """Decision client backed by the OpenAI Chat Completions API."""

    client: AsyncOpenAI
    model: str
    temperature: float = 1.0
    max_tokens: int = 4000

    @classmethod
    def create(
        cls,
        api_key: str,
        model: str,
        base_url: str | None = None,
        temperature: float = 1.0,
    ) -> "OpenAIDecisionClient":
        """Create an OpenAI decision client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key, base_url=base_url),
            model=model,
            temperature=temperature,
        )

    async def decide(self, system_prompt: str, history: list[dict[str, str]]) -> str:
        """Request a JSON reply for the conversation so far."""
        messages = [{"role": "system", "content": system_prompt}, *history]
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            raise DecisionClientError(f"OpenAI request failed: {exc}") from exc
        if not completion.choices:
            raise DecisionClientError("OpenAI returned no choices")
        content = completion.choices[0].message.content
        if not content or not content.strip():
            raise DecisionClientError("OpenAI returned an empty response")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.client.close()
