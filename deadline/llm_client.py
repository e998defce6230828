"""Chat-completion client for the OpenAI-compatible Groq endpoint."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from deadline.config import Settings
from deadline.errors import CompletionTransportError, ConfigurationError
from deadline.services import logger as log_service


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class Completion:
    text: str | None
    usage: Usage
    model: str


class CompletionClient:
    """Single-turn ``{system, user}`` completions with fixed sampling config."""

    def __init__(
        self,
        openai_client: Any,
        *,
        model: str,
        temperature: float = 0.1,
        max_tokens: int = 8000,
    ):
        self._client = openai_client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def complete(
        self,
        system: str,
        user: str,
        *,
        caller: str = "synthesis",
        event_id: str | None = None,
    ) -> Completion:
        if self._client is None:
            raise ConfigurationError("GROQ_API_KEY is not configured")

        started = time.monotonic()
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as exc:
            log_service.log_llm_call(
                model=self.model,
                caller=caller,
                event_id=event_id,
                duration_ms=int((time.monotonic() - started) * 1000),
                error=str(exc),
            )
            raise CompletionTransportError(f"Completion request failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        text = getattr(message, "content", None) if message is not None else None

        usage = getattr(response, "usage", None)
        mapped_usage = Usage(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )
        log_service.log_llm_call(
            model=self.model,
            caller=caller,
            event_id=event_id,
            input_tokens=mapped_usage.input_tokens,
            output_tokens=mapped_usage.output_tokens,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return Completion(text=text, usage=mapped_usage, model=self.model)


def get_client(settings: Settings) -> CompletionClient:
    """Build the completion client; a missing key fails on first use."""
    openai_client = None
    if settings.groq_api_key:
        base_url = settings.llm_base_url.strip() or "https://api.groq.com/openai/v1"
        openai_client = AsyncOpenAI(
            api_key=settings.groq_api_key,
            base_url=base_url,
        )
    return CompletionClient(
        openai_client,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )
