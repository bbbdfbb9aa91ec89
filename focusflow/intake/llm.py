"""
Text-understanding service used by extraction, matching and summaries.

The pipeline only needs "prompt in, text out", so the service is passed
in rather than imported. Production code uses AnthropicTextService; tests
pass a scripted fake.

Usage:
    from focusflow.intake.llm import AnthropicTextService

    service = AnthropicTextService(model="claude-3-5-haiku-20241022")
    text = await service.complete(prompt, max_tokens=1024)
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Protocol

import anthropic

from . import DEFAULT_INTAKE_MODEL, HARDPROMPTS_DIR

logger = logging.getLogger(__name__)


class TextService(Protocol):
    async def complete(self, prompt: str, max_tokens: int = 1024, temperature: float = 0.3) -> str:
        ...


class AnthropicTextService:
    """TextService backed by the Anthropic Messages API."""

    def __init__(self, model: str = DEFAULT_INTAKE_MODEL, api_key: str | None = None):
        self.model = model
        self._api_key = api_key
        self._client: anthropic.AsyncAnthropic | None = None

    @property
    def client(self) -> anthropic.AsyncAnthropic:
        # Created lazily so constructing the service never needs a key
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        return self._client

    async def complete(self, prompt: str, max_tokens: int = 1024, temperature: float = 0.3) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.content or response.content[0].type != "text":
            raise ValueError("Unexpected response type from text service")
        return response.content[0].text


async def complete_with_timeout(
    service: TextService,
    prompt: str,
    max_tokens: int,
    temperature: float,
    timeout_seconds: float,
) -> str:
    """Call the service, raising asyncio.TimeoutError past timeout_seconds."""
    return await asyncio.wait_for(
        service.complete(prompt, max_tokens=max_tokens, temperature=temperature),
        timeout=timeout_seconds,
    )


def load_prompt(name: str, fallback: str) -> str:
    """Load a hardprompt template, falling back to the built-in copy."""
    prompt_path = HARDPROMPTS_DIR / f"{name}.md"
    if prompt_path.exists():
        with open(prompt_path) as f:
            return f.read()
    return fallback


def extract_json(raw_output: str) -> Any:
    """
    Pull the JSON payload out of a model response.

    Handles markdown code fences, leading/trailing prose and trailing
    commas. Raises ValueError when no JSON array or object can be parsed.
    """
    text = (raw_output or "").strip()

    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    starts = [i for i in (text.find("["), text.find("{")) if i != -1]
    if not starts:
        raise ValueError("No JSON found in response")
    start = min(starts)
    end = text.rfind("]" if text[start] == "[" else "}")
    if end <= start:
        raise ValueError("Unterminated JSON in response")

    candidate = re.sub(r",\s*([}\]])", r"\1", text[start:end + 1])
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.debug(f"Failed to parse JSON: {candidate[:200]}")
        raise ValueError(f"Malformed JSON in response: {e}") from e
