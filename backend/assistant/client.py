"""
LLM transport for the analysis features.

The service layer only depends on the ``LLMClient`` protocol; the OpenAI
chat-completions client is the production implementation.
"""

import json
import re
from typing import Any, Protocol

from openai import AsyncOpenAI

from core.config import get_settings


class LLMClient(Protocol):
    async def generate(self, *, system_instruction: str, prompt: str, json_output: bool = False) -> str:
        """Return the raw text of the model response."""
        ...


class OpenAIChatClient:
    """Chat-completions client. No automatic retries."""

    def __init__(self, api_key: str, model: str, base_url: str | None = None):
        self.model = model
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None, max_retries=0)

    async def generate(self, *, system_instruction: str, prompt: str, json_output: bool = False) -> str:
        kwargs: dict[str, Any] = {}
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}
        response = await self._client.chat.completions.create(
            model=self.model,
            temperature=0,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            **kwargs,
        )
        return response.choices[0].message.content or ""


def build_default_client() -> OpenAIChatClient:
    settings = get_settings()
    return OpenAIChatClient(
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url or None,
    )


def parse_json_response(text: str) -> Any:
    """Extract and parse JSON from a model response.

    Accepts bare JSON or JSON wrapped in a ```json fence.
    """
    fence_match = re.search(r"```(?:json)?\s*(.*?)\s*```", text, re.DOTALL)
    if fence_match:
        return json.loads(fence_match.group(1))
    return json.loads(text.strip())
