"""
Chat completion client with token and cost accounting.

All generation goes through ``ChatCompletionClient.complete``: a system/user
message pair in, generated text out. API failures are re-raised as
``GenerationError`` carrying the upstream message; no retries.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from recruitchat.config import Settings, get_settings
from recruitchat.middleware.metrics import record_generation_latency

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The text-generation API failed or returned nothing usable."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedResponseError(GenerationError):
    """The model was asked for JSON and returned something unparsable."""


@dataclass
class Completion:
    text: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: float = 0.0


def parse_json_response(content: Optional[str]) -> Dict[str, Any]:
    """
    Parse a JSON object from model output.

    Markdown code fences around the object are tolerated.

    Raises:
        MalformedResponseError: if no JSON object can be read
    """
    text = (content or "").strip()
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(lines[1:-1])

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Could not parse model response as JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponseError("Expected a JSON object from the model")
    return data


class ChatCompletionClient:
    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        self.model = self.settings.chat_model
        self._client = client or AsyncOpenAI(api_key=self.settings.openai_api_key or None)

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
        call_site: str = "answer",
    ) -> Completion:
        """
        Run one chat completion.

        Args:
            messages: Role-tagged messages ([system, user])
            temperature: Sampling temperature
            max_tokens: Completion token cap
            call_site: Label for latency metrics and logs

        Returns:
            Completion with text and usage

        Raises:
            GenerationError: on any API error or an empty response
        """
        start = time.perf_counter()
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"Chat completion failed ({call_site}): {e}")
            raise GenerationError(str(e)) from e
        finally:
            record_generation_latency(call_site, time.perf_counter() - start)

        if not response.choices or response.choices[0].message.content is None:
            logger.error(f"Chat completion returned no content ({call_site})")
            raise GenerationError("The model returned an empty response")

        usage = response.usage
        prompt_tokens = usage.prompt_tokens if usage else 0
        completion_tokens = usage.completion_tokens if usage else 0
        cost = (prompt_tokens + completion_tokens) / 1_000_000 * self.settings.chat_cost_per_million
        logger.info(
            f"Completion ({call_site}): {prompt_tokens} prompt + "
            f"{completion_tokens} completion tokens, ${cost:.6f}"
        )

        return Completion(
            text=response.choices[0].message.content.strip(),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost=cost,
        )
