"""
OpenAI Embeddings Service - Text Vectorization for Semantic Search

Converts candidate profiles, job descriptions and search queries into
dense vectors with OpenAI's text-embedding-3-small model.

Key Functions:
    - EmbeddingClient.generate(): Single text -> EmbeddingResult
    - EmbeddingClient.generate_batch(): Sequential calls with pacing delay
    - prepare_candidate_text(): Candidate row -> text to embed

Model Details:
    - Model: text-embedding-3-small
    - Dimensions: 1536
    - Input is truncated to 8000 characters before submission
    - Cost: $0.02 / 1M tokens

Errors from the API are captured in ``EmbeddingResult.error`` rather than
raised, so bulk runs can log the failure and move on.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from recruitchat.config import Settings, get_settings

logger = logging.getLogger(__name__)

RESUME_PREVIEW_CHARS = 4000


@dataclass
class EmbeddingResult:
    success: bool
    embedding: Optional[List[float]] = None
    tokens_used: int = 0
    cost: float = 0.0
    error: Optional[str] = None


def clean_text(text: str, max_chars: int) -> str:
    """Collapse whitespace and truncate to the character budget."""
    return " ".join((text or "").split())[:max_chars]


def prepare_candidate_text(candidate: Dict[str, Any]) -> str:
    """
    Build the text embedded for a candidate.

    Sections are separated by blank lines; empty fields are skipped and the
    resume is cut to its first 4000 characters.
    """
    skills = candidate.get("skills")
    if isinstance(skills, (list, tuple)):
        skills = ", ".join(str(s) for s in skills)

    resume = candidate.get("resume_text") or ""
    parts = [
        f"Name: {candidate.get('name') or 'Unknown'}",
        f"Email: {candidate['email']}" if candidate.get("email") else "",
        f"Phone: {candidate['phone']}" if candidate.get("phone") else "",
        f"Experience: {candidate['experience']}" if candidate.get("experience") else "",
        f"Skills: {skills}" if skills else "",
        f"Location: {candidate['location']}" if candidate.get("location") else "",
        f"Resume: {resume[:RESUME_PREVIEW_CHARS]}" if resume else "",
    ]
    return "\n\n".join(p for p in parts if p)


class EmbeddingClient:
    """
    OpenAI embeddings with token and cost accounting.

    Attributes:
        model: Embedding model name
        dimensions: Requested vector size
        max_chars: Character budget applied before submission
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.settings = settings or get_settings()
        self.model = self.settings.embedding_model
        self.dimensions = self.settings.embedding_dimensions
        self.max_chars = self.settings.embedding_max_chars
        self._client = client or AsyncOpenAI(api_key=self.settings.openai_api_key or None)

    async def generate(self, text: str) -> EmbeddingResult:
        """Embed a single text; failures are returned, not raised."""
        cleaned = clean_text(text, self.max_chars)
        if not cleaned:
            return EmbeddingResult(success=False, error="Empty text")

        try:
            response = await self._client.embeddings.create(
                model=self.model,
                input=cleaned,
                dimensions=self.dimensions,
            )
        except OpenAIError as e:
            logger.error(f"Embedding generation failed: {e}")
            return EmbeddingResult(success=False, error=str(e))

        tokens_used = response.usage.total_tokens if response.usage else 0
        cost = tokens_used / 1_000_000 * self.settings.embedding_cost_per_million
        logger.info(f"Embedding generated: {tokens_used} tokens, ${cost:.6f}")

        return EmbeddingResult(
            success=True,
            embedding=list(response.data[0].embedding),
            tokens_used=tokens_used,
            cost=cost,
        )

    async def generate_batch(self, texts: List[str], delay_ms: Optional[int] = None) -> List[EmbeddingResult]:
        """
        Embed texts one at a time, sleeping between calls.

        The pause respects the provider's rate limit; it is skipped after
        the last text.
        """
        delay = (self.settings.embedding_delay_ms if delay_ms is None else delay_ms) / 1000
        results = []
        for i, text in enumerate(texts):
            logger.debug(f"Embedding {i + 1}/{len(texts)}")
            results.append(await self.generate(text))
            if i < len(texts) - 1 and delay > 0:
                await asyncio.sleep(delay)
        return results
