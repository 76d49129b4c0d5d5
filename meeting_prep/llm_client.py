"""
LLM client for plan generation against an OpenAI-compatible endpoint
(GitHub Models by default).
"""

from typing import Dict, Iterator, List, Optional

from openai import OpenAI, OpenAIError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)
from loguru import logger

from meeting_prep.config import LLMConfig, get_config
from meeting_prep.errors import PlanGenerationError
from meeting_prep.prompts import PLAN_SYSTEM_PROMPT, build_plan_user_message


class LLMClient:
    """Client for the plan-generation model endpoint."""

    def __init__(self, config: Optional[LLMConfig] = None, client: Optional[OpenAI] = None):
        """Initialize the LLM client."""
        self.config = config or get_config().llm
        self.client = client or OpenAI(
            api_key=self.config.api_key or "missing",
            base_url=self.config.api_base,
            timeout=self.config.timeout,
            max_retries=0,
        )
        logger.info(f"Initialized LLM client with model: {self.config.model}")

    def build_messages(self, transcript: str, subject: Optional[str] = None) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": PLAN_SYSTEM_PROMPT},
            {"role": "user", "content": build_plan_user_message(transcript, subject)},
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((OpenAIError,)),
        reraise=True,
    )
    def _list_models_call(self):
        return self.client.models.list()

    def list_models(self) -> List[str]:
        """Model ids available on the endpoint."""
        try:
            page = self._list_models_call()
        except OpenAIError as e:
            logger.error(f"Model listing failed: {str(e)}")
            raise PlanGenerationError("Failed to fetch models", str(e)) from e
        ids = [m.id for m in getattr(page, "data", page) if getattr(m, "id", None)]
        logger.debug(f"Endpoint lists {len(ids)} models")
        return ids

    def stream_plan(
        self,
        transcript: str,
        subject: Optional[str] = None,
        model: Optional[str] = None,
    ) -> Iterator[str]:
        """
        Stream the plan as text deltas.

        Streaming calls are not retried: a partial answer may already have
        reached the client.

        Raises:
            PlanGenerationError: the request or the stream failed
        """
        selected = model or self.config.model
        logger.info(f"Plan request: model={selected}, subject={subject!r}, transcriptLen={len(transcript)}")

        total = 0
        try:
            stream = self.client.chat.completions.create(
                model=selected,
                messages=self.build_messages(transcript, subject),
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                stream=True,
            )
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    total += len(delta)
                    yield delta
        except OpenAIError as e:
            logger.error(f"Plan generation failed: {str(e)}")
            raise PlanGenerationError("Failed to generate plan", str(e)) from e

        logger.info(f"Plan done: {total} chars")


# Global client instance
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get the global LLM client instance."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient(get_config().llm)
    return _llm_client


def reset_llm_client():
    """Reset the global LLM client instance."""
    global _llm_client
    _llm_client = None
