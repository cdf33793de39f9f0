from dataclasses import dataclass
import logging
from typing import Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from supportwise.config import Settings
from supportwise.exceptions import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SamplingConfig:
    max_tokens: int = 200
    temperature: float = 0.8
    top_p: float = 0.9


class CompletionService:
    """
    Chat completion client for an OpenAI-compatible endpoint (Groq by default).

    complete() fails loudly: API errors and empty replies raise UpstreamError
    so callers can fall back instead of showing a blank answer.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: Optional[str] = None,
        timeout: float = 20.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key or ""
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client
        if not self.api_key and client is None:
            logger.warning("CompletionService created without an API key; completions are disabled.")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionService":
        return cls(
            api_key=settings.completion_api_key,
            model=settings.completion_model,
            base_url=settings.completion_base_url,
            timeout=settings.completion_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise UpstreamError("Completion service is not configured")
            self._client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def complete(
        self,
        system_prompt: str,
        prior_turns: Sequence[Dict[str, str]] = (),
        sampling: Optional[SamplingConfig] = None,
    ) -> str:
        sampling = sampling or SamplingConfig()
        messages: List[Dict[str, str]] = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": t["role"], "content": t["content"]} for t in prior_turns)

        logger.info(
            f"Sending completion request (model={self.model}, messages={len(messages)}, "
            f"max_tokens={sampling.max_tokens}, temperature={sampling.temperature}, top_p={sampling.top_p})"
        )
        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=sampling.max_tokens,
                temperature=sampling.temperature,
                top_p=sampling.top_p,
                stream=False,
            )
        except OpenAIError as e:
            logger.error(f"Completion API error: {e}")
            raise UpstreamError("Completion service failed", details=str(e)) from e

        content = ""
        if response.choices:
            content = (response.choices[0].message.content or "").strip()
        if not content:
            raise UpstreamError("Completion service returned an empty reply")
        return content
