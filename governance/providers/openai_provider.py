"""OpenAI provider using openai SDK with native async."""

import asyncio
import logging
import os
import time

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from governance.models import ModelReply
from governance.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    """OpenAI chat-completions provider. Also serves OpenAI-compatible APIs."""

    label = "OpenAI"

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env}")
        if config.base_url:
            self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)
        else:
            self._client = AsyncOpenAI(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, prompt: str, system: str = "", timeout_sec: float | None = None) -> ModelReply:
        timeout = timeout_sec or self._config.timeout_sec
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._config.model,
                    messages=messages,
                    max_tokens=self._config.max_tokens,
                ),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {timeout}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise ProviderError(self._config.name, "Empty response content")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.total_tokens

        logger.info("%s %s: %.2fs, %s tokens", self.label, self._config.model, latency, token_count)

        return ModelReply(
            provider=self._config.name,
            model=self._config.model,
            content=choice.message.content,
            latency_sec=latency,
            token_count=token_count,
        )
