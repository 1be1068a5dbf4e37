"""xAI Grok provider using openai SDK (OpenAI-compatible API)."""

from config.config_loader import ModelConfig
from governance.providers.base import ProviderError
from governance.providers.openai_provider import OpenAIProvider


class XAIProvider(OpenAIProvider):
    """xAI Grok provider via OpenAI-compatible API."""

    label = "xAI"

    def __init__(self, config: ModelConfig) -> None:
        if not config.base_url:
            raise ProviderError(config.name, "base_url is required for xAI provider")
        super().__init__(config)
