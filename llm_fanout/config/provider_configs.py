"""Provider configuration management"""

import os
import re
from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


@dataclass
class ProviderConfig:
    """Configuration for a single provider"""
    id: str
    name: str
    api_key_env: str
    base_url: str
    key_pattern: str
    test_endpoint: str
    required: bool = False
    category: str = "llm"
    rate_limit: int = 60
    window_seconds: float = 60.0
    timeout: int = 60
    enabled: bool = True

    def matches_key_format(self, api_key: str) -> bool:
        return re.fullmatch(self.key_pattern, api_key) is not None


class ProviderConfigs:
    """Manages configurations for all supported providers"""

    DEFAULT_CONFIGS = {
        "openrouter": ProviderConfig(
            id="openrouter",
            name="OpenRouter",
            api_key_env="OPENROUTER_API_KEY",
            base_url="https://openrouter.ai/api/v1",
            key_pattern=r"sk-or-v1-[a-zA-Z0-9]{64,}",
            test_endpoint="https://openrouter.ai/api/v1/models",
            required=True,
            rate_limit=60
        ),
        "deepseek": ProviderConfig(
            id="deepseek",
            name="DeepSeek",
            api_key_env="DEEPSEEK_API_KEY",
            base_url="https://api.deepseek.com/v1",
            key_pattern=r"sk-[a-zA-Z0-9]{32,}",
            test_endpoint="https://api.deepseek.com/v1/models",
            required=True,
            rate_limit=20
        ),
        "xai": ProviderConfig(
            id="xai",
            name="xAI Grok",
            api_key_env="XAI_API_KEY",
            base_url="https://api.x.ai/v1",
            key_pattern=r"xai-[a-zA-Z0-9]{32,}",
            test_endpoint="https://api.x.ai/v1/models",
            required=True,
            rate_limit=30
        ),
        "anthropic": ProviderConfig(
            id="anthropic",
            name="Anthropic",
            api_key_env="ANTHROPIC_API_KEY",
            base_url="https://api.anthropic.com/v1",
            key_pattern=r"sk-ant-[a-zA-Z0-9\-_]{32,}",
            test_endpoint="https://api.anthropic.com/v1/models",
            rate_limit=50
        ),
        "openai": ProviderConfig(
            id="openai",
            name="OpenAI",
            api_key_env="OPENAI_API_KEY",
            base_url="https://api.openai.com/v1",
            key_pattern=r"sk-(proj-)?[a-zA-Z0-9\-_]{32,}",
            test_endpoint="https://api.openai.com/v1/models",
            rate_limit=50
        ),
        "nvidia": ProviderConfig(
            id="nvidia",
            name="NVIDIA NIM",
            api_key_env="NVIDIA_NIM_API_KEY",
            base_url="https://integrate.api.nvidia.com/v1",
            key_pattern=r"nvapi-[a-zA-Z0-9\-_]{32,}",
            test_endpoint="https://integrate.api.nvidia.com/v1/models",
            rate_limit=40
        ),
        "perplexity": ProviderConfig(
            id="perplexity",
            name="Perplexity",
            api_key_env="PERPLEXITY_API_KEY",
            base_url="https://api.perplexity.ai",
            key_pattern=r"pplx-[a-zA-Z0-9]{32,}",
            test_endpoint="https://api.perplexity.ai/models",
            category="search",
            rate_limit=50
        ),
    }

    @classmethod
    def get_available_providers(cls) -> List[str]:
        return [pid for pid, config in cls.DEFAULT_CONFIGS.items() if config.enabled]

    @classmethod
    def get_provider_config(cls, provider_id: str) -> Optional[ProviderConfig]:
        return cls.DEFAULT_CONFIGS.get(provider_id)

    @classmethod
    def get_api_key(cls, provider_id: str) -> Optional[str]:
        config = cls.get_provider_config(provider_id)
        if config is None:
            return None
        return os.getenv(config.api_key_env) or None

    @classmethod
    def validate_api_keys(cls) -> Dict[str, bool]:
        """Report which provider key environment variables are set"""
        return {
            config.api_key_env: bool(os.getenv(config.api_key_env))
            for config in cls.DEFAULT_CONFIGS.values() if config.enabled
        }

    @classmethod
    def create_sender(cls, provider_id: str, api_key: Optional[str], rate_limiter=None, timeout=None):
        """Instantiate the sender class matching a provider id"""
        from ..models import (AnthropicSender, DeepSeekSender, NvidiaNIMSender, OpenAISender,
                              OpenRouterSender, PerplexitySender, XAISender)

        sender_classes = {
            "openrouter": OpenRouterSender,
            "deepseek": DeepSeekSender,
            "xai": XAISender,
            "anthropic": AnthropicSender,
            "openai": OpenAISender,
            "nvidia": NvidiaNIMSender,
            "perplexity": PerplexitySender,
        }

        config = cls.get_provider_config(provider_id)
        if config is None or provider_id not in sender_classes:
            raise KeyError(f"Unknown provider {provider_id}")

        return sender_classes[provider_id](
            provider_id,
            api_key,
            base_url=config.base_url,
            timeout=timeout or config.timeout,
            rate_limiter=rate_limiter
        )

    @classmethod
    def create_dispatcher(cls, providers: Optional[Iterable[str]] = None, rate_limiter=None, timeout=None):
        """
        Build a dispatcher with a sender for each provider that has an API key

        Args:
            providers: Provider ids to include (None for all enabled)
            rate_limiter: Optional RateLimiter; each provider's limit is registered on it
            timeout: HTTP timeout override in seconds

        Returns:
            ProviderDispatcher
        """
        from ..models import ProviderDispatcher

        dispatcher = ProviderDispatcher()
        provider_ids = list(providers) if providers is not None else cls.get_available_providers()

        for provider_id in provider_ids:
            config = cls.get_provider_config(provider_id)
            if config is None or not config.enabled:
                logger.warning(f"Unknown or disabled provider {provider_id}, skipping")
                continue

            api_key = cls.get_api_key(provider_id)
            if not api_key:
                logger.warning(f"Skipping {config.name}: {config.api_key_env} not set")
                continue

            if rate_limiter is not None:
                rate_limiter.register_provider(provider_id, config.rate_limit, config.window_seconds)

            dispatcher.register(provider_id, cls.create_sender(provider_id, api_key, rate_limiter, timeout))
            logger.info(f"Initialized sender for {config.name}")

        return dispatcher
