"""Request senders for the supported LLM providers"""

from .base_sender import BaseRequestSender
from .openai_compatible import (OpenAICompatibleSender, OpenAISender, OpenRouterSender,
                                DeepSeekSender, XAISender, NvidiaNIMSender, PerplexitySender)
from .anthropic_sender import AnthropicSender
from .dispatcher import ProviderDispatcher

__all__ = [
    'BaseRequestSender',
    'OpenAICompatibleSender',
    'OpenAISender',
    'OpenRouterSender',
    'DeepSeekSender',
    'XAISender',
    'NvidiaNIMSender',
    'PerplexitySender',
    'AnthropicSender',
    'ProviderDispatcher'
]
