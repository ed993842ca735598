"""Senders for providers exposing the OpenAI chat-completions format"""

from typing import Dict, Optional

from ..runners.results import SendResult, Target, TokenUsage
from .base_sender import BaseRequestSender

# Reasoning models reject temperature and take max_completion_tokens
REASONING_PREFIXES = ("o1", "o3", "o4")


class OpenAICompatibleSender(BaseRequestSender):
    """Generic chat-completions sender; also used directly for custom gateways"""

    provider_name = "OpenAI-compatible"

    def __init__(self, provider_id: str, api_key: Optional[str], base_url: Optional[str] = None,
                 extra_headers: Optional[Dict[str, str]] = None, **kwargs):
        super().__init__(provider_id, api_key, base_url, **kwargs)
        self.extra_headers = dict(extra_headers or {})

    def build_headers(self) -> Dict:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        headers.update(self.extra_headers)
        return headers

    def build_payload(self, target: Target, prompt: str) -> Dict:
        return {
            "model": target.model_id,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": False
        }

    def parse_response(self, data: Dict) -> SendResult:
        content = data["choices"][0]["message"]["content"] or ""
        usage = data.get("usage") or {}
        tokens = TokenUsage.from_counts(
            usage.get("prompt_tokens", 0),
            usage.get("completion_tokens", 0),
            usage.get("total_tokens")
        )
        return SendResult(response=content.strip(), tokens=tokens)


class OpenAISender(OpenAICompatibleSender):
    provider_name = "OpenAI"
    default_base_url = "https://api.openai.com/v1"

    def build_payload(self, target: Target, prompt: str) -> Dict:
        payload = super().build_payload(target, prompt)
        model = target.model_id.split("/")[-1]
        if model.startswith(REASONING_PREFIXES):
            payload["max_completion_tokens"] = payload.pop("max_tokens")
            payload.pop("temperature")
        return payload


class OpenRouterSender(OpenAICompatibleSender):
    provider_name = "OpenRouter"
    default_base_url = "https://openrouter.ai/api/v1"

    def __init__(self, provider_id: str, api_key: Optional[str], base_url: Optional[str] = None,
                 referer: str = "http://localhost", title: str = "LLM Fanout Tester", **kwargs):
        extra_headers = {"HTTP-Referer": referer, "X-Title": title}
        extra_headers.update(kwargs.pop("extra_headers", None) or {})
        super().__init__(provider_id, api_key, base_url, extra_headers=extra_headers, **kwargs)


class DeepSeekSender(OpenAICompatibleSender):
    provider_name = "DeepSeek"
    default_base_url = "https://api.deepseek.com/v1"


class XAISender(OpenAICompatibleSender):
    provider_name = "xAI"
    default_base_url = "https://api.x.ai/v1"


class NvidiaNIMSender(OpenAICompatibleSender):
    provider_name = "NVIDIA NIM"
    default_base_url = "https://integrate.api.nvidia.com/v1"


class PerplexitySender(OpenAICompatibleSender):
    provider_name = "Perplexity"
    default_base_url = "https://api.perplexity.ai"
