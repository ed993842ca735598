"""Anthropic Messages API sender"""

from typing import Dict

from ..runners.results import SendResult, Target, TokenUsage
from .base_sender import BaseRequestSender


class AnthropicSender(BaseRequestSender):
    """Anthropic Claude sender"""

    provider_name = "Anthropic"
    default_base_url = "https://api.anthropic.com/v1"
    chat_path = "/messages"
    api_version = "2023-06-01"

    def build_headers(self) -> Dict:
        return {
            "x-api-key": self.api_key,
            "Content-Type": "application/json",
            "anthropic-version": self.api_version
        }

    def build_payload(self, target: Target, prompt: str) -> Dict:
        return {
            "model": target.model_id,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}]
        }

    def parse_response(self, data: Dict) -> SendResult:
        blocks = data["content"]
        text = "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
        usage = data.get("usage") or {}
        tokens = TokenUsage.from_counts(usage.get("input_tokens", 0), usage.get("output_tokens", 0))
        return SendResult(response=text.strip(), tokens=tokens)
