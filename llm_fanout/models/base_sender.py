"""Base abstract class for provider request senders"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

import aiohttp

from ..errors import ProviderError
from ..runners.rate_limiter import RateLimiter
from ..runners.results import SendResult, Target


class BaseRequestSender(ABC):
    """Sends one prompt to one provider's HTTP API and parses the reply"""

    provider_name = "Unknown"
    default_base_url = ""
    chat_path = "/chat/completions"

    def __init__(self, provider_id: str, api_key: Optional[str], base_url: Optional[str] = None,
                 timeout: float = 60, rate_limiter: Optional[RateLimiter] = None,
                 max_tokens: int = 1024, temperature: float = 0.7):
        """
        Initialize sender

        Args:
            provider_id: Provider identifier targets refer to
            api_key: API key for authentication
            base_url: API base URL (defaults to the provider's public endpoint)
            timeout: HTTP timeout in seconds
            rate_limiter: Optional shared limiter, acquired before every request
            max_tokens: Completion token cap sent with each request
            temperature: Sampling temperature sent with each request
        """
        self.provider_id = provider_id
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self.rate_limiter = rate_limiter
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.request_count = 0
        self.logger = logging.getLogger(__name__)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{self.chat_path}"

    @abstractmethod
    def build_headers(self) -> Dict:
        """Request headers including authentication"""

    @abstractmethod
    def build_payload(self, target: Target, prompt: str) -> Dict:
        """JSON request body for a single-turn prompt"""

    @abstractmethod
    def parse_response(self, data: Dict) -> SendResult:
        """Extract response text and token usage from the decoded JSON body"""

    async def send(self, target: Target, prompt: str) -> SendResult:
        """
        Send prompt to target's model

        Raises:
            ProviderError: missing key, non-200 status or malformed body
        """
        if not self.api_key:
            raise ProviderError(f"{self.provider_name} API key not configured", self.provider_id)

        if self.rate_limiter:
            await self.rate_limiter.acquire(self.provider_id)

        self.request_count += 1
        payload = self.build_payload(target, prompt)

        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.post(self.endpoint, headers=self.build_headers(), json=payload) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise ProviderError(f"HTTP {response.status}: {error_text}", self.provider_id,
                                        status=response.status)
                data = await response.json()

        try:
            return self.parse_response(data)
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"Malformed {self.provider_name} response: {e!r}", self.provider_id,
                                details=data) from e

    async def __call__(self, target: Target, prompt: str) -> SendResult:
        return await self.send(target, prompt)

    def get_provider_info(self) -> Dict:
        """Describe this sender for provider listings"""
        return {
            "provider": self.provider_name,
            "provider_id": self.provider_id,
            "api_base": self.base_url,
            "timeout": self.timeout,
            "request_count": self.request_count
        }
