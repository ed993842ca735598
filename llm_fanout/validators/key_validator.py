"""API key format and connectivity validation for all configured providers"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional
import logging

import aiohttp

from ..config.provider_configs import ProviderConfig, ProviderConfigs


class KeyStatus(str, Enum):
    MISSING = "missing"
    INVALID_FORMAT = "invalid_format"
    VALID = "valid"
    INVALID = "invalid"
    ERROR = "error"


@dataclass
class KeyValidationResult:
    provider_id: str
    status: KeyStatus
    message: str
    latency_ms: Optional[float] = None
    details: Dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is KeyStatus.VALID


class KeyValidator:
    """
    Checks provider API keys, first against the provider's key format and then with
    an authenticated request to its test endpoint.
    """

    def __init__(self, configs: Optional[Mapping[str, ProviderConfig]] = None,
                 max_concurrent: int = 10, timeout: float = 15.0):
        """
        Initialize the validator

        Args:
            configs: provider_id -> ProviderConfig (defaults to ProviderConfigs.DEFAULT_CONFIGS)
            max_concurrent: Max connectivity checks in flight
            timeout: HTTP timeout per check in seconds
        """
        self.configs = dict(configs if configs is not None else ProviderConfigs.DEFAULT_CONFIGS)
        self.max_concurrent = max_concurrent
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def check_format(self, provider_id: str, api_key: Optional[str]) -> Optional[KeyValidationResult]:
        """Return a failing result if the key is absent or malformed, None if it looks fine"""
        config = self.configs[provider_id]

        if not api_key:
            message = "Required" if config.required else "Not configured"
            return KeyValidationResult(provider_id, KeyStatus.MISSING, message)

        if not config.matches_key_format(api_key):
            return KeyValidationResult(
                provider_id, KeyStatus.INVALID_FORMAT, "Invalid key format",
                details={"expected_pattern": config.key_pattern}
            )

        return None

    def _auth_headers(self, provider_id: str, api_key: str) -> Dict[str, str]:
        if provider_id == "anthropic":
            return {"x-api-key": api_key, "anthropic-version": "2023-06-01"}
        return {"Authorization": f"Bearer {api_key}"}

    async def _fetch_status(self, url: str, headers: Dict[str, str]) -> int:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.get(url, headers=headers) as response:
                return response.status

    async def check_connectivity(self, provider_id: str, api_key: str) -> KeyValidationResult:
        """Call the provider's test endpoint with the key"""
        config = self.configs[provider_id]
        start_time = time.time()
        details = {"endpoint": config.test_endpoint}

        try:
            status = await self._fetch_status(config.test_endpoint, self._auth_headers(provider_id, api_key))
        except asyncio.TimeoutError:
            latency_ms = (time.time() - start_time) * 1000
            return KeyValidationResult(provider_id, KeyStatus.ERROR, "Connection timeout",
                                       latency_ms, details)
        except aiohttp.ClientError as e:
            latency_ms = (time.time() - start_time) * 1000
            details["error"] = str(e)
            return KeyValidationResult(provider_id, KeyStatus.ERROR, "Connection failed",
                                       latency_ms, details)

        latency_ms = (time.time() - start_time) * 1000
        details["http_status"] = status

        if status == 200:
            return KeyValidationResult(provider_id, KeyStatus.VALID, "API key verified", latency_ms, details)
        if status in (401, 403):
            return KeyValidationResult(provider_id, KeyStatus.INVALID, "API key rejected", latency_ms, details)
        return KeyValidationResult(provider_id, KeyStatus.ERROR, f"Unexpected HTTP {status}", latency_ms, details)

    async def validate_key(self, provider_id: str, api_key: Optional[str]) -> KeyValidationResult:
        failed = self.check_format(provider_id, api_key)
        if failed is not None:
            return failed
        return await self.check_connectivity(provider_id, api_key)

    async def validate_all(self, keys: Mapping[str, Optional[str]],
                           on_result: Optional[Callable[[KeyValidationResult], None]] = None) -> List[KeyValidationResult]:
        """
        Validate every configured provider concurrently

        Args:
            keys: provider_id -> API key (absent or empty means not configured)
            on_result: Called as each provider's check settles

        Returns:
            One result per configured provider, in configuration order
        """
        semaphore = asyncio.Semaphore(self.max_concurrent)
        provider_ids = list(self.configs)
        to_test = [pid for pid in provider_ids if keys.get(pid)]

        self.logger.info(f"Testing {len(to_test)} API keys in parallel")

        async def check(provider_id: str) -> KeyValidationResult:
            async with semaphore:
                try:
                    result = await self.validate_key(provider_id, keys.get(provider_id))
                except Exception as e:
                    self.logger.error(f"Key check for {provider_id} failed: {e}")
                    result = KeyValidationResult(provider_id, KeyStatus.ERROR, str(e) or "Validation failed")
            if on_result:
                on_result(result)
            return result

        checked = await asyncio.gather(*(check(pid) for pid in provider_ids))
        succeeded = sum(1 for r in checked if r.ok)
        failed = sum(1 for r in checked if keys.get(r.provider_id) and not r.ok)
        self.logger.info(f"Batch test complete: {succeeded} valid, {failed} failed out of {len(to_test)} keys")

        return list(checked)

    @staticmethod
    def summarize(results: List[KeyValidationResult]) -> Dict[str, int]:
        counts = {status.value: 0 for status in KeyStatus}
        for result in results:
            counts[result.status.value] += 1
        counts["total"] = len(results)
        return counts
