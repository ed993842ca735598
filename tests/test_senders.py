#!/usr/bin/env python3
"""
Test suite for provider senders and the provider dispatcher
"""

import json
import unittest
from unittest.mock import patch
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from llm_fanout.errors import ProviderError
from llm_fanout.models import (AnthropicSender, DeepSeekSender, OpenAISender, OpenRouterSender,
                               ProviderDispatcher)
from llm_fanout.runners import (BoundedFanoutRunner, RateLimiter, RunRequest, RunStatus,
                                SendResult, Target, TokenUsage)


class FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self.body = body

    async def json(self):
        return self.body

    async def text(self):
        return json.dumps(self.body)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Replaces aiohttp.ClientSession; records every POST"""

    response = None
    posts = []

    def __init__(self, *args, **kwargs):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def post(self, url, headers=None, json=None):
        FakeSession.posts.append({"url": url, "headers": headers, "json": json})
        return FakeSession.response


OPENAI_BODY = {
    "choices": [{"message": {"role": "assistant", "content": "  Hello there  "}}],
    "usage": {"prompt_tokens": 12, "completion_tokens": 8, "total_tokens": 20}
}

ANTHROPIC_BODY = {
    "content": [{"type": "text", "text": "Hi "}, {"type": "text", "text": "from Claude"}],
    "usage": {"input_tokens": 9, "output_tokens": 4}
}


class TestPayloads(unittest.TestCase):
    """Request bodies and response parsing, no network"""

    def test_openai_chat_payload(self):
        sender = OpenAISender("openai", "sk-test", max_tokens=256, temperature=0.2)
        payload = sender.build_payload(Target("openai", "gpt-4o"), "Say hi")

        self.assertEqual(payload["model"], "gpt-4o")
        self.assertEqual(payload["messages"], [{"role": "user", "content": "Say hi"}])
        self.assertEqual(payload["max_tokens"], 256)
        self.assertEqual(payload["temperature"], 0.2)
        self.assertEqual(sender.endpoint, "https://api.openai.com/v1/chat/completions")

    def test_openai_reasoning_model_payload(self):
        sender = OpenAISender("openai", "sk-test", max_tokens=256)
        payload = sender.build_payload(Target("openai", "o3-mini"), "Think")

        self.assertNotIn("temperature", payload)
        self.assertNotIn("max_tokens", payload)
        self.assertEqual(payload["max_completion_tokens"], 256)

    def test_openai_parse_response(self):
        result = OpenAISender("openai", "sk-test").parse_response(OPENAI_BODY)

        self.assertEqual(result.response, "Hello there")
        self.assertEqual(result.tokens, TokenUsage(input=12, output=8, total=20))
        self.assertIsNone(result.cost)

    def test_missing_usage_gives_zero_tokens(self):
        body = {"choices": [{"message": {"content": "ok"}}]}
        result = DeepSeekSender("deepseek", "sk-test").parse_response(body)
        self.assertEqual(result.tokens.total, 0)

    def test_openrouter_headers(self):
        sender = OpenRouterSender("openrouter", "sk-or-v1-key", title="Bench")
        headers = sender.build_headers()

        self.assertEqual(headers["Authorization"], "Bearer sk-or-v1-key")
        self.assertEqual(headers["X-Title"], "Bench")
        self.assertIn("HTTP-Referer", headers)

    def test_anthropic_headers_and_parse(self):
        sender = AnthropicSender("anthropic", "sk-ant-test")
        headers = sender.build_headers()
        result = sender.parse_response(ANTHROPIC_BODY)

        self.assertEqual(headers["x-api-key"], "sk-ant-test")
        self.assertEqual(headers["anthropic-version"], "2023-06-01")
        self.assertEqual(sender.endpoint, "https://api.anthropic.com/v1/messages")
        self.assertEqual(result.response, "Hi from Claude")
        self.assertEqual(result.tokens.total, 13)

    def test_base_url_override(self):
        sender = DeepSeekSender("deepseek", "sk-test", base_url="http://localhost:8080/v1/")
        self.assertEqual(sender.endpoint, "http://localhost:8080/v1/chat/completions")

    def test_provider_info(self):
        sender = AnthropicSender("anthropic", "sk-ant-test", timeout=45)
        info = sender.get_provider_info()

        self.assertEqual(info["provider"], "Anthropic")
        self.assertEqual(info["provider_id"], "anthropic")
        self.assertEqual(info["api_base"], "https://api.anthropic.com/v1")
        self.assertEqual(info["timeout"], 45)
        self.assertEqual(info["request_count"], 0)


class TestSend(unittest.IsolatedAsyncioTestCase):
    """HTTP round trip against a fake aiohttp session"""

    def setUp(self):
        FakeSession.posts = []
        patcher = patch("llm_fanout.models.base_sender.aiohttp.ClientSession", FakeSession)
        patcher.start()
        self.addCleanup(patcher.stop)

    async def test_successful_send(self):
        FakeSession.response = FakeResponse(200, OPENAI_BODY)
        sender = OpenAISender("openai", "sk-test")

        result = await sender.send(Target("openai", "gpt-4o"), "Say hi")

        self.assertEqual(result.response, "Hello there")
        self.assertEqual(FakeSession.posts[0]["url"], "https://api.openai.com/v1/chat/completions")
        self.assertEqual(FakeSession.posts[0]["headers"]["Authorization"], "Bearer sk-test")
        self.assertEqual(sender.request_count, 1)

    async def test_http_error_raises_provider_error(self):
        FakeSession.response = FakeResponse(401, {"error": "bad key"})
        sender = AnthropicSender("anthropic", "sk-ant-test")

        with self.assertRaises(ProviderError) as ctx:
            await sender.send(Target("anthropic", "claude-3-haiku-20240307"), "hi")

        self.assertEqual(ctx.exception.status, 401)
        self.assertIn("HTTP 401", str(ctx.exception))

    async def test_malformed_body_raises_provider_error(self):
        FakeSession.response = FakeResponse(200, {"choices": []})
        sender = OpenAISender("openai", "sk-test")

        with self.assertRaises(ProviderError):
            await sender.send(Target("openai", "gpt-4o"), "hi")

    async def test_missing_key_raises_without_request(self):
        sender = OpenAISender("openai", None)

        with self.assertRaises(ProviderError):
            await sender.send(Target("openai", "gpt-4o"), "hi")
        self.assertEqual(FakeSession.posts, [])

    async def test_rate_limiter_is_acquired(self):
        FakeSession.response = FakeResponse(200, OPENAI_BODY)
        limiter = RateLimiter()
        limiter.register_provider("openai", requests=100, window_seconds=60)
        sender = OpenAISender("openai", "sk-test", rate_limiter=limiter)

        await sender.send(Target("openai", "gpt-4o"), "hi")

        self.assertEqual(limiter.get_stats()["openai"]["requests_made"], 1)


class RecordingSender:
    def __init__(self, reply):
        self.reply = reply
        self.targets = []

    async def send(self, target, prompt):
        self.targets.append(target)
        return SendResult(response=self.reply, tokens=TokenUsage.from_counts(1, 1))


class TestDispatcher(unittest.IsolatedAsyncioTestCase):

    async def test_routes_by_provider(self):
        openai, anthropic = RecordingSender("from openai"), RecordingSender("from anthropic")
        dispatcher = ProviderDispatcher({"openai": openai})
        dispatcher.register("anthropic", anthropic)

        result = await dispatcher(Target("anthropic", "claude"), "hi")

        self.assertEqual(result.response, "from anthropic")
        self.assertEqual(openai.targets, [])
        self.assertEqual(dispatcher.providers, ["openai", "anthropic"])

    async def test_unknown_provider_raises(self):
        with self.assertRaises(ProviderError):
            await ProviderDispatcher()(Target("mystery", "m"), "hi")

    async def test_unknown_provider_is_isolated_in_a_run(self):
        dispatcher = ProviderDispatcher({"openai": RecordingSender("ok")})
        runner = BoundedFanoutRunner(dispatcher)
        targets = (Target("openai", "gpt-4o"), Target("mystery", "m"))

        report = await runner.run(RunRequest(prompt="hi", targets=targets, concurrency_limit=2))

        self.assertEqual([r.status for r in report.results], [RunStatus.SUCCESS, RunStatus.ERROR])
        self.assertIn("mystery", report.results[1].error)


if __name__ == '__main__':
    unittest.main()
