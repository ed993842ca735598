"""Bounded-concurrency fan-out of one prompt to many provider/model targets"""

import asyncio
import time
from collections.abc import Mapping
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional
import logging

from ..errors import InvalidInput, RequestTimeout
from .results import (RunRequest, RunResult, RunReport, RunSummary, SendResult,
                      Target, TokenUsage, summarize)

SendRequest = Callable[[Target, str], Awaitable[Any]]
ProgressCallback = Callable[[RunSummary], None]

DEFAULT_REQUEST_TIMEOUT = 30.0
CANCELLED_ERROR = "cancelled"


class BoundedFanoutRunner:
    """
    Sends a prompt to every target of a RunRequest, never with more than
    concurrency_limit requests in flight.

    Targets are split into sequential batches of concurrency_limit. All requests of
    a batch run concurrently and the next batch starts only once the whole batch has
    settled. A failing or timed out target is recorded as an error result and never
    affects the other targets.
    """

    def __init__(self, send_request: SendRequest, request_timeout: float = DEFAULT_REQUEST_TIMEOUT):
        """
        Initialize the runner

        Args:
            send_request: Coroutine function (target, prompt) returning a SendResult or a
                dict with response/tokens/cost keys, raising on failure
            request_timeout: Per-request timeout in seconds
        """
        if request_timeout <= 0:
            raise InvalidInput("request_timeout must be positive")

        self.send_request = send_request
        self.request_timeout = request_timeout
        self.logger = logging.getLogger(__name__)

    def validate(self, request: RunRequest) -> int:
        """
        Check a request before anything is sent

        Returns:
            Effective concurrency limit, clamped to the number of targets
        """
        if not isinstance(request.prompt, str) or not request.prompt.strip():
            raise InvalidInput("prompt must be a non-empty string")

        if not request.targets:
            raise InvalidInput("at least one target is required")

        seen = set()
        for target in request.targets:
            if target.key in seen:
                raise InvalidInput(f"duplicate target {target.provider_id}/{target.model_id}")
            seen.add(target.key)

        limit = request.concurrency_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidInput(f"concurrency_limit must be a positive integer, got {limit!r}")

        return min(limit, len(request.targets))

    def stream(self, request: RunRequest,
               on_progress: Optional[ProgressCallback] = None,
               cancel_event: Optional[asyncio.Event] = None) -> AsyncIterator[RunResult]:
        """
        Yield one result per target in target order, batch by batch

        Raises InvalidInput immediately, before any request is issued.
        """
        limit = self.validate(request)
        return self._stream(request, limit, on_progress, cancel_event, {})

    async def run(self, request: RunRequest,
                  on_progress: Optional[ProgressCallback] = None,
                  cancel_event: Optional[asyncio.Event] = None) -> RunReport:
        """
        Run the request to completion

        Args:
            request: Prompt, targets and concurrency limit
            on_progress: Called with a RunSummary snapshot after each batch
            cancel_event: When set, no further batch is started. The batch in flight
                drains and the remaining targets are reported as cancelled.

        Returns:
            RunReport with results in target order and the final summary
        """
        limit = self.validate(request)
        run_state = {"cancelled": False}
        results = [result async for result in
                   self._stream(request, limit, on_progress, cancel_event, run_state)]
        summary = summarize(results, total=len(request.targets))
        cancelled = run_state["cancelled"]

        self.logger.info(
            f"Run finished: {summary.succeeded}/{summary.total} succeeded, "
            f"{summary.total_tokens} tokens, ${summary.total_cost:.4f}"
        )
        return RunReport(results=results, summary=summary, cancelled=cancelled)

    async def _stream(self, request: RunRequest, limit: int,
                      on_progress: Optional[ProgressCallback],
                      cancel_event: Optional[asyncio.Event],
                      run_state: Dict) -> AsyncIterator[RunResult]:
        targets = request.targets
        total = len(targets)
        settled: List[RunResult] = []

        self.logger.info(f"Starting fan-out to {total} targets, {limit} at a time")

        for batch_num, batch_start in enumerate(range(0, total, limit)):
            if cancel_event is not None and cancel_event.is_set():
                remaining = targets[batch_start:]
                self.logger.warning(f"Run cancelled, skipping {len(remaining)} targets")
                run_state["cancelled"] = True
                for target in remaining:
                    result = RunResult.failure(target, CANCELLED_ERROR)
                    settled.append(result)
                    yield result
                break

            batch = targets[batch_start:batch_start + limit]
            self.logger.debug(f"Batch {batch_num + 1}: targets {batch_start + 1}-{batch_start + len(batch)} of {total}")

            outcomes = await asyncio.gather(
                *(self._execute_single_target(target, request.prompt) for target in batch),
                return_exceptions=True
            )

            batch_results = []
            for target, outcome in zip(batch, outcomes):
                if isinstance(outcome, RunResult):
                    batch_results.append(outcome)
                else:
                    # Anything escaping _execute_single_target still becomes a result
                    batch_results.append(RunResult.failure(target, str(outcome) or outcome.__class__.__name__))

            settled.extend(batch_results)

            if on_progress:
                on_progress(summarize(settled, total=total))

            for result in batch_results:
                yield result

    async def _execute_single_target(self, target: Target, prompt: str) -> RunResult:
        """Send to one target and capture the outcome, whatever it is"""
        start_time = time.time()

        try:
            try:
                payload = await asyncio.wait_for(self.send_request(target, prompt), timeout=self.request_timeout)
            except asyncio.TimeoutError as e:
                raise RequestTimeout() from e

            latency_ms = (time.time() - start_time) * 1000
            result = self._build_success(target, payload, latency_ms)

            self.logger.debug(f"{target.label} answered in {latency_ms:.0f}ms")
            return result

        except RequestTimeout as e:
            latency_ms = (time.time() - start_time) * 1000
            self.logger.error(f"{target.label} timed out after {self.request_timeout}s")
            return RunResult.failure(target, str(e), latency_ms)

        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000
            error = str(e) or e.__class__.__name__
            self.logger.error(f"{target.label} failed: {error}")
            return RunResult.failure(target, error, latency_ms)

    def _build_success(self, target: Target, payload: Any, latency_ms: float) -> RunResult:
        """Normalize whatever send_request returned into a success result"""
        if isinstance(payload, SendResult):
            response, tokens, cost = payload.response, payload.tokens, payload.cost
        elif isinstance(payload, Mapping):
            response = payload.get("response")
            tokens = payload.get("tokens")
            cost = payload.get("cost")
        else:
            raise TypeError(f"unexpected response type {type(payload).__name__}")

        if response is None:
            raise ValueError("response body missing")

        if tokens is None:
            tokens = TokenUsage()
        elif isinstance(tokens, Mapping):
            tokens = TokenUsage.from_counts(
                int(tokens.get("input", 0)),
                int(tokens.get("output", 0)),
                tokens.get("total")
            )

        if cost is None:
            cost = target.estimate_cost(tokens.input, tokens.output)

        return RunResult.success(target, str(response), latency_ms, tokens, float(cost))
