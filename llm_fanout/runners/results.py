"""Result types produced by a fan-out run"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, List, Optional, Tuple, Sequence


@dataclass(frozen=True)
class Target:
    """One provider/model pair the prompt is sent to"""
    provider_id: str
    model_id: str
    display_name: str = ""
    input_cost_per_1m: float = 0.0
    output_cost_per_1m: float = 0.0

    @property
    def key(self) -> Tuple[str, str]:
        return (self.provider_id, self.model_id)

    @property
    def label(self) -> str:
        return self.display_name or f"{self.provider_id}/{self.model_id}"

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Price a request from per-million-token rates"""
        return (
            (input_tokens / 1_000_000) * self.input_cost_per_1m
            + (output_tokens / 1_000_000) * self.output_cost_per_1m
        )


@dataclass(frozen=True)
class RunRequest:
    """Prompt, targets and concurrency cap for one run"""
    prompt: str
    targets: Tuple[Target, ...]
    concurrency_limit: int = 3

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple
        if not isinstance(self.targets, tuple):
            object.__setattr__(self, "targets", tuple(self.targets))


@dataclass(frozen=True)
class TokenUsage:
    input: int = 0
    output: int = 0
    total: int = 0

    @classmethod
    def from_counts(cls, input_tokens: int, output_tokens: int, total_tokens: Optional[int] = None) -> 'TokenUsage':
        if total_tokens is None:
            total_tokens = input_tokens + output_tokens
        return cls(input=input_tokens, output=output_tokens, total=total_tokens)


@dataclass(frozen=True)
class SendResult:
    """What a provider sender hands back for one successful call"""
    response: str
    tokens: TokenUsage = field(default_factory=TokenUsage)
    cost: Optional[float] = None  # None means price it from the target's rates


class RunStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RunResult:
    """Outcome of a single target. Exactly one of response/error is set."""
    target: Target
    status: RunStatus
    response: Optional[str] = None
    latency_ms: Optional[float] = None
    tokens: Optional[TokenUsage] = None
    cost: Optional[float] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is RunStatus.SUCCESS

    @classmethod
    def success(cls, target: Target, response: str, latency_ms: float,
                tokens: TokenUsage, cost: float) -> 'RunResult':
        return cls(target=target, status=RunStatus.SUCCESS, response=response,
                   latency_ms=latency_ms, tokens=tokens, cost=cost)

    @classmethod
    def failure(cls, target: Target, error: str, latency_ms: Optional[float] = None) -> 'RunResult':
        return cls(target=target, status=RunStatus.ERROR, error=error, latency_ms=latency_ms)

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class RunSummary:
    """Aggregate over the results settled so far"""
    total: int
    succeeded: int = 0
    failed: int = 0
    total_cost: float = 0.0
    total_tokens: int = 0
    avg_latency_ms: float = 0.0

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed

    @property
    def pending(self) -> int:
        return self.total - self.completed

    @property
    def is_complete(self) -> bool:
        return self.completed == self.total

    @property
    def success_rate(self) -> float:
        return (self.succeeded / max(1, self.completed)) * 100

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["success_rate"] = self.success_rate
        return data


def summarize(results: Sequence[RunResult], total: Optional[int] = None) -> RunSummary:
    """
    Build a summary from a result set

    Args:
        results: Results settled so far
        total: Number of targets in the run (defaults to len(results))

    Returns:
        RunSummary. Average latency only counts successful results.
    """
    if total is None:
        total = len(results)

    succeeded = [r for r in results if r.succeeded]
    latencies = [r.latency_ms for r in succeeded if r.latency_ms is not None]

    return RunSummary(
        total=total,
        succeeded=len(succeeded),
        failed=len(results) - len(succeeded),
        total_cost=sum(r.cost or 0.0 for r in succeeded),
        total_tokens=sum(r.tokens.total for r in succeeded if r.tokens),
        avg_latency_ms=sum(latencies) / len(latencies) if latencies else 0.0,
    )


@dataclass(frozen=True)
class RunReport:
    """Final ordered results of a run together with their summary"""
    results: List[RunResult] = field(default_factory=list)
    summary: RunSummary = field(default_factory=lambda: RunSummary(total=0))
    cancelled: bool = False
