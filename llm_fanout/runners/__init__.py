"""Runner components for fanning a prompt out to many models"""

from .fanout_runner import BoundedFanoutRunner
from .rate_limiter import RateLimiter
from .results import (Target, RunRequest, RunResult, RunReport, RunStatus,
                      RunSummary, SendResult, TokenUsage, summarize)

__all__ = [
    'BoundedFanoutRunner',
    'RateLimiter',
    'Target',
    'RunRequest',
    'RunResult',
    'RunReport',
    'RunStatus',
    'RunSummary',
    'SendResult',
    'TokenUsage',
    'summarize'
]
