"""
LLM fan-out tester

This package sends a single prompt to several LLM providers/models with a bounded
number of requests in flight, isolates per-target failures and aggregates latency,
token and cost metrics for the whole run.
"""

__version__ = "1.0.0"
