#!/usr/bin/env python3
"""
Send one prompt to several models and report latency, tokens and cost

Usage:
    python llm_fanout/scripts/run_fanout.py --prompt "Explain CRDTs" \
        --target openai/gpt-4o --target anthropic/claude-3-5-sonnet-20241022 --target deepseek/deepseek-chat
    python llm_fanout/scripts/run_fanout.py --prompt-file prompt.txt --targets-file targets.json --concurrency 5
    python llm_fanout/scripts/run_fanout.py --list-providers
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file (override existing env vars)
load_dotenv(override=True)

# Add repository root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from llm_fanout.config import ProviderConfigs, RunSettings, parse_target, load_targets
from llm_fanout.errors import InvalidInput
from llm_fanout.runners import BoundedFanoutRunner, RateLimiter, RunRequest, RunSummary
from llm_fanout.storage import ResultStore


def setup_logging(level: str = "INFO", log_file: str = None):
    """Setup logging configuration"""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        handlers=handlers
    )


def progress_callback(summary: RunSummary):
    """Print one line per finished batch"""
    percent = (summary.completed / max(1, summary.total)) * 100
    status = "COMPLETE" if summary.is_complete else "PROGRESS"
    print(f"[{status}] {summary.completed}/{summary.total} targets settled ({percent:.1f}%), "
          f"{summary.succeeded} ok, {summary.failed} failed")


def list_providers():
    print("Available providers:")
    for provider_id in ProviderConfigs.get_available_providers():
        api_key = ProviderConfigs.get_api_key(provider_id)
        info = ProviderConfigs.create_sender(provider_id, api_key).get_provider_info()
        status = "✓" if api_key else "✗ (no API key)"
        print(f"  {provider_id} ({info['provider']}) {status}")
        print(f"      {info['api_base']}, timeout {info['timeout']}s")


async def main():
    parser = argparse.ArgumentParser(description="Fan a prompt out to multiple LLM providers")

    # Prompt
    parser.add_argument("--prompt", help="Prompt text")
    parser.add_argument("--prompt-file", help="Read the prompt from a file")

    # Targets
    parser.add_argument("--target", action="append", default=[], help="provider/model, repeatable")
    parser.add_argument("--targets-file", help="JSON list of targets with optional cost rates")
    parser.add_argument("--list-providers", action="store_true", help="List providers and exit")

    # Execution options
    parser.add_argument("--concurrency", type=int, help="Max requests in flight")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")

    # Output
    parser.add_argument("--output-dir", help="Output directory")
    parser.add_argument("--no-save", action="store_true", help="Do not write result files")

    # Logging
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    parser.add_argument("--log-file", help="Log file path")

    args = parser.parse_args()

    settings = RunSettings.from_env()
    if args.concurrency is not None:
        settings.concurrency_limit = args.concurrency
    if args.timeout is not None:
        settings.request_timeout = args.timeout
    if args.output_dir:
        settings.output_dir = args.output_dir
    if args.no_save:
        settings.save_results = False
    if args.log_level:
        settings.log_level = args.log_level
    if args.log_file:
        settings.log_file = args.log_file

    setup_logging(settings.log_level, settings.log_file)
    logger = logging.getLogger(__name__)

    if args.list_providers:
        list_providers()
        return 0

    warnings = settings.validate()
    if warnings:
        logger.warning("Settings validation warnings:")
        for warning in warnings:
            logger.warning(f"  {warning}")

    try:
        if args.prompt_file:
            prompt = Path(args.prompt_file).read_text()
        else:
            prompt = args.prompt or ""

        targets = [parse_target(spec) for spec in args.target]
        if args.targets_file:
            targets.extend(load_targets(args.targets_file))

        providers = sorted({t.provider_id for t in targets})
        rate_limiter = RateLimiter()
        dispatcher = ProviderConfigs.create_dispatcher(providers, rate_limiter=rate_limiter,
                                                       timeout=settings.request_timeout)
        if targets and not dispatcher.providers:
            logger.error("No providers could be initialized. Check API keys.")
            return 1

        runner = BoundedFanoutRunner(dispatcher, request_timeout=settings.request_timeout)
        request = RunRequest(prompt=prompt, targets=tuple(targets), concurrency_limit=settings.concurrency_limit)

        report = await runner.run(request, on_progress=progress_callback)

    except InvalidInput as e:
        logger.error(f"Invalid input: {e}")
        return 1
    except OSError as e:
        logger.error(f"Could not read input file: {e}")
        return 1

    print("\nRun Summary:")
    for result in report.results:
        if result.succeeded:
            print(f"  ✓ {result.target.label}: {result.latency_ms:.0f}ms, "
                  f"{result.tokens.total} tokens, ${result.cost:.4f}")
        else:
            print(f"  ✗ {result.target.label}: {result.error}")

    summary = report.summary
    print(f"\nSucceeded: {summary.succeeded}/{summary.total} ({summary.success_rate:.1f}%)")
    print(f"Total tokens: {summary.total_tokens}")
    print(f"Total cost: ${summary.total_cost:.4f}")
    print(f"Average latency: {summary.avg_latency_ms:.0f}ms")

    if settings.save_results:
        store = ResultStore(settings.output_dir)
        print("\nOutput files:")
        for file_type, path in store.save_all(report, prompt).items():
            print(f"  {file_type}: {path}")

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
