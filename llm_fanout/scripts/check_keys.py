#!/usr/bin/env python3
"""
Validate the API keys configured in the environment for every provider

Usage:
    python llm_fanout/scripts/check_keys.py
    python llm_fanout/scripts/check_keys.py --format-only
"""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(override=True)

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from llm_fanout.config import ProviderConfigs
from llm_fanout.validators import KeyStatus, KeyValidationResult, KeyValidator

STATUS_MARKS = {
    KeyStatus.VALID: "✓",
    KeyStatus.MISSING: "-",
    KeyStatus.INVALID_FORMAT: "✗",
    KeyStatus.INVALID: "✗",
    KeyStatus.ERROR: "!"
}


def print_result(result):
    config = ProviderConfigs.get_provider_config(result.provider_id)
    latency = f" ({result.latency_ms:.0f}ms)" if result.latency_ms is not None else ""
    print(f"  {STATUS_MARKS[result.status]} {config.name:<12} {result.status.value:<15} {result.message}{latency}")


async def main():
    parser = argparse.ArgumentParser(description="Validate provider API keys")
    parser.add_argument("--format-only", action="store_true", help="Only check key formats, no network calls")
    parser.add_argument("--timeout", type=float, default=15.0, help="Per-check timeout in seconds")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    validator = KeyValidator(timeout=args.timeout)
    keys = {pid: ProviderConfigs.get_api_key(pid) for pid in validator.configs}

    print("API Key Status:")
    if args.format_only:
        results = []
        for provider_id, key in keys.items():
            result = validator.check_format(provider_id, key) or KeyValidationResult(
                provider_id, KeyStatus.VALID, "Key format looks valid (not verified)")
            results.append(result)
            print_result(result)
    else:
        results = await validator.validate_all(keys, on_result=print_result)

    counts = KeyValidator.summarize(results)
    print(f"\n{counts['valid']} valid, {counts['invalid'] + counts['invalid_format'] + counts['error']} failed, "
          f"{counts['missing']} not configured")

    missing_required = [
        r.provider_id for r in results
        if r.status is KeyStatus.MISSING and ProviderConfigs.get_provider_config(r.provider_id).required
    ]
    if missing_required:
        print(f"Warning: required providers not configured: {', '.join(missing_required)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
