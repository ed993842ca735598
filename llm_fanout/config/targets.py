"""Loading fan-out targets from the command line or a JSON file"""

import json
from pathlib import Path
from typing import List

from ..errors import InvalidInput
from ..runners.results import Target


def parse_target(spec: str) -> Target:
    """
    Parse "provider/model" into a Target

    The model part may itself contain slashes (e.g. "openrouter/meta-llama/llama-3.3-70b").
    """
    provider_id, sep, model_id = spec.strip().partition("/")
    if not sep or not provider_id or not model_id:
        raise InvalidInput(f"target must look like provider/model, got {spec!r}")
    return Target(provider_id=provider_id, model_id=model_id)


def target_from_dict(data: dict) -> Target:
    try:
        return Target(
            provider_id=data["provider_id"],
            model_id=data["model_id"],
            display_name=data.get("display_name", ""),
            input_cost_per_1m=float(data.get("input_cost_per_1m", 0.0)),
            output_cost_per_1m=float(data.get("output_cost_per_1m", 0.0))
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidInput(f"invalid target entry {data!r}: {e}") from e


def load_targets(path) -> List[Target]:
    """Load a JSON list of target objects"""
    path = Path(path)
    with open(path, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidInput(f"{path} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise InvalidInput(f"{path} must contain a JSON list of targets")

    return [target_from_dict(entry) for entry in data]
