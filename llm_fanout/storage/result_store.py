"""Storage of fan-out run results"""

import json
import time
from pathlib import Path
from typing import Dict, List
import logging

import pandas as pd

from ..runners.results import RunReport, RunResult

CSV_COLUMNS = [
    "provider_id", "model_id", "display_name", "status", "latency_ms",
    "input_tokens", "output_tokens", "total_tokens", "cost", "response", "error"
]


class ResultStore:
    """Writes a run's results and summary to a per-run directory"""

    def __init__(self, output_dir: str, session_id: str = None):
        """
        Initialize the result store

        Args:
            output_dir: Base directory for run output
            session_id: Run identifier, used as the subdirectory name
        """
        self.base_output_dir = Path(output_dir)
        self.session_id = session_id or f"run_{int(time.time())}"
        self.output_dir = self.base_output_dir / self.session_id
        self.logger = logging.getLogger(__name__)

    def _ensure_dir(self) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    @staticmethod
    def flatten_result(result: RunResult) -> Dict:
        """One flat row per target, suitable for CSV"""
        tokens = result.tokens
        return {
            "provider_id": result.target.provider_id,
            "model_id": result.target.model_id,
            "display_name": result.target.label,
            "status": result.status.value,
            "latency_ms": result.latency_ms,
            "input_tokens": tokens.input if tokens else None,
            "output_tokens": tokens.output if tokens else None,
            "total_tokens": tokens.total if tokens else None,
            "cost": result.cost,
            "response": result.response,
            "error": result.error
        }

    def save_jsonl(self, report: RunReport, filename: str = "results.jsonl") -> Path:
        output_path = self._ensure_dir() / filename
        with open(output_path, 'w') as f:
            for result in report.results:
                f.write(json.dumps(result.to_dict()) + "\n")
        return output_path

    def save_csv(self, report: RunReport, filename: str = "results.csv") -> Path:
        output_path = self._ensure_dir() / filename
        df = pd.DataFrame([self.flatten_result(r) for r in report.results], columns=CSV_COLUMNS)
        df.to_csv(output_path, index=False)
        return output_path

    def save_summary(self, report: RunReport, prompt: str, filename: str = "summary.json") -> Path:
        output_path = self._ensure_dir() / filename
        summary = {
            "session_id": self.session_id,
            "timestamp": time.time(),
            "prompt": prompt,
            "cancelled": report.cancelled,
            "summary": report.summary.to_dict(),
            "targets": [r.target.label for r in report.results]
        }
        with open(output_path, 'w') as f:
            json.dump(summary, f, indent=2)
        return output_path

    @staticmethod
    def render_markdown(report: RunReport, prompt: str) -> str:
        """Human readable report with one section per target"""
        lines: List[str] = [
            "# Batch Test Results",
            "",
            f"**Prompt:** {prompt}",
            "",
            f"**Models Tested:** {report.summary.total}",
            "",
            "## Results",
            ""
        ]

        for r in report.results:
            status = "✅ Success" if r.succeeded else "❌ Error"
            latency = f"{r.latency_ms:.0f}ms" if r.latency_ms is not None else "-"
            tokens = r.tokens.total if r.tokens else 0
            cost = r.cost or 0.0

            lines.extend([
                f"### {r.target.label} ({r.target.provider_id}/{r.target.model_id})",
                "",
                f"**Status:** {status}",
                f"**Latency:** {latency}",
                f"**Tokens:** {tokens}",
                f"**Cost:** ${cost:.4f}",
                "",
                f"**Response:**\n\n{r.response}" if r.succeeded else f"**Error:** {r.error}",
                "",
                "---",
                ""
            ])

        return "\n".join(lines)

    def save_markdown(self, report: RunReport, prompt: str, filename: str = "results.md") -> Path:
        output_path = self._ensure_dir() / filename
        with open(output_path, 'w') as f:
            f.write(self.render_markdown(report, prompt))
        return output_path

    def save_all(self, report: RunReport, prompt: str) -> Dict[str, Path]:
        """Write every format and return file type -> path"""
        output_files = {
            "jsonl": self.save_jsonl(report),
            "csv": self.save_csv(report),
            "markdown": self.save_markdown(report, prompt),
            "summary": self.save_summary(report, prompt)
        }
        self.logger.info(f"Saved run {self.session_id} to {self.output_dir}")
        return output_files
