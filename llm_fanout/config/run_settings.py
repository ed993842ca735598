"""Run settings and configuration"""

import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class RunSettings:
    """Settings for a fan-out run"""

    # Execution settings
    concurrency_limit: int = 3
    request_timeout: float = 30.0

    # Output settings
    output_dir: str = "generated"
    save_results: bool = True

    # Logging settings
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'RunSettings':
        """Create settings from environment variables"""
        return cls(
            concurrency_limit=int(os.getenv("FANOUT_CONCURRENCY", "3")),
            request_timeout=float(os.getenv("FANOUT_REQUEST_TIMEOUT", "30")),
            output_dir=os.getenv("FANOUT_OUTPUT_DIR", "generated"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE")
        )

    def validate(self) -> List[str]:
        """Validate settings and return list of warnings/errors"""
        warnings = []

        if self.concurrency_limit < 1:
            warnings.append("concurrency_limit must be at least 1")

        if self.request_timeout <= 0:
            warnings.append("request_timeout must be positive")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            warnings.append(f"unknown log_level {self.log_level}")

        return warnings
