"""
Prank Configuration Management

Centralized defaults for KNN descent, cohesion scoring and the worker pool.
"""

from dataclasses import dataclass
from typing import List, Optional
import os


class ConfigurationError(ValueError):
    """Raised when parameters or inputs cannot produce a valid result."""


@dataclass
class PrankConfig:
    """Main configuration for Prank."""

    # KNN descent settings
    k: int = 8                           # Friends per point
    max_rounds: Optional[int] = None     # None = 2 * ceil(log_k(n))
    sample_rate: float = 0.5             # Fraction of points sampled for clustering rate
    quality_sample_size: int = 6         # Points checked by brute force (0 disables)

    # Reproducibility
    seed: Optional[int] = None

    # Worker pool settings
    max_workers: Optional[int] = None    # None = auto-tuned
    force_serial: bool = False
    chunk_size: int = 256                # Points per random substream / task

    def validate(self) -> List[str]:
        """Check parameter ranges. Returns list of problems."""
        problems = []
        if self.k < 1:
            problems.append(f"k must be at least 1, got {self.k}")
        if self.max_rounds is not None and self.max_rounds < 0:
            problems.append(f"max_rounds must be non-negative, got {self.max_rounds}")
        if not 0.0 < self.sample_rate <= 1.0:
            problems.append(f"sample_rate must be in (0, 1], got {self.sample_rate}")
        if self.quality_sample_size < 0:
            problems.append(
                f"quality_sample_size must be non-negative, got {self.quality_sample_size}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            problems.append(f"max_workers must be at least 1, got {self.max_workers}")
        if self.chunk_size < 1:
            problems.append(f"chunk_size must be at least 1, got {self.chunk_size}")
        return problems

    def check(self) -> "PrankConfig":
        """Raise ConfigurationError if any parameter is out of range."""
        problems = self.validate()
        if problems:
            raise ConfigurationError("; ".join(problems))
        return self

    @classmethod
    def from_env(cls) -> "PrankConfig":
        """Create config from environment variables."""
        config = cls()

        # Override with env vars if present
        if k := os.environ.get("PRANK_K"):
            config.k = int(k)

        if max_rounds := os.environ.get("PRANK_MAX_ROUNDS"):
            config.max_rounds = int(max_rounds)

        if sample_rate := os.environ.get("PRANK_SAMPLE_RATE"):
            config.sample_rate = float(sample_rate)

        if seed := os.environ.get("PRANK_SEED"):
            config.seed = int(seed)

        if max_workers := os.environ.get("PRANK_MAX_WORKERS"):
            config.max_workers = int(max_workers)

        if force_serial := os.environ.get("PRANK_FORCE_SERIAL"):
            config.force_serial = force_serial.strip().lower() in ("1", "true", "yes")

        if chunk_size := os.environ.get("PRANK_CHUNK_SIZE"):
            config.chunk_size = int(chunk_size)

        return config


# Default config instance
config = PrankConfig()
