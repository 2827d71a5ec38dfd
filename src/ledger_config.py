"""Runtime configuration."""

import logging
import os
from dataclasses import dataclass


@dataclass
class LedgerConfig:
    """Ledger configuration loaded from environment variables."""

    # Root log level for the CLI; logs always go to stderr
    log_level: str = "WARNING"

    # 1 runs the single-pass engine, more runs one worker per shard
    num_shards: int = 1

    def __post_init__(self):
        self.log_level = self.log_level.strip().upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"unknown log level {self.log_level!r}")
        if self.num_shards < 1:
            raise ValueError(f"num_shards must be at least 1, got {self.num_shards}")

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LEDGER_LOG_LEVEL", "WARNING"),
            num_shards=int(os.getenv("LEDGER_SHARDS", "1")),
        )
