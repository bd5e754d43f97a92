"""Engine configuration."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_TAG_KEY = "docforge"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EngineConfig:
    """Configuration for a RuleEngine.

    Attributes:
        tag_key: Field metadata key holding the tag string
        strict_rules: Check every rule name against the registry the first
            time a record type is used, instead of at first execution
        log_level: Logging level name applied by the CLI
    """

    tag_key: str = DEFAULT_TAG_KEY
    strict_rules: bool = False
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Create config from environment variables.

        - DOCFORGE_TAG_KEY: metadata key (default "docforge")
        - DOCFORGE_STRICT_RULES: "1", "true", "yes" or "on" enables strict mode
        - DOCFORGE_LOG_LEVEL: logging level name (default WARNING)
        """
        return cls(
            tag_key=os.environ.get("DOCFORGE_TAG_KEY") or DEFAULT_TAG_KEY,
            strict_rules=os.environ.get("DOCFORGE_STRICT_RULES", "").lower() in _TRUTHY,
            log_level=(os.environ.get("DOCFORGE_LOG_LEVEL") or "WARNING").upper(),
        )

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level)
        if isinstance(level, int):
            return level
        raise ValueError(f"Unknown log level: {self.log_level}")
