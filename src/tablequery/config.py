"""
tablequery Configuration.

Configuration dataclass with environment variable support for logging,
the command line runner and verb decoding.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging
import os


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_MAX_ROWS = 20

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in _TRUE_VALUES


@dataclass
class QueryConfig:
    """Configuration for tablequery.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a value-object.
    ::: This is serializable.

    Supports environment variables:
    - TABLEQUERY_LOG_LEVEL: Logging level name (default: WARNING)
    - TABLEQUERY_LOG_FILE: Optional path of a log file
    - TABLEQUERY_MAX_ROWS: Rows shown by the CLI preview (default: 20)
    - TABLEQUERY_STRICT_VERBS: Fail on unknown verbs when decoding (default: true)
    """

    log_level: str = field(default_factory=lambda: os.environ.get("TABLEQUERY_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper())
    log_file: Optional[str] = field(default_factory=lambda: os.environ.get("TABLEQUERY_LOG_FILE") or None)
    max_rows: int = field(default_factory=lambda: int(os.environ.get("TABLEQUERY_MAX_ROWS", DEFAULT_MAX_ROWS)))
    strict_verbs: bool = field(default_factory=lambda: _env_flag("TABLEQUERY_STRICT_VERBS", "true"))

    @property
    def level(self) -> int:
        """Numeric logging level, WARNING if the name is not recognised."""
        value = logging.getLevelName(self.log_level)
        return value if isinstance(value, int) else logging.WARNING

    def validate(self) -> list[str]:
        """Validate configuration and return list of warnings."""
        warnings = []

        if not isinstance(logging.getLevelName(self.log_level), int):
            warnings.append(f"Unknown log level {self.log_level!r} - using WARNING")

        if self.max_rows <= 0:
            warnings.append(f"max_rows {self.max_rows} is not positive - previews will be empty")

        return warnings

    @classmethod
    def from_env(cls) -> "QueryConfig":
        """Create configuration from environment variables."""
        return cls()

    @classmethod
    def for_testing(cls) -> "QueryConfig":
        """Create configuration for tests: debug logging, no log file."""
        return cls(log_level="DEBUG", log_file=None, max_rows=DEFAULT_MAX_ROWS, strict_verbs=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "log_level": self.log_level,
            "log_file": self.log_file,
            "max_rows": self.max_rows,
            "strict_verbs": self.strict_verbs,
        }
