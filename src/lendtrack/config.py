"""Configuration management for lendtrack.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

RETURN_POLICIES = ("full_quantity", "single_unit")


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path
    db_url: Optional[str]
    busy_timeout: float  # seconds

    # Lending
    return_policy: str
    default_loan_days: int

    # Conflict retries
    retry_max: int
    retry_base_delay: float  # seconds

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "LENDTRACK_DB_PATH",
            str(Path.home() / ".lendtrack" / "lending.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            db_url=os.environ.get("LENDTRACK_DB_URL") or None,
            busy_timeout=float(os.environ.get("LENDTRACK_BUSY_TIMEOUT", "5.0")),
            return_policy=os.environ.get(
                "LENDTRACK_RETURN_POLICY", "full_quantity"
            ).lower(),
            default_loan_days=int(os.environ.get("LENDTRACK_DEFAULT_LOAN_DAYS", "7")),
            retry_max=int(os.environ.get("LENDTRACK_RETRY_MAX", "3")),
            retry_base_delay=float(
                os.environ.get("LENDTRACK_RETRY_BASE_DELAY", "0.1")
            ),
            log_level=os.environ.get("LENDTRACK_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.return_policy not in RETURN_POLICIES:
            errors.append(
                f"Unknown return policy '{self.return_policy}' "
                f"(expected one of: {', '.join(RETURN_POLICIES)})"
            )
        if self.default_loan_days <= 0:
            errors.append("Default loan period must be at least one day")
        if self.retry_max < 1:
            errors.append("Retry count must be at least 1")

        # Check database directory is writable
        if self.db_url is None and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors

    def uses_external_database(self) -> bool:
        """Check if a database URL overrides the local SQLite file."""
        return bool(self.db_url)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
