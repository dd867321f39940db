"""Runtime configuration.

Values come from SPENDPROOF_* environment variables or a .env file in the
working directory, for example:

    SPENDPROOF_DATA_DIR=./artifacts
    SPENDPROOF_LEAF_INDEX=2
    SPENDPROOF_LOG_LEVEL=DEBUG
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Artifact locations and demo parameters."""

    model_config = SettingsConfigDict(env_prefix="SPENDPROOF_", env_file=".env", extra="ignore")

    data_dir: Path = Field(default=Path("artifacts"), description="Directory holding the artifacts")
    leaves_file: str = Field(default="leaves.json")
    secret_file: str = Field(default="leaked_secret.json")
    keys_file: str = Field(default="proof_keys.json")
    database_url: str = Field(default="sqlite:///:memory:", description="SQLAlchemy URL for published nullifiers")
    leaf_index: int = Field(default=2, ge=0, description="Leaf spent by the leaked secret")
    tree_depth: Optional[int] = Field(default=None, ge=1, le=32, description="Derived from the leaves when unset")
    rng_seed: int = Field(default=0, description="Seed for proving randomness in the demo")
    log_level: str = Field(default="INFO")

    @property
    def leaves_path(self) -> Path:
        return self.data_dir / self.leaves_file

    @property
    def secret_path(self) -> Path:
        return self.data_dir / self.secret_file

    @property
    def keys_path(self) -> Path:
        return self.data_dir / self.keys_file


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the process-wide settings."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings():
    """Reset settings (for testing)."""
    global _settings
    _settings = None


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for scripts."""
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
