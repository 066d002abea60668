"""Configuration settings and data models."""

import json
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator


class StoreConfig(BaseModel):
    """Backing store for tournament collections."""

    backend: Literal["sqlite", "memory"] = Field(
        default="sqlite", description="Store implementation (sqlite, memory)"
    )
    db_path: str = Field(
        default="tournaments.db", description="SQLite database file"
    )


class TournamentConfig(BaseModel):
    """Tournament rules."""

    max_judges_per_round: int = Field(
        default=3, description="Judges seated per round; extra assignments are dropped"
    )
    code_length: int = Field(default=6, description="Length of tournament join codes")
    code_attempts: int = Field(
        default=10, description="Attempts at drawing an unused tournament code"
    )
    prep_time_seconds: int = Field(
        default=240, description="Prep time per debater, passed through to clients"
    )

    @field_validator("max_judges_per_round")
    @classmethod
    def validate_max_judges(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_judges_per_round must be at least 1")
        return v

    @field_validator("code_length")
    @classmethod
    def validate_code_length(cls, v: int) -> int:
        if not 4 <= v <= 12:
            raise ValueError("code_length must be between 4 and 12")
        return v


class AuthConfig(BaseModel):
    """Account and token settings."""

    jwt_secret_key: str = Field(
        default="dev-secret-key-change-in-production",
        description="JWT signing key (JWT_SECRET_KEY env var overrides)",
    )
    jwt_expire_hours: int = Field(default=168, description="Token lifetime in hours")
    development_mode: bool = Field(
        default=False, description="Cheaper password hashing for local development"
    )


class SystemConfig(BaseModel):
    """System-wide configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    preferences_path: str = Field(
        default=".debatemate/preferences.json",
        description="Local key-value file for remembered name, role and tournament",
    )


class AppConfig(BaseModel):
    """Complete application configuration."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    tournament: TournamentConfig = Field(default_factory=TournamentConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        # Validate required sections
        required_sections = ["store", "system"]
        missing_sections = [
            section for section in required_sections if section not in data
        ]
        if missing_sections:
            raise ValueError(f"Missing required config sections: {missing_sections}")

        config = cls(**data)
        config.apply_environment()
        return config

    def apply_environment(self) -> None:
        """Let environment variables override file settings."""
        secret = os.environ.get("JWT_SECRET_KEY")
        if secret:
            self.auth.jwt_secret_key = secret

        db_path = os.environ.get("DEBATEMATE_DB_PATH")
        if db_path:
            self.store.db_path = db_path

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
            )


def get_default_config() -> AppConfig:
    """Load configuration from debatemate_config.json, creating it if needed."""
    config_path = Path(os.environ.get("DEBATEMATE_CONFIG", "debatemate_config.json"))
    if not config_path.exists():
        template_config = get_template_config()
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(template_config.model_dump(), f, indent=2)
    return AppConfig.load_from_file(config_path)


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        store=StoreConfig(backend="sqlite", db_path="tournaments.db"),
        tournament=TournamentConfig(
            max_judges_per_round=3,
            code_length=6,
            code_attempts=10,
            prep_time_seconds=240,  # 4 minutes
        ),
        auth=AuthConfig(
            jwt_secret_key="dev-secret-key-change-in-production",
            jwt_expire_hours=168,  # 7 days
            development_mode=False,
        ),
        system=SystemConfig(
            log_level="INFO",
            preferences_path=".debatemate/preferences.json",
        ),
    )
