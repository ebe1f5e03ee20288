"""
Notaire configuration with hybrid YAML + ENV support.

Priority: Environment variables (including .env.<ENV>) > environment YAML >
default YAML > Pydantic defaults

Blockchain features stay disabled unless all four connection settings
(rpc_url, private_key, escrow_contract_address, notary_contract_address)
are present.
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.resilience import BackoffStrategy, RetryConfig


class ListenerConfig(BaseModel):
    """Event listener timers and recovery policy."""

    event_name: str = Field(default="DocumentHashRecorded")
    max_reconnect_attempts: int = Field(default=5, ge=1, le=100)
    reconnect_delay: float = Field(default=10.0, ge=0.0, le=600.0)
    reconnect_max_delay: float = Field(default=300.0, ge=0.0, le=3600.0)
    reconnect_backoff: BackoffStrategy = Field(default=BackoffStrategy.CONSTANT)
    health_check_interval: float = Field(default=30.0, gt=0.0, le=3600.0)
    event_timeout: float = Field(default=60.0, gt=0.0, le=86400.0)
    filter_refresh_interval: float = Field(default=300.0, gt=0.0, le=86400.0)
    poll_interval: float = Field(default=2.0, gt=0.0, le=60.0)
    lookback_blocks: int = Field(default=100, ge=1, le=100000)
    confirmation_timeout: float = Field(default=120.0, ge=1.0, le=3600.0)
    rpc_timeout: float = Field(default=30.0, ge=1.0, le=300.0)
    filter_install_attempts: int = Field(default=3, ge=1, le=10)
    max_backfill_blocks: int = Field(default=1000, ge=1, le=100000)

    def reconnect_retry_config(self) -> RetryConfig:
        """Backoff settings for scheduled reconnects."""
        return RetryConfig(
            max_attempts=self.max_reconnect_attempts,
            initial_delay=self.reconnect_delay,
            max_delay=max(self.reconnect_delay, self.reconnect_max_delay),
            backoff_strategy=self.reconnect_backoff,
            jitter=False,
        )


class RegistryConfig(BaseModel):
    """Pending escrow registry persistence."""

    path: str = Field(default="data/escrow_mapping.json")

    @field_validator("path")
    @classmethod
    def expand_path(cls, v: str) -> str:
        """Expand home directory in registry path."""
        return os.path.expanduser(v)


class HealthConfig(BaseModel):
    """Health check configuration."""

    enabled: bool = Field(default=True)


class MetricsConfig(BaseModel):
    """Prometheus metrics configuration."""

    enabled: bool = Field(default=True)


class NotaireConfig(BaseSettings):
    """Notaire configuration schema."""

    model_config = SettingsConfigDict(
        env_prefix="NOTAIRE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3001, ge=1024, le=65535)

    # Logging
    log_level: str = Field(default="info")
    log_dir: Optional[str] = Field(default=None)
    verbose: int = Field(default=1, ge=0, le=3)

    # Blockchain connection
    rpc_url: Optional[str] = Field(default=None)
    private_key: Optional[SecretStr] = Field(default=None)
    escrow_contract_address: Optional[str] = Field(default=None)
    notary_contract_address: Optional[str] = Field(default=None)
    artifacts_dir: Optional[str] = Field(
        default=None,
        description="Hardhat artifacts directory with compiled contract ABIs",
    )

    listener: ListenerConfig = Field(default_factory=ListenerConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["debug", "info", "warning", "error", "critical"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"Invalid log_level. Must be one of: {allowed}")
        return v_lower

    @field_validator(
        "rpc_url",
        "escrow_contract_address",
        "notary_contract_address",
        "artifacts_dir",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty strings from env files as unset."""
        if v is not None and not v.strip():
            return None
        return v

    def missing_blockchain_settings(self) -> List[str]:
        """Names of required connection settings that are not set."""
        missing = []
        if not self.rpc_url:
            missing.append("rpc_url")
        if self.private_key is None or not self.private_key.get_secret_value():
            missing.append("private_key")
        if not self.escrow_contract_address:
            missing.append("escrow_contract_address")
        if not self.notary_contract_address:
            missing.append("notary_contract_address")
        return missing

    @property
    def blockchain_configured(self) -> bool:
        """True when every required connection setting is present."""
        return not self.missing_blockchain_settings()


def load_config(config_file: Optional[str] = None) -> NotaireConfig:
    """
    Load configuration from YAML files.

    Priority: Environment variables > environment-specific YAML > default YAML

    Args:
        config_file: Optional YAML filename override

    Returns:
        NotaireConfig instance
    """
    env = os.getenv("ENV", "production")

    config_map = {
        "production": "production.yaml",
        "development": "development.yaml",
        "test": "test.yaml",
    }

    project_root = Path(__file__).resolve().parent.parent.parent.parent
    config_dir = Path(os.getenv("NOTAIRE_CONFIG_DIR", project_root / "config"))

    # Values already in the environment win over the dotenv file.
    env_file_path = project_root / f".env.{env}"
    if env_file_path.exists():
        load_dotenv(env_file_path, override=False)

    merged_config = {}

    default_config_path = config_dir / "default.yaml"
    if default_config_path.exists():
        with open(default_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                merged_config = loaded

    if config_file is None:
        config_file = os.getenv("NOTAIRE_CONFIG") or config_map.get(
            env, "production.yaml"
        )

    env_config_path = config_dir / config_file
    if env_config_path.exists():
        with open(env_config_path, "r") as f:
            loaded = yaml.safe_load(f)
            if loaded:
                for key, value in loaded.items():
                    if isinstance(value, dict) and isinstance(
                        merged_config.get(key), dict
                    ):
                        merged_config[key] = {**merged_config[key], **value}
                    else:
                        merged_config[key] = value

    # Init kwargs outrank env vars in pydantic-settings, so drop YAML keys
    # that the environment overrides.
    for key in list(merged_config):
        value = merged_config[key]
        if os.getenv(f"NOTAIRE_{key.upper()}") is not None:
            merged_config.pop(key)
        elif isinstance(value, dict):
            for sub_key in list(value):
                env_name = f"NOTAIRE_{key.upper()}__{sub_key.upper()}"
                if os.getenv(env_name) is not None:
                    value.pop(sub_key)

    return NotaireConfig(**merged_config)


# Global settings instance
_settings: Optional[NotaireConfig] = None


def get_settings() -> NotaireConfig:
    """
    Get singleton settings instance.

    Returns:
        NotaireConfig instance
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings instance."""
    global _settings
    _settings = None
