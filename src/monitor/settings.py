"""
Extended settings loading Env Vars and the YAML monitor configuration.
Falls back to local storage if cloud credentials are missing.
Supports YAML Variable Interpolation.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .context import validate_threshold
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "monitor_config.yaml"


# --- YAML Schema Models (Logic Only) ---


class MonitorConfig(BaseModel):
    """Immutable parameters of the capture/alert loop, injected into the AlertEngine."""

    model_config = ConfigDict(frozen=True)

    sample_rate: int = Field(44100, gt=0)
    block_size: int = Field(4096, gt=0)
    retention_seconds: float = Field(5.0, gt=0)

    default_threshold_db: float = 80.0
    alert_cooldown_seconds: float = Field(10.0, ge=0)
    shutdown_timeout_seconds: float = Field(2.0, gt=0)

    device: int | str | None = None

    @field_validator("default_threshold_db")
    @classmethod
    def _check_threshold(cls, value: float) -> float:
        return validate_threshold(value)

    @property
    def ring_capacity(self) -> int:
        """Samples retained for pre-roll (retention window at the native rate)."""
        return max(1, int(round(self.retention_seconds * self.sample_rate)))

    @property
    def blocks_per_tick(self) -> int:
        """Blocks between two evaluations, i.e. roughly one second of audio."""
        return max(1, self.sample_rate // self.block_size)


class ClassifierConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    use_tflite: bool = True
    model_path_lite: str = "src/yamnet/yamnet.tflite"
    model_path_full: str = "src/yamnet/model"
    class_map_path: str = "src/yamnet/class_map/yamnet_class_map.csv"
    auto_download: bool = True
    num_threads: int = 2

    # Audio Processing Constants
    target_sample_rate: int = 16000
    model_input_size: int = 15600  # 0.975s @ 16kHz
    window_anchor: Literal["head", "tail"] = "head"
    top_k: int = 3


class CloudConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: Literal["magalu", "aws"] = "magalu"
    bucket_name: str = "sound-captures"
    aws_region: str | None = "us-east-1"
    s3_endpoint: str | None = None  # For Magalu/MinIO


class StorageConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: Literal["local", "s3"] = "local"
    output_path: Path = Path("recordings")
    folder_name: str = "Sound Sentinel Recordings"
    local_fallback: bool = True
    queue_size: int = Field(8, gt=0)
    cloud: CloudConfig = CloudConfig()


class MetricsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    port: int = 8000


class AppConfig(BaseModel):
    variables: dict[str, Any] = Field(default_factory=dict)

    monitor: MonitorConfig = MonitorConfig()
    classifier: ClassifierConfig = ClassifierConfig()
    storage: StorageConfig = StorageConfig()
    metrics: MetricsConfig = MetricsConfig()


# --- Main Settings Class ---


class AppSettings(BaseSettings):
    """
    Combines Env Vars (Secrets/Logs) and YAML (Logic).
    """

    # --- Secrets ---
    S3_ACCESS_KEY: str | None = Field(None, alias="AWS_ACCESS_KEY_ID")
    S3_SECRET_KEY: str | None = Field(None, alias="AWS_SECRET_ACCESS_KEY")

    # --- Logging Levels (Controlled via .env) ---
    LOG_LEVEL_MAIN: str = "INFO"
    LOG_LEVEL_ENGINE: str = "INFO"
    LOG_LEVEL_CLASSIFIER: str = "INFO"
    LOG_LEVEL_STORAGE: str = "INFO"
    LOG_LEVEL_SINKS: str = "INFO"

    # --- Configuration ---
    CONFIG: AppConfig | None = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def _inject_variables(self, node: Any, variables: dict[str, Any]) -> Any:
        """Recursively injects variables into strings."""
        if isinstance(node, dict):
            return {k: self._inject_variables(v, variables) for k, v in node.items()}
        elif isinstance(node, list):
            return [self._inject_variables(i, variables) for i in node]
        elif isinstance(node, str):
            try:
                return node.format(**variables)
            except (KeyError, ValueError, IndexError):
                return node
        else:
            return node

    def load_config_file(self, path: str | Path = DEFAULT_CONFIG_FILE) -> AppConfig:
        """Loads YAML, merges ENV vars, and validates."""
        load_dotenv()

        p = Path(path)
        if not p.exists():
            logger.warning(f"⚠️ Config file '{path}' not found. Using defaults.")
            self.CONFIG = AppConfig()
        else:
            try:
                with open(p) as f:
                    raw_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in '{path}': {e}") from e

            if not isinstance(raw_data, dict):
                raise ConfigurationError(f"'{path}' must contain a mapping at the top level.")

            # 1. Variable Substitution
            yaml_vars = raw_data.get("variables", {}) or {}
            combined_vars = {**os.environ, **yaml_vars}
            processed_data = self._inject_variables(raw_data, combined_vars)

            # 2. Validate
            try:
                self.CONFIG = AppConfig.model_validate(processed_data)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid configuration in '{path}': {e}") from e

        # 3. Apply Log Levels (from Env Vars, not YAML)
        self._apply_logging_config()
        self._validate_services()
        return self.CONFIG

    def _apply_logging_config(self):
        """Sets log levels based on .env variables defined in this class."""

        # Map .env fields to module paths
        log_map = {
            "__main__": self.LOG_LEVEL_MAIN,
            "monitor.main": self.LOG_LEVEL_MAIN,
            "monitor.engine": self.LOG_LEVEL_ENGINE,
            "audio_classification": self.LOG_LEVEL_CLASSIFIER,
            "monitor.services": self.LOG_LEVEL_STORAGE,
            "monitor.sinks": self.LOG_LEVEL_SINKS,
        }

        for module_name, level_str in log_map.items():
            logger_instance = logging.getLogger(module_name)
            level_value = getattr(logging, level_str.upper(), logging.INFO)
            logger_instance.setLevel(level_value)
            logger.debug(f"🔧 Log Level set to {level_str} for '{module_name}'")

    def _validate_services(self):
        """Falls back to local storage if S3 credentials are missing."""
        storage = self.CONFIG.storage
        if storage.provider == "s3" and (not self.S3_ACCESS_KEY or not self.S3_SECRET_KEY):
            logger.warning("⚠️ S3 credentials missing. Falling back to local capture storage.")
            self.CONFIG.storage = storage.model_copy(update={"provider": "local"})


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
