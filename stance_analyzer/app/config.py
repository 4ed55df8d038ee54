"""
Configuration Management for Comment Stance Analyzer
Standalone configuration system with environment variable overrides

Optional YAML file (configs/app.yaml) layout, one section per group:

    app:
      env: production
    youtube:
      max_results: 50
    classifier:
      mode: batched
    scheduler:
      batch_size: 5
"""

import os
import yaml
import logging
import threading
from pathlib import Path
from typing import Dict, Any, Optional, Literal, List, Type, TypeVar
from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


# ============================================================================
# Core Configuration Classes
# ============================================================================


class APIConfig(BaseSettings):
    """API Server Configuration"""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=3001, description="API port")
    debug: bool = Field(default=False, description="Debug mode")
    cors_origins: str = Field(
        default="http://localhost:5173",
        description="CORS allowed origins (comma-separated)",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]


class DatabaseConfig(BaseSettings):
    """Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="DB_")

    url: str = Field(
        default="sqlite+aiosqlite:///./stance_analyzer.db",
        description="Async database URL",
    )
    echo: bool = Field(default=False, description="Echo SQL queries")


class LoggingConfig(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file_path: Optional[str] = Field(
        default=None, description="Log file path (console only when unset)"
    )


class YouTubeAPISettings(BaseSettings):
    """YouTube Data API settings for the comment source"""

    model_config = SettingsConfigDict(env_prefix="YOUTUBE_")

    api_key: str = Field(default="", description="YouTube Data API v3 key")
    base_url: str = Field(
        default="https://www.googleapis.com/youtube/v3",
        description="YouTube Data API base URL",
    )
    max_results: int = Field(
        default=100, description="Comments fetched per analysis (single page)"
    )
    comment_order: Literal["time", "relevance"] = Field(
        default="relevance", description="Comment ordering"
    )
    request_timeout: float = Field(
        default=30.0, description="Request timeout in seconds"
    )

    @field_validator("max_results")
    @classmethod
    def validate_max_results(cls, v: int) -> int:
        """commentThreads accepts 1-100 per page"""
        if not 1 <= v <= 100:
            raise ValueError("max_results must be between 1 and 100")
        return v


class ClassifierSettings(BaseSettings):
    """Remote text classifier (Gemini) settings"""

    model_config = SettingsConfigDict(env_prefix="GEMINI_")

    api_key: str = Field(default="", description="Generative Language API key")
    model: str = Field(default="gemini-flash-latest", description="Model name")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Generative Language API base URL",
    )
    request_timeout: float = Field(
        default=60.0, description="Request timeout in seconds"
    )
    mode: Literal["batched", "per_comment"] = Field(
        default="per_comment",
        description="One prompt per batch, or one prompt per comment",
    )
    retryable_status_codes: List[int] = Field(
        default=[429], description="HTTP statuses treated as rate limiting"
    )


class SchedulerSettings(BaseSettings):
    """Batch scheduling and backoff settings"""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    batch_size: int = Field(default=10, description="Comments per batch")
    batch_delay_seconds: float = Field(
        default=2.0, description="Delay between consecutive batches"
    )
    max_attempts: int = Field(
        default=3, description="Attempts per remote call before falling back"
    )
    backoff_initial_seconds: float = Field(
        default=2.0, description="Delay before the first retry"
    )
    backoff_factor: float = Field(
        default=2.0, description="Exponential backoff multiplier"
    )

    @field_validator("batch_size", "max_attempts")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


# ============================================================================
# Main Configuration Class
# ============================================================================

SettingsT = TypeVar("SettingsT", bound=BaseSettings)


class Config:
    """
    Main Application Configuration
    Aggregates all configuration modules with unified access
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize application configuration

        Args:
            config_path: Optional YAML config file path
        """
        self.config_path = config_path or "configs/app.yaml"
        self.yaml_config = self._load_yaml_config()

        self.api = self._build(APIConfig, "api")
        self.database = self._build(DatabaseConfig, "database")
        self.logging = self._build(LoggingConfig, "logging")
        self.youtube_api = self._build(YouTubeAPISettings, "youtube")
        self.classifier = self._build(ClassifierSettings, "classifier")
        self.scheduler = self._build(SchedulerSettings, "scheduler")

    def _build(self, settings_cls: Type[SettingsT], section: str) -> SettingsT:
        """
        Create a settings group from its YAML section

        Precedence: environment variable > YAML value > field default.

        Args:
            settings_cls: BaseSettings subclass
            section: Top-level YAML key holding the group's values
        """
        values = self.get(section, {})
        if not isinstance(values, dict):
            logger.warning(f"Ignoring non-mapping YAML section: {section}")
            values = {}

        prefix = settings_cls.model_config.get("env_prefix", "")
        environ = {name.upper() for name in os.environ}
        yaml_values = {
            key: value
            for key, value in values.items()
            if f"{prefix}{key}".upper() not in environ
        }
        return settings_cls(**yaml_values)

    def _load_yaml_config(self) -> Dict[str, Any]:
        """Load YAML configuration file"""
        config_file = Path(self.config_path)

        if not config_file.exists():
            logger.debug(f"Config file not found: {config_file}, using defaults")
            return {}

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load config: {e}")
            return {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot notation key"""
        keys = key.split(".")
        value = self.yaml_config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration summary"""
        return {
            "app": self.yaml_config.get("app", {}),
            "api": {
                "host": self.api.host,
                "port": self.api.port,
                "debug": self.api.debug,
            },
            "database": {
                "url": self.database.url.split("/")[-1],
            },
            "youtube_api": {
                "api_key_set": bool(self.youtube_api.api_key),
                "max_results": self.youtube_api.max_results,
                "order": self.youtube_api.comment_order,
            },
            "classifier": {
                "api_key_set": bool(self.classifier.api_key),
                "model": self.classifier.model,
                "mode": self.classifier.mode,
            },
            "scheduler": {
                "batch_size": self.scheduler.batch_size,
                "batch_delay_seconds": self.scheduler.batch_delay_seconds,
                "max_attempts": self.scheduler.max_attempts,
            },
        }


# ============================================================================
# Global Configuration Instance (Singleton)
# ============================================================================

_config: Optional[Config] = None
_config_lock = threading.Lock()


@lru_cache()
def get_config(config_path: Optional[str] = None) -> Config:
    """
    Get or create global configuration instance (Thread-safe singleton)

    Args:
        config_path: Optional path to config file

    Returns:
        Config instance
    """
    global _config

    if _config is None:
        with _config_lock:
            if _config is None:
                _config = Config(config_path)
                logger.info("✅ Configuration initialized")

    return _config


def reset_config() -> None:
    """Reset global configuration (mainly for testing)"""
    global _config

    with _config_lock:
        get_config.cache_clear()
        _config = None


# ============================================================================
# Configuration Validation
# ============================================================================


def validate_config(config: Optional[Config] = None) -> Dict[str, Any]:
    """
    Validate configuration

    Args:
        config: Config instance (uses global if None)

    Returns:
        Validation result with errors and warnings
    """
    if config is None:
        config = get_config()

    errors = []
    warnings = []

    if config.logging.file_path:
        log_path = Path(config.logging.file_path)
        if not log_path.parent.exists():
            try:
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create log directory: {e}")

    if not config.youtube_api.api_key:
        warnings.append("YouTube API key not set - comment fetching will fail")

    if not config.classifier.api_key:
        warnings.append(
            "Gemini API key not set - every comment will use the keyword fallback"
        )

    if not config.database.url:
        errors.append("Database URL not configured")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


# ============================================================================
# Convenience Functions
# ============================================================================


def get_db_settings() -> DatabaseConfig:
    """Get database settings (shortcut)"""
    return get_config().database


def setup_logging(config: Optional[Config] = None) -> None:
    """
    Setup logging based on configuration

    Args:
        config: Config instance (uses global if None)
    """
    import logging.handlers

    if config is None:
        config = get_config()

    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(config.logging.format))
    root_logger.addHandler(console_handler)

    if config.logging.file_path:
        log_path = Path(config.logging.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(config.logging.format))
        root_logger.addHandler(file_handler)

    logger.info(f"📝 Logging configured: level={config.logging.level}")
