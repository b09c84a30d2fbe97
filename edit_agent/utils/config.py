"""Configuration management for the edit agent."""

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class ModelsConfig(BaseModel):
    """Model identifiers for each capability."""
    generation: str = "gemini-2.5-flash-image-preview"
    judge: str = "gemini-2.5-flash"
    chat: str = "openai/gpt-4o-mini"
    image: str = "google/nano-banana/text-to-image"


class LoopConfig(BaseModel):
    """Refinement loop behaviour."""
    default_max_iterations: int = 10
    upload_max_dimension: int = 2048
    # Client-side limits; None leaves the call unbounded.
    generation_timeout_seconds: Optional[float] = None
    evaluation_timeout_seconds: Optional[float] = None


class TimeoutConfig(BaseModel):
    """HTTP timeouts per provider."""
    gemini_seconds: float = 120.0
    openrouter_seconds: float = 60.0
    wavespeed_seconds: float = 120.0
    wavespeed_polling_seconds: float = 180.0


class Config(BaseModel):
    """Main application configuration."""

    # API Keys
    gemini_api_key: str = Field(
        ...,
        validation_alias=AliasChoices(
            "GEMINI_API_KEY", "GOOGLE_GENERATIVE_AI_API_KEY", "gemini_api_key"
        ),
    )
    openrouter_api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")
    wavespeed_api_key: Optional[str] = Field(default=None, alias="WAVESPEED_API_KEY")

    # Application Settings
    app_env: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    models: ModelsConfig = Field(default_factory=ModelsConfig)
    loop: LoopConfig = Field(default_factory=LoopConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)

    class Config:
        populate_by_name = True


# Global config instance
_config: Optional[Config] = None


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        logger.info(
            "No settings file found, using defaults",
            extra={"path": str(path)}
        )
        return {}

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


def load_config(path: Optional[Path] = None) -> Config:
    """
    Load configuration from environment and the YAML settings file.

    Args:
        path: Settings file; defaults to $EDIT_AGENT_CONFIG or config/settings.yaml

    Returns:
        Config instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config

    if path is None:
        path = Path(os.getenv("EDIT_AGENT_CONFIG", str(DEFAULT_CONFIG_PATH)))

    try:
        settings = _read_yaml(path)

        config_data = {
            **os.environ,
            **settings,
        }

        _config = Config(**config_data)

        logger.info(
            "Configuration loaded successfully",
            extra={
                "environment": _config.app_env,
                "generation_model": _config.models.generation,
                "judge_model": _config.models.judge,
            }
        )

        return _config

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration: {e}")


def get_config() -> Config:
    """
    Get the current configuration instance.

    Raises:
        ConfigurationError: If config not loaded
    """
    if _config is None:
        raise ConfigurationError("Configuration not loaded. Call load_config() first.")
    return _config
