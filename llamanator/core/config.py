"""
Configuration management using Pydantic Settings
"""
import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional, Tuple, Type

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (BaseSettings, JsonConfigSettingsSource, NoDecode,
                               PydanticBaseSettingsSource, SettingsConfigDict)

from llamanator.core.exceptions import ConfigLoadError

# Load .env from the working directory
ENV_FILE = Path.cwd() / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)

CONFIG_ENV_VAR = "LLAMANATOR_CONFIG"
DEFAULT_CONFIG_FILE = "config.json"


class Settings(BaseSettings):
    """Gateway settings, read once at startup and never mutated"""

    app_name: str = "llamanator"

    # Server
    server_address: str = Field(default=":8080", description="Listen address (host:port)")
    auth_token: str = Field(..., min_length=1, description="Bearer token clients must present")

    # Backend
    api_url: str = Field(..., description="Backend generate endpoint URL")
    api_key: str = Field(default="", description="Backend bearer credential")
    system_prompt: str = Field(default="", description="Default system prompt (informational)")
    default_model: str = Field(..., description="Model used when a request names none")
    ollama_params: Dict[str, Any] = Field(
        default_factory=dict,
        description="Static parameters merged into every backend request"
    )
    response_fields: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Backend response fields copied into the client response"
    )
    request_timeout: int = Field(default=30, gt=0, description="Backend call deadline (seconds)")
    strip_newline: bool = Field(default=False, description="Replace newlines in 'response' with spaces")

    # Templates
    templates_dir: Path = Field(default=Path("templates"), description="Template source directory")
    template_extension: str = Field(default=".json", description="Template source file suffix")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="text",
        description="Log format: 'json' for structured logging, 'text' for plain text"
    )
    log_module_levels: Optional[str] = Field(
        default=None,
        description='Module-specific log levels (JSON string, e.g., {"llamanator.api": "DEBUG"})'
    )
    log_file_enabled: bool = Field(default=False, description="Enable file logging")
    log_file_path: str = Field(default="logs/llamanator.log", description="Path to log file")
    log_file_retention: int = Field(default=7, ge=1, description="Number of days to keep log files")
    log_sensitive_data: bool = Field(
        default=False,
        description="Enable logging of sensitive data (tokens) - NOT RECOMMENDED"
    )
    log_uvicorn_access: bool = Field(default=False, description="Enable Uvicorn access logging")

    @field_validator("server_address")
    @classmethod
    def validate_server_address(cls, v: str) -> str:
        """Require host:port (host may be empty) with a numeric port"""
        v = v.strip()
        host, sep, port = v.rpartition(":")
        if not sep or not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"server_address must look like 'host:port' or ':port', got {v!r}")
        return v

    @field_validator("template_extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        """Ensure the extension starts with a dot"""
        v = v.strip()
        if v and not v.startswith("."):
            v = f".{v}"
        return v

    @field_validator("response_fields", mode="before")
    @classmethod
    def parse_response_fields(cls, v):
        """Parse response fields from a JSON array or comma-separated string"""
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [field.strip() for field in v.split(",") if field.strip()]
        return v or []

    @property
    def listen_host(self) -> str:
        """Host part of server_address (all interfaces when empty)"""
        host, _, _ = self.server_address.rpartition(":")
        return host or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        """Port part of server_address"""
        _, _, port = self.server_address.rpartition(":")
        return int(port)

    model_config = SettingsConfigDict(
        env_prefix="LLAMANATOR_",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over the JSON file; explicit init values win over both
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls, json_file=resolve_config_path()),
        )


def resolve_config_path(config_path: Optional[os.PathLike] = None) -> Path:
    """Configuration file path: explicit argument, then env var, then default"""
    if config_path is not None:
        return Path(config_path)
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))


def load_settings(config_path: Optional[os.PathLike] = None) -> Settings:
    """
    Load settings from a JSON configuration file plus environment overrides

    Args:
        config_path: Path to the JSON configuration file. Defaults to
            $LLAMANATOR_CONFIG or ./config.json.

    Returns:
        Frozen Settings instance

    Raises:
        ConfigLoadError: If the file is missing, unreadable or invalid
    """
    path = resolve_config_path(config_path)
    if not path.is_file():
        raise ConfigLoadError(f"Configuration file not found: {path}")

    # The JSON source reads the path from the environment at construction time
    previous = os.environ.get(CONFIG_ENV_VAR)
    os.environ[CONFIG_ENV_VAR] = str(path)
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid configuration in {path}: {e}") from e
    except (OSError, ValueError) as e:
        raise ConfigLoadError(f"Failed to read configuration {path}: {e}") from e
    finally:
        if previous is None:
            os.environ.pop(CONFIG_ENV_VAR, None)
        else:
            os.environ[CONFIG_ENV_VAR] = previous


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return load_settings()
