"""Application settings with Pydantic Settings validation.

Secrets (tokens) are loaded from .env file.
Non-sensitive configuration is loaded from config/*.yaml files.
All configs are automatically merged and validated against JSON schemas.
"""

import json
from pathlib import Path
from typing import Any, Final, cast

import yaml
from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sibyl.config.logging_config import get_logger
from sibyl.domain.scoring_constants import BASE_SCORE, DEFAULT_LEADERBOARD_SIZE

CONFIG_DIR_DEFAULT: Final[Path] = Path("config")
SLACK_HISTORY_FETCH_COUNT_DEFAULT: Final[int] = 10
SLACK_MAX_RETRIES_DEFAULT: Final[int] = 3

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_schema(schema_name: str, config_dir: Path = CONFIG_DIR_DEFAULT) -> dict[str, Any]:
    """Load JSON Schema from <config_dir>/schemas/.

    Args:
        schema_name: Schema name without extension (e.g., "main")
        config_dir: Configuration directory

    Returns:
        JSON Schema dictionary or empty dict if not found
    """
    schema_path = config_dir / "schemas" / f"{schema_name}.schema.json"
    if not schema_path.exists():
        return {}

    try:
        with open(schema_path, encoding="utf-8") as f:
            return cast(dict[str, Any], json.load(f))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(
            "config_schema_load_failed",
            schema=schema_name,
            error=str(e),
        )
        return {}


def validate_config_section(
    config: dict[str, Any],
    schema_name: str,
    file_path: str = "",
    config_dir: Path = CONFIG_DIR_DEFAULT,
) -> None:
    """Validate config section against JSON Schema.

    Args:
        config: Configuration dictionary to validate
        schema_name: Name of schema to validate against
        file_path: Optional file path for error messages
        config_dir: Configuration directory holding schemas/

    Raises:
        ValueError: If validation fails
    """
    schema = load_schema(schema_name, config_dir)
    if not schema:
        return

    try:
        validate(instance=config, schema=schema)
        logger.debug("config_validation_succeeded", schema=schema_name)
    except JSONSchemaValidationError as e:
        error_msg = f"Config validation failed for {schema_name}"
        if file_path:
            error_msg += f" (file: {file_path})"
        error_msg += f": {e.message}"
        raise ValueError(error_msg) from e


def load_all_configs(config_dir: Path = CONFIG_DIR_DEFAULT) -> dict[str, Any]:
    """Load and merge all YAML configs from the config directory.

    Loading order (later overrides earlier):
    1. main.yaml
    2. All other *.yaml files (sorted alphabetically)

    Each file is validated against its JSON Schema if one is available.

    Returns:
        Merged configuration dictionary

    Raises:
        ValueError: If a file fails schema validation
    """
    merged_config: dict[str, Any] = {}
    if not config_dir.is_dir():
        return merged_config

    main_path = config_dir / "main.yaml"
    yaml_files = sorted(f for f in config_dir.glob("*.yaml") if f.name != "main.yaml")
    if main_path.exists():
        yaml_files.insert(0, main_path)

    for yaml_file in yaml_files:
        schema_name = yaml_file.stem
        try:
            with open(yaml_file, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                "config_file_load_failed",
                path=str(yaml_file),
                error=str(e),
            )
            continue

        try:
            validate_config_section(file_config, schema_name, str(yaml_file), config_dir)
        except ValueError as e:
            logger.error(
                "config_validation_failed",
                path=str(yaml_file),
                schema=schema_name,
                error=str(e),
            )
            raise

        merged_config = deep_merge(merged_config, file_config)
        logger.debug("config_file_loaded", path=str(yaml_file), schema=schema_name)

    logger.info("config_load_complete", file_count=len(yaml_files))
    return merged_config


class Settings(BaseSettings):
    """Application settings.

    Secrets are loaded from .env file.
    Non-sensitive config is loaded from config/*.yaml with fallback to defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === SECRETS (from .env) ===

    slack_bot_token: SecretStr | None = Field(
        default=None, description="Slack Bot User OAuth Token (xoxb-, from .env)"
    )
    slack_app_token: SecretStr | None = Field(
        default=None, description="Slack app-level token for socket mode (xapp-)"
    )

    # === NON-SENSITIVE CONFIG (from config/*.yaml or defaults) ===

    def __init__(self, config_dir: Path | str = CONFIG_DIR_DEFAULT, **data: Any):
        """Initialize settings with auto-loaded configs from all YAML files."""
        config = load_all_configs(Path(config_dir))

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        scoring_config = config.get("scoring") or {}
        _assign("scoring_base", scoring_config.get("base"))
        _assign("scoring_max_score", scoring_config.get("max_score"))

        leaderboard_config = config.get("leaderboard") or {}
        _assign("leaderboard_size", leaderboard_config.get("size"))

        slack_config = config.get("slack") or {}
        _assign("history_fetch_count", slack_config.get("history_fetch_count"))
        _assign("slack_max_retries", slack_config.get("max_retries"))

        logging_config = config.get("logging") or {}
        _assign("log_level", logging_config.get("level"))
        _assign("json_logs", logging_config.get("json"))

    # Scoring configuration
    scoring_base: float = Field(
        default=BASE_SCORE, description="Psycho-Pass of an entity with no activity"
    )
    scoring_max_score: int | None = Field(
        default=None,
        ge=0,
        description="Optional ceiling for Psycho-Pass values (None = unclamped)",
    )

    # Leaderboard configuration
    leaderboard_size: int = Field(
        default=DEFAULT_LEADERBOARD_SIZE,
        ge=1,
        description="Entries shown per side in leaderboard replies",
    )

    # Slack configuration
    history_fetch_count: int = Field(
        default=SLACK_HISTORY_FETCH_COUNT_DEFAULT,
        ge=1,
        le=100,
        description="Messages fetched from search when bootstrapping a user",
    )
    slack_max_retries: int = Field(
        default=SLACK_MAX_RETRIES_DEFAULT,
        ge=1,
        description="Maximum attempts for transient Slack API errors",
    )

    # Observability
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    def require_slack_tokens(self) -> tuple[str, str]:
        """Return (bot_token, app_token) or raise if either is missing.

        Raises:
            ValueError: If a token is not configured
        """
        if self.slack_bot_token is None or not self.slack_bot_token.get_secret_value():
            raise ValueError("SLACK_BOT_TOKEN must be provided")
        if self.slack_app_token is None or not self.slack_app_token.get_secret_value():
            raise ValueError("SLACK_APP_TOKEN must be provided")
        return (
            self.slack_bot_token.get_secret_value(),
            self.slack_app_token.get_secret_value(),
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
