"""Configuration loading and validation.

Supports:
- TOML config files
- Environment variables (ARTAKA_* prefix)
- .env files
- Startup validation of every endpoint and model the core needs
"""

import os
import re
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from artaka.config.schema import AppConfig
from artaka.observability.logging import get_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid.

    Configuration errors are the only failures that stop the process.
    """

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        self.message = message
        self.missing = missing or []
        super().__init__(self.message)


def _substitute_env_vars(obj: Any) -> Any:
    """Recursively substitute environment variables in a data structure.

    Supports formats:
    - ${VAR_NAME}
    - ${VAR_NAME:-default}
    """
    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        def replace_var(match):
            var_expr = match.group(1)
            if ":-" in var_expr:
                var_name, default_value = var_expr.split(":-", 1)
                return os.getenv(var_name.strip(), default_value)
            var_name = var_expr.strip()
            value = os.getenv(var_name)
            if value is None:
                logger.warning(
                    "env_var_not_found",
                    var_name=var_name,
                    suggestion="Check that the environment variable is set",
                )
                return match.group(0)
            return value

        return re.sub(r"\$\{([^}]+)\}", replace_var, obj)
    else:
        return obj


def load_config(
    config_path: Optional[Path] = None,
    env_file: Optional[Path] = None,
) -> AppConfig:
    """Load application configuration.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file
    3. Defaults

    Args:
        config_path: Path to TOML config file
        env_file: Path to .env file (defaults to ./.env)

    Returns:
        Loaded configuration (not yet validated, see validate_config)
    """
    env_file = env_file or Path.cwd() / ".env"
    if env_file.exists():
        load_dotenv(env_file)
        logger.debug("loaded_env_file", path=str(env_file))

    config_data: dict[str, Any] = {}
    if config_path and config_path.exists():
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)
        config_data = _substitute_env_vars(config_data)
        logger.debug("loaded_config_file", path=str(config_path))

    config = AppConfig(**config_data)
    logger.debug(
        "config_loaded",
        use_local=config.use_local,
        router_model=config.llm.router_model,
        store_type=config.store.store_type,
    )

    return config


def validate_config(config: AppConfig) -> AppConfig:
    """Check that every value the core needs is present.

    Args:
        config: Loaded configuration

    Returns:
        The same configuration, for chaining

    Raises:
        ConfigError: Listing every missing setting
    """
    missing = []

    if not config.llm.completion_url:
        missing.append("llm.completion_url")
    if not config.llm.router_model:
        missing.append("llm.router_model")
    if not config.embedding.url:
        missing.append("embedding.url")
    if not config.embedding.model_name:
        missing.append("embedding.model_name")
    if not config.tagger_model:
        missing.append("llm.tagger_model" if config.use_local else "llm.remote_tagger_model")
    if not config.use_local:
        if not config.llm.remote_completion_url:
            missing.append("llm.remote_completion_url (required when use_local=false)")
        if not config.llm.remote_api_key:
            missing.append("llm.remote_api_key (required when use_local=false)")

    if missing:
        raise ConfigError(
            "Missing required configuration: " + ", ".join(missing),
            missing=missing,
        )

    if not config.llm.vision_tagger_model:
        logger.warning("vision_tagger_model_not_set", effect="image files are tagged with the text tagger")

    return config


def get_default_config_path() -> Path:
    """Get the default config file path.

    Searches in order:
    1. ./artaka.toml
    2. ~/.artaka/config.toml
    """
    search_paths = [
        Path.cwd() / "artaka.toml",
        Path.home() / ".artaka" / "config.toml",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return search_paths[0]
