"""
tfpipe Config - Loader.

Reads tfpipe.yaml, validates it and checks the required environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from loguru import logger
from pydantic import ValidationError

from tfpipe.config.models import PipelineConfig
from tfpipe.core.exceptions import ConfigurationError, MissingEnvironmentError

CONFIG_FILENAME = "tfpipe.yaml"
CONFIG_ENV_VAR = "TFPIPE_CONFIG"


def resolve_config_path(path: str | Path | None, working_dir: Path) -> Path | None:
    """
    Find the config file to load.

    Order: explicit path, TFPIPE_CONFIG, <working_dir>/tfpipe.yaml.
    An explicit path that does not exist is an error; the others are optional.
    """
    if path is not None:
        explicit = Path(path)
        if not explicit.is_file():
            raise ConfigurationError(f"Config file not found: {explicit}")
        return explicit

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidate = Path(env_path)
        if not candidate.is_file():
            raise ConfigurationError(f"{CONFIG_ENV_VAR} points to a missing file: {candidate}")
        return candidate

    default = working_dir / CONFIG_FILENAME
    return default if default.is_file() else None


def load_config(
    path: str | Path | None = None,
    working_dir: str | Path | None = None,
) -> PipelineConfig:
    """
    Load and validate the pipeline configuration.

    Args:
        path: Explicit config file path.
        working_dir: Terraform working directory; overrides the file's value.

    Returns:
        Validated PipelineConfig (defaults when no file is found).

    Raises:
        ConfigurationError: If the file is unreadable or invalid.
    """
    base_dir = Path(working_dir) if working_dir else Path.cwd()
    config_path = resolve_config_path(path, base_dir)

    data: dict[str, Any] = {}
    if config_path is not None:
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config {config_path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config {config_path} must be a mapping")
        data = loaded
        logger.debug(f"Loaded config from {config_path}")

    if working_dir is not None:
        data["working_dir"] = str(working_dir)
    elif "working_dir" in data and config_path is not None:
        # Relative working_dir is taken relative to the config file
        wd = Path(data["working_dir"])
        if not wd.is_absolute():
            data["working_dir"] = str(config_path.parent / wd)

    try:
        return PipelineConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def check_required_env(config: PipelineConfig, environ: Mapping[str, str] | None = None) -> None:
    """
    Ensure every required passthrough variable is set and non-empty.

    Raises:
        MissingEnvironmentError: Listing the missing variables.
    """
    environ = os.environ if environ is None else environ
    missing = [name for name in config.env.required if not environ.get(name)]
    if missing:
        raise MissingEnvironmentError(missing)


def passthrough_env(config: PipelineConfig, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Passthrough variables that are set in the current environment."""
    environ = os.environ if environ is None else environ
    return {name: environ[name] for name in config.env.passthrough if environ.get(name)}


def secret_values(config: PipelineConfig, environ: Mapping[str, str] | None = None) -> list[str]:
    """Values of secret variables and the comment token, for redaction."""
    environ = os.environ if environ is None else environ
    names = list(config.env.secret) + [config.comments.token_env]
    return [environ[name] for name in names if environ.get(name)]
