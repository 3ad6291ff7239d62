"""
tfpipe Config - Configuration management.
"""

from tfpipe.config.loader import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    check_required_env,
    load_config,
    passthrough_env,
    secret_values,
)
from tfpipe.config.models import (
    DEFAULT_TARGETS,
    ArtifactConfig,
    CommentConfig,
    EnvConfig,
    LoggingConfig,
    PipelineConfig,
)

__all__ = [
    "ArtifactConfig",
    "CONFIG_ENV_VAR",
    "CONFIG_FILENAME",
    "CommentConfig",
    "DEFAULT_TARGETS",
    "EnvConfig",
    "LoggingConfig",
    "PipelineConfig",
    "check_required_env",
    "load_config",
    "passthrough_env",
    "secret_values",
]
