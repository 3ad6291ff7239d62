"""
tfpipe core - shared exception hierarchy.
"""

from tfpipe.core.exceptions import (
    ArtifactError,
    ArtifactNotFoundError,
    CommandTimeoutError,
    CommentError,
    ConfigurationError,
    ExecutionError,
    GateFailedError,
    MissingEnvironmentError,
    TfPipeError,
    ToolNotFoundError,
    WorkspaceError,
)

__all__ = [
    "ArtifactError",
    "ArtifactNotFoundError",
    "CommandTimeoutError",
    "CommentError",
    "ConfigurationError",
    "ExecutionError",
    "GateFailedError",
    "MissingEnvironmentError",
    "TfPipeError",
    "ToolNotFoundError",
    "WorkspaceError",
]
