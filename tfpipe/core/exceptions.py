"""
Core Exceptions - Unified error hierarchy for tfpipe.

Each exception type covers one category of pipeline errors.
"""


class TfPipeError(Exception):
    """Base exception for all tfpipe errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(TfPipeError):
    """Configuration error."""
    pass


class MissingEnvironmentError(ConfigurationError):
    """Required environment variable not set."""

    def __init__(self, names: list[str]):
        super().__init__(
            f"Missing required environment variable(s): {', '.join(names)}",
            {"names": names}
        )
        self.names = names


# =============================================================================
# Execution Errors
# =============================================================================

class ExecutionError(TfPipeError):
    """Step execution failed."""
    pass


class ToolNotFoundError(ExecutionError):
    """Required executable is not on PATH."""

    def __init__(self, tool: str):
        super().__init__(
            f"Required tool '{tool}' not found in PATH",
            {"tool": tool}
        )
        self.tool = tool


class CommandTimeoutError(ExecutionError):
    """Command execution timed out."""

    def __init__(self, command: str, timeout_seconds: int):
        super().__init__(
            f"Command timed out after {timeout_seconds}s",
            {"command": command, "timeout": timeout_seconds}
        )
        self.command = command
        self.timeout_seconds = timeout_seconds


class GateFailedError(ExecutionError):
    """One or more gated steps did not succeed."""

    def __init__(self, failed_steps: list[str]):
        super().__init__(
            f"Gated step(s) did not succeed: {', '.join(failed_steps)}",
            {"failed_steps": failed_steps}
        )
        self.failed_steps = failed_steps


class WorkspaceError(ExecutionError):
    """Working directory is missing or holds no Terraform configuration."""
    pass


# =============================================================================
# Artifact Errors
# =============================================================================

class ArtifactError(TfPipeError):
    """Artifact store operation failed."""
    pass


class ArtifactNotFoundError(ArtifactError):
    """Artifact missing or expired."""

    def __init__(self, run_id: str, name: str):
        super().__init__(
            f"Artifact '{name}' not found for run {run_id}",
            {"run_id": run_id, "name": name}
        )
        self.run_id = run_id
        self.name = name


# =============================================================================
# Comment Errors
# =============================================================================

class CommentError(TfPipeError):
    """Posting a pull-request comment failed."""

    def __init__(self, message: str, status_code: int | None = None):
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(message, details)
        self.status_code = status_code
