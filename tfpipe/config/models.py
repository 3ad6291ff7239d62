"""
tfpipe Config - Configuration models.

Pydantic models for type-safe pipeline configuration.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

# Step id -> make target
DEFAULT_TARGETS: dict[str, str] = {
    "fmt": "fmt",
    "init": "init",
    "validate": "valid",
    "plan": "plan",
    "apply": "apply",
    "plan-destroy": "pland",
    "destroy": "destroy",
}

TARGET_PATTERN = re.compile(r'^[a-zA-Z0-9_.-]+$')

DEFAULT_PASSTHROUGH = ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_DEFAULT_REGION"]


class EnvConfig(BaseModel):
    """Environment variables passed through to every stage."""

    passthrough: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PASSTHROUGH),
        description="Variables forwarded to every make invocation",
    )
    required: list[str] = Field(
        default_factory=lambda: ["AWS_DEFAULT_REGION"],
        description="Variables that must be set before the pipeline starts",
    )
    secret: list[str] = Field(
        default_factory=lambda: ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"],
        description="Variables whose values are redacted from logs and comments",
    )


class ArtifactConfig(BaseModel):
    """Plan artifact settings."""

    dir: Path | None = Field(default=None, description="Artifact store root (default: <working_dir>/.tfpipe/artifacts)")
    name: str = Field(default="plan", description="Artifact name")
    plan_file: str = Field(default="plan.out", description="Plan file produced by the plan target")
    retention_days: int = Field(default=1, ge=1, le=90, description="Days before the artifact expires")


class CommentConfig(BaseModel):
    """Pull-request comment settings."""

    enabled: bool = Field(default=True, description="Post comments to the pull request")
    api_url: str = Field(default="https://api.github.com", description="GitHub API base URL")
    token_env: str = Field(default="GITHUB_TOKEN", description="Environment variable holding the API token")
    max_output_chars: int = Field(
        default=60000, ge=100, description="Per-section output limit before truncation"
    )
    max_comment_chars: int = Field(
        default=65536, ge=1000, le=65536, description="Limit for the whole comment body (GitHub rejects longer ones)"
    )
    timeout: int = Field(default=30, ge=1, le=300, description="HTTP timeout in seconds")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class LoggingConfig(BaseModel):
    """Log file settings."""

    file: str = Field(default="tfpipe.log", description="Log file path")
    rotation: str = Field(default="10 MB", description="Log rotation policy")
    retention: str = Field(default="1 week", description="Log retention policy")


class PipelineConfig(BaseModel):
    """Top-level pipeline configuration."""

    working_dir: Path = Field(default_factory=Path.cwd, description="Terraform working directory")
    make_command: str = Field(default="make", description="Make executable")
    targets: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_TARGETS),
        description="Make target per step id",
    )
    command_timeout: int = Field(default=3600, ge=1, description="Per-command timeout in seconds")
    env: EnvConfig = Field(default_factory=EnvConfig)
    artifacts: ArtifactConfig = Field(default_factory=ArtifactConfig)
    comments: CommentConfig = Field(default_factory=CommentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("targets")
    @classmethod
    def merge_default_targets(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = set(value) - set(DEFAULT_TARGETS)
        if unknown:
            raise ValueError(f"Unknown step id(s) in targets: {', '.join(sorted(unknown))}")
        for step_id, target in value.items():
            if not TARGET_PATTERN.match(target or ""):
                raise ValueError(f"Invalid make target for '{step_id}': {target!r}")
        return {**DEFAULT_TARGETS, **value}

    def target_for(self, step_id: str) -> str:
        """Make target for a step id."""
        return self.targets[step_id]

    @property
    def artifact_dir(self) -> Path:
        root = self.artifacts.dir
        if root is not None:
            return root if root.is_absolute() else self.working_dir / root
        return self.working_dir / ".tfpipe" / "artifacts"
