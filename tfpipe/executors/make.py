"""
Make Executor - Run make-wrapped Terraform targets.

SECURITY: Uses list-based subprocess execution (shell=False); target names
are validated before use.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from loguru import logger

from tfpipe.core.exceptions import (
    CommandTimeoutError,
    ToolNotFoundError,
    WorkspaceError,
)
from tfpipe.pipeline.models import CommandResult

VALID_TARGET_PATTERN = re.compile(r'^[a-zA-Z0-9_.-]+$')

# Files that mark a directory as a Terraform workspace
WORKSPACE_MARKERS = ("Makefile", "makefile", "GNUmakefile")


def validate_target(target: str) -> str:
    """Validate a make target name."""
    if not target or not isinstance(target, str):
        raise ValueError("Invalid target: must be non-empty string")
    target = target.strip()
    if not VALID_TARGET_PATTERN.match(target):
        raise ValueError(f"Invalid target '{target}': contains invalid characters")
    return target


class MakeExecutor:
    """
    Runs `make <target>` in the Terraform working directory.

    Output is always captured; a non-zero exit is returned, not raised,
    so callers decide whether the failure is fatal.
    """

    def __init__(
        self,
        working_dir: Path,
        make_command: str = "make",
        extra_env: Optional[Mapping[str, str]] = None,
        timeout: int = 3600,
    ):
        self.working_dir = Path(working_dir)
        self.make_command = make_command
        self.extra_env: Dict[str, str] = dict(extra_env or {})
        self.timeout = timeout

    def build_command(self, target: str) -> List[str]:
        return [self.make_command, validate_target(target)]

    def build_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(self.extra_env)
        # Terraform must never prompt inside a pipeline
        env.setdefault("TF_INPUT", "0")
        env.setdefault("TF_IN_AUTOMATION", "1")
        return env

    def run(self, target: str) -> CommandResult:
        """
        Run a make target.

        Raises:
            ToolNotFoundError: If make is not installed.
            CommandTimeoutError: If the target exceeds the timeout.
        """
        cmd = self.build_command(target)
        logger.debug(f"Running {' '.join(cmd)} in {self.working_dir}")

        start = time.monotonic()
        try:
            completed = subprocess.run(
                cmd,
                shell=False,
                cwd=str(self.working_dir),
                env=self.build_env(),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(self.make_command) from e
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(" ".join(cmd), self.timeout) from e

        duration = time.monotonic() - start
        logger.debug(f"{' '.join(cmd)} exited {completed.returncode} after {duration:.1f}s")

        return CommandResult(
            command=cmd,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration_seconds=duration,
        )


def check_workspace(working_dir: Path) -> CommandResult:
    """
    Verify the working directory holds a Terraform configuration.

    Raises:
        WorkspaceError: If the directory is missing or has no .tf files / Makefile.
    """
    working_dir = Path(working_dir)
    if not working_dir.is_dir():
        raise WorkspaceError(f"Working directory not found: {working_dir}")

    tf_files = sorted(p.name for p in working_dir.glob("*.tf"))
    has_makefile = any((working_dir / name).is_file() for name in WORKSPACE_MARKERS)
    if not tf_files and not has_makefile:
        raise WorkspaceError(
            f"No Terraform configuration or Makefile in {working_dir}",
            {"working_dir": str(working_dir)},
        )

    lines = [f"Workspace: {working_dir}"]
    if tf_files:
        lines.append(f"Terraform files: {', '.join(tf_files)}")
    if has_makefile:
        lines.append("Makefile: present")
    return CommandResult(command=["checkout"], exit_code=0, stdout="\n".join(lines))


def check_tools(tools: List[str]) -> CommandResult:
    """
    Verify the given executables are on PATH.

    Raises:
        ToolNotFoundError: For the first missing tool.
    """
    found = []
    for tool in tools:
        path = shutil.which(tool)
        if path is None:
            raise ToolNotFoundError(tool)
        found.append(f"{tool}: {path}")
    return CommandResult(command=["setup"], exit_code=0, stdout="\n".join(found))
