"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from tfpipe.artifacts.store import ArtifactStore
from tfpipe.config.models import PipelineConfig
from tfpipe.pipeline.definition import PipelineServices
from tfpipe.pipeline.models import CommandResult, TriggerContext
from tfpipe.utils.security import clear_secrets


class FakeExecutor:
    """
    Stands in for MakeExecutor.

    exit_codes maps make target -> exit code (default 0). A successful
    `plan` target writes plan_file into the working directory, like the
    real Makefile does.
    """

    def __init__(
        self,
        working_dir: Path,
        exit_codes: Optional[Dict[str, int]] = None,
        outputs: Optional[Dict[str, str]] = None,
        plan_file: str = "plan.out",
        interrupt_on: Optional[str] = None,
    ):
        self.working_dir = Path(working_dir)
        self.exit_codes = exit_codes or {}
        self.outputs = outputs or {}
        self.plan_file = plan_file
        self.interrupt_on = interrupt_on
        self.calls: List[str] = []

    def run(self, target: str) -> CommandResult:
        self.calls.append(target)
        if target == self.interrupt_on:
            raise KeyboardInterrupt
        exit_code = self.exit_codes.get(target, 0)
        if target == "plan" and exit_code == 0:
            (self.working_dir / self.plan_file).write_text("binary plan", encoding="utf-8")
        stdout = self.outputs.get(target, f"{target} output")
        stderr = "" if exit_code == 0 else f"{target} error"
        return CommandResult(command=["make", target], exit_code=exit_code, stdout=stdout, stderr=stderr)


class RecordingPublisher:
    """CommentPublisher that keeps comments in memory."""

    def __init__(self):
        self.comments: List[tuple] = []

    def publish(self, trigger: TriggerContext, body: str) -> None:
        self.comments.append((trigger, body))

    @property
    def bodies(self) -> List[str]:
        return [body for _, body in self.comments]


@pytest.fixture(autouse=True)
def reset_secrets():
    """Registered secrets are process-global; start every test clean."""
    clear_secrets()
    yield
    clear_secrets()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A minimal Terraform working directory."""
    wd = tmp_path / "infra"
    wd.mkdir()
    (wd / "main.tf").write_text('terraform {}\n', encoding="utf-8")
    (wd / "Makefile").write_text("fmt:\n\tterraform fmt -check\n", encoding="utf-8")
    return wd


@pytest.fixture
def config(workspace: Path) -> PipelineConfig:
    return PipelineConfig(working_dir=workspace)


@pytest.fixture
def executor(workspace: Path) -> FakeExecutor:
    return FakeExecutor(workspace)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def services(config: PipelineConfig, executor: FakeExecutor, publisher: RecordingPublisher) -> PipelineServices:
    return PipelineServices(
        executor=executor,
        artifacts=ArtifactStore(config.artifact_dir),
        publisher=publisher,
        tools=[],
    )


@pytest.fixture
def pr_trigger() -> TriggerContext:
    return TriggerContext(
        event_name="pull_request",
        actor="octocat",
        repository="acme/infra",
        base_ref="main",
        pr_number=7,
        run_id="1001",
    )


@pytest.fixture
def dispatch_trigger() -> TriggerContext:
    return TriggerContext(
        event_name="workflow_dispatch",
        actor="octocat",
        repository="acme/infra",
        base_ref="main",
        run_id="2002",
    )
