"""
Pipeline Data Models - Stages, steps, triggers and run results.

Specs (StageSpec, StepSpec) describe the pipeline declaratively; results
(StageResult, StepResult, PipelineRun) record what happened in one run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional


class EventType(str, Enum):
    """Trigger events the pipeline reacts to."""

    PULL_REQUEST = "pull_request"
    WORKFLOW_DISPATCH = "workflow_dispatch"


class StepOutcome(str, Enum):
    """Status of a step or stage."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


@dataclass
class TriggerContext:
    """What started the run and where it points."""

    event_name: str
    actor: str = ""
    repository: Optional[str] = None  # "owner/repo"
    base_ref: Optional[str] = None
    head_ref: Optional[str] = None
    pr_number: Optional[int] = None
    run_id: Optional[str] = None
    sha: Optional[str] = None

    @property
    def is_pull_request(self) -> bool:
        return self.event_name == EventType.PULL_REQUEST.value

    @property
    def is_manual_dispatch(self) -> bool:
        return self.event_name == EventType.WORKFLOW_DISPATCH.value


@dataclass
class CommandResult:
    """Captured result of one external command."""

    command: List[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class StepResult:
    """
    Result of one step.

    outcome is the raw status; conclusion is the status after
    continue_on_error is applied (a soft-failed step concludes success).
    """

    id: str
    name: str
    outcome: StepOutcome
    conclusion: StepOutcome
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    duration_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def combined_output(self) -> str:
        """stdout and stderr joined by a space."""
        return f"{self.stdout} {self.stderr}"

    @property
    def succeeded(self) -> bool:
        return self.outcome == StepOutcome.SUCCESS

    @classmethod
    def skipped(cls, spec: "StepSpec") -> "StepResult":
        return cls(
            id=spec.id,
            name=spec.name,
            outcome=StepOutcome.SKIPPED,
            conclusion=StepOutcome.SKIPPED,
        )


@dataclass
class StepContext:
    """State visible to step conditions and actions."""

    trigger: TriggerContext
    run_id: str
    stage: str
    environment: Optional[str] = None
    results: Dict[str, StepResult] = field(default_factory=dict)

    def outcome(self, step_id: str) -> Optional[StepOutcome]:
        result = self.results.get(step_id)
        return result.outcome if result else None

    def result(self, step_id: str) -> Optional[StepResult]:
        return self.results.get(step_id)

    @property
    def job_failed(self) -> bool:
        """True once any earlier step concluded failure."""
        return any(r.conclusion == StepOutcome.FAILURE for r in self.results.values())


StepAction = Callable[[StepContext], Optional[CommandResult]]
StepCondition = Callable[[StepContext], bool]
StageCondition = Callable[[TriggerContext], bool]


@dataclass
class StepSpec:
    """One step of a stage."""

    id: str
    name: str
    action: StepAction
    continue_on_error: bool = False
    condition: Optional[StepCondition] = None
    description: str = ""


@dataclass
class StageSpec:
    """A named, ordered group of steps."""

    name: str
    steps: List[StepSpec]
    needs: List[str] = field(default_factory=list)
    condition: Optional[StageCondition] = None
    uses_environment: bool = False  # bind to the trigger's base ref


@dataclass
class StageResult:
    """Result of one stage."""

    name: str
    status: StepOutcome
    steps: List[StepResult] = field(default_factory=list)
    environment: Optional[str] = None
    skip_reason: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def ran(self) -> bool:
        return self.status not in (StepOutcome.SKIPPED,)

    @property
    def succeeded(self) -> bool:
        return self.status == StepOutcome.SUCCESS

    def step(self, step_id: str) -> Optional[StepResult]:
        for result in self.steps:
            if result.id == step_id:
                return result
        return None


@dataclass
class PipelineRun:
    """Result of a whole pipeline run."""

    run_id: str
    trigger: TriggerContext
    stages: List[StageResult] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    def stage(self, name: str) -> Optional[StageResult]:
        for result in self.stages:
            if result.name == name:
                return result
        return None

    @property
    def executed_stages(self) -> List[StageResult]:
        return [s for s in self.stages if s.ran]

    @property
    def succeeded(self) -> bool:
        """No stage failed or was cancelled."""
        return all(
            s.status in (StepOutcome.SUCCESS, StepOutcome.SKIPPED) for s in self.stages
        )

    @property
    def cancelled(self) -> bool:
        return any(s.status == StepOutcome.CANCELLED for s in self.stages)

    @property
    def exit_code(self) -> int:
        if self.cancelled:
            return 130
        return 0 if self.succeeded else 1
