"""
Terraform pipeline definition.

Four stages, run in order:

    terraform-checks        always
    terraform-apply         pull_request, needs checks
    terraform-plan-destroy  workflow_dispatch, needs checks
    terraform-destroy       workflow_dispatch, needs plan-destroy

The Terraform steps of the checks stage are soft-fail and chained on the
previous step's outcome; a final gate step turns any failure into a hard
stage failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from tfpipe.artifacts.store import ArtifactStore
from tfpipe.config.models import PipelineConfig
from tfpipe.core.exceptions import GateFailedError
from tfpipe.executors.make import MakeExecutor, check_tools, check_workspace
from tfpipe.pipeline.conditions import (
    any_step_not_succeeded,
    event_is,
    step_event_is,
    step_succeeded,
)
from tfpipe.pipeline.models import (
    CommandResult,
    EventType,
    StageSpec,
    StepContext,
    StepCondition,
    StepOutcome,
    StepSpec,
)
from tfpipe.report.comment import (
    APPLY_SECTIONS,
    APPLY_TITLE,
    CHECKS_SECTIONS,
    CHECKS_TITLE,
    CommentSection,
    render_stage_comment,
)
from tfpipe.report.publisher import CommentPublisher

CHECKS_STAGE = "terraform-checks"
APPLY_STAGE = "terraform-apply"
PLAN_DESTROY_STAGE = "terraform-plan-destroy"
DESTROY_STAGE = "terraform-destroy"

CHECK_STEPS = ("fmt", "init", "validate", "plan")


@dataclass
class PipelineServices:
    """Collaborators the step actions call into."""

    executor: MakeExecutor
    artifacts: ArtifactStore
    publisher: CommentPublisher
    tools: Optional[List[str]] = None  # executables the setup step requires


def _make_step(
    step_id: str,
    name: str,
    config: PipelineConfig,
    services: PipelineServices,
    continue_on_error: bool = False,
    condition: Optional[StepCondition] = None,
) -> StepSpec:
    target = config.target_for(step_id)

    def action(ctx: StepContext) -> CommandResult:
        return services.executor.run(target)

    return StepSpec(
        id=step_id,
        name=name,
        action=action,
        continue_on_error=continue_on_error,
        condition=condition,
        description=f"{config.make_command} {target}",
    )


def _gate_step(step_ids: tuple[str, ...]) -> StepSpec:
    def action(ctx: StepContext) -> CommandResult:
        failed = [s for s in step_ids if ctx.outcome(s) != StepOutcome.SUCCESS]
        raise GateFailedError(failed)

    return StepSpec(
        id="validate-status",
        name="Validate Status",
        action=action,
        condition=any_step_not_succeeded(*step_ids),
        description="exit 1 if any gated step did not succeed",
    )


def _comment_step(
    title: str,
    sections: tuple[CommentSection, ...],
    config: PipelineConfig,
    services: PipelineServices,
    condition: Optional[StepCondition] = None,
) -> StepSpec:
    def action(ctx: StepContext) -> CommandResult:
        body = render_stage_comment(
            title,
            sections,
            ctx.results,
            ctx.trigger,
            max_chars=config.comments.max_output_chars,
            max_body_chars=config.comments.max_comment_chars,
        )
        services.publisher.publish(ctx.trigger, body)
        return CommandResult(command=["comment"], exit_code=0, stdout=f"{title} comment published")

    return StepSpec(
        id="comment",
        name="Update Pull Request",
        action=action,
        condition=condition,
        description=f"post '{title}' comment",
    )


def build_checks_stage(config: PipelineConfig, services: PipelineServices) -> StageSpec:
    tools = services.tools if services.tools is not None else [config.make_command, "terraform"]
    plan_path = config.working_dir / config.artifacts.plan_file

    def checkout(ctx: StepContext) -> CommandResult:
        return check_workspace(config.working_dir)

    def setup(ctx: StepContext) -> CommandResult:
        return check_tools(tools)

    def upload_plan(ctx: StepContext) -> CommandResult:
        metadata = services.artifacts.upload(
            ctx.run_id,
            config.artifacts.name,
            plan_path,
            retention_days=config.artifacts.retention_days,
        )
        return CommandResult(
            command=["upload-artifact", config.artifacts.name],
            exit_code=0,
            stdout=f"Uploaded {metadata.filename} ({metadata.size_bytes} bytes), expires {metadata.expires_at}",
        )

    steps = [
        StepSpec(id="checkout", name="Checkout", action=checkout, description="verify workspace"),
        StepSpec(id="setup", name="Setup Terraform", action=setup, description="verify tools on PATH"),
        _make_step("fmt", "Terraform Format", config, services, continue_on_error=True),
        _make_step("init", "Terraform Init", config, services, continue_on_error=True,
                   condition=step_succeeded("fmt")),
        _make_step("validate", "Terraform Validate", config, services, continue_on_error=True,
                   condition=step_succeeded("init")),
        _make_step("plan", "Terraform Plan", config, services, continue_on_error=True,
                   condition=step_succeeded("validate")),
        _comment_step(CHECKS_TITLE, CHECKS_SECTIONS, config, services,
                      condition=step_event_is(EventType.PULL_REQUEST.value)),
        _gate_step(CHECK_STEPS),
        StepSpec(
            id="upload-plan",
            name="Upload Plan Artifact",
            action=upload_plan,
            condition=step_event_is(EventType.PULL_REQUEST.value),
            description=f"upload {config.artifacts.plan_file}",
        ),
    ]
    return StageSpec(name=CHECKS_STAGE, steps=steps)


def build_apply_stage(config: PipelineConfig, services: PipelineServices) -> StageSpec:
    def download_plan(ctx: StepContext) -> CommandResult:
        path = services.artifacts.download(ctx.run_id, config.artifacts.name, config.working_dir)
        return CommandResult(command=["download-artifact", config.artifacts.name], exit_code=0,
                             stdout=f"Restored {path}")

    steps = [
        StepSpec(id="download-plan", name="Download Plan Artifact", action=download_plan,
                 description=f"download {config.artifacts.plan_file}"),
        _make_step("apply", "Terraform Apply", config, services, continue_on_error=True),
        _comment_step(APPLY_TITLE, APPLY_SECTIONS, config, services),
        _gate_step(("apply",)),
    ]
    return StageSpec(
        name=APPLY_STAGE,
        steps=steps,
        needs=[CHECKS_STAGE],
        condition=event_is(EventType.PULL_REQUEST.value),
        uses_environment=True,
    )


def build_plan_destroy_stage(config: PipelineConfig, services: PipelineServices) -> StageSpec:
    return StageSpec(
        name=PLAN_DESTROY_STAGE,
        steps=[_make_step("plan-destroy", "Terraform Plan Destroy", config, services)],
        needs=[CHECKS_STAGE],
        condition=event_is(EventType.WORKFLOW_DISPATCH.value),
        uses_environment=True,
    )


def build_destroy_stage(config: PipelineConfig, services: PipelineServices) -> StageSpec:
    return StageSpec(
        name=DESTROY_STAGE,
        steps=[_make_step("destroy", "Terraform Destroy", config, services)],
        needs=[PLAN_DESTROY_STAGE],
        condition=event_is(EventType.WORKFLOW_DISPATCH.value),
        uses_environment=True,
    )


def build_terraform_pipeline(config: PipelineConfig, services: PipelineServices) -> List[StageSpec]:
    """Ordered stage list for the Terraform pipeline."""
    return [
        build_checks_stage(config, services),
        build_apply_stage(config, services),
        build_plan_destroy_stage(config, services),
        build_destroy_stage(config, services),
    ]
