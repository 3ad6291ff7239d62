"""
Pipeline Engine - Sequential stage and step execution.

Stage gating:
    A stage runs only if every stage it needs concluded success and its own
    condition holds for the trigger; otherwise it is skipped.

Step gating:
    A step runs only while no earlier step in the stage concluded failure,
    and only if its own condition holds.
    A continue_on_error step that fails has outcome failure but conclusion
    success, so later steps still run and can inspect the outcome.
    An exception raised by a step action (other than KeyboardInterrupt)
    fails that step; it never escapes the engine.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from loguru import logger

from tfpipe.core.exceptions import TfPipeError
from tfpipe.pipeline.conditions import describe
from tfpipe.pipeline.models import (
    PipelineRun,
    StageResult,
    StageSpec,
    StepContext,
    StepOutcome,
    StepResult,
    StepSpec,
    TriggerContext,
)
from tfpipe.utils.logger import get_session_logger, log_prefix

StageListener = Callable[[StageResult], None]
StepListener = Callable[[str, StepResult], None]


class PipelineEngine:
    """
    Runs a list of StageSpec in order for one trigger.

    Listeners are called after each step and stage completes (used by the
    CLI for live progress output).
    """

    def __init__(
        self,
        on_step: Optional[StepListener] = None,
        on_stage: Optional[StageListener] = None,
    ):
        self.on_step = on_step
        self.on_stage = on_stage

    def run(self, stages: List[StageSpec], trigger: TriggerContext, run_id: Optional[str] = None) -> PipelineRun:
        """
        Execute the pipeline.

        Raises:
            ValueError: If a stage needs an unknown or later stage.
            KeyboardInterrupt: Re-raised after the run is marked cancelled;
                the partial PipelineRun is attached as `pipeline_run`.
        """
        self._validate_graph(stages)
        run = PipelineRun(run_id=run_id or trigger.run_id or "local", trigger=trigger)
        run_logger = get_session_logger(run.run_id)
        run_logger.info(
            f"{log_prefix('▶️')} Pipeline run {run.run_id} started (event={trigger.event_name}, actor={trigger.actor or '-'})"
        )

        concluded: Dict[str, StepOutcome] = {}
        try:
            for stage in stages:
                result = self._run_stage(stage, trigger, run, concluded)
                concluded[stage.name] = result.status
        except KeyboardInterrupt as interrupt:
            for stage in stages:
                if stage.name not in concluded and run.stage(stage.name) is None:
                    run.stages.append(StageResult(
                        name=stage.name,
                        status=StepOutcome.CANCELLED,
                        skip_reason="run cancelled",
                    ))
            run.completed_at = datetime.now(timezone.utc)
            run_logger.warning(f"{log_prefix('🛑')} Pipeline run {run.run_id} cancelled")
            interrupt.pipeline_run = run  # type: ignore[attr-defined]
            raise

        run.completed_at = datetime.now(timezone.utc)
        status = "succeeded" if run.succeeded else "failed"
        run_logger.info(f"{log_prefix('✅' if run.succeeded else '❌')} Pipeline run {run.run_id} {status}")
        return run

    def _validate_graph(self, stages: List[StageSpec]) -> None:
        seen: set[str] = set()
        for stage in stages:
            if stage.name in seen:
                raise ValueError(f"Duplicate stage name: {stage.name}")
            for need in stage.needs:
                if need not in seen:
                    raise ValueError(f"Stage '{stage.name}' needs '{need}', which is not declared before it")
            seen.add(stage.name)

    def _skip_reason(self, stage: StageSpec, trigger: TriggerContext, concluded: Dict[str, StepOutcome]) -> Optional[str]:
        for need in stage.needs:
            status = concluded.get(need)
            if status != StepOutcome.SUCCESS:
                return f"needed stage '{need}' did not succeed ({status.value if status else 'not run'})"
        if stage.condition is not None and not stage.condition(trigger):
            return f"condition not met: {describe(stage.condition)}"
        return None

    def _run_stage(
        self,
        stage: StageSpec,
        trigger: TriggerContext,
        run: PipelineRun,
        concluded: Dict[str, StepOutcome],
    ) -> StageResult:
        environment = trigger.base_ref if stage.uses_environment else None
        reason = self._skip_reason(stage, trigger, concluded)
        if reason is not None:
            logger.info(f"{log_prefix('⏭️')} Stage {stage.name} skipped: {reason}")
            result = StageResult(
                name=stage.name,
                status=StepOutcome.SKIPPED,
                environment=environment,
                skip_reason=reason,
            )
            run.stages.append(result)
            self._notify_stage(result)
            return result

        logger.info(f"{log_prefix('▶️')} Stage {stage.name} started" + (f" (environment={environment})" if environment else ""))
        result = StageResult(
            name=stage.name,
            status=StepOutcome.SUCCESS,
            environment=environment,
            started_at=datetime.now(timezone.utc),
        )
        run.stages.append(result)
        ctx = StepContext(trigger=trigger, run_id=run.run_id, stage=stage.name, environment=environment)

        try:
            for step in stage.steps:
                step_result = self._run_step(step, ctx)
                ctx.results[step.id] = step_result
                result.steps.append(step_result)
                self._notify_step(stage.name, step_result)
        except KeyboardInterrupt:
            cancelled = ctx.results.get(step.id)
            if cancelled is not None and cancelled not in result.steps:
                result.steps.append(cancelled)
            result.status = StepOutcome.CANCELLED
            result.completed_at = datetime.now(timezone.utc)
            self._notify_stage(result)
            raise

        if ctx.job_failed:
            result.status = StepOutcome.FAILURE
        result.completed_at = datetime.now(timezone.utc)

        if result.status == StepOutcome.SUCCESS:
            logger.info(f"{log_prefix('✅')} Stage {stage.name} succeeded")
        else:
            failed = [s.id for s in result.steps if s.conclusion == StepOutcome.FAILURE]
            logger.error(f"{log_prefix('❌')} Stage {stage.name} failed at: {', '.join(failed)}")
        self._notify_stage(result)
        return result

    def _should_run(self, step: StepSpec, ctx: StepContext) -> bool:
        if ctx.job_failed:
            return False
        if step.condition is not None and not step.condition(ctx):
            return False
        return True

    def _run_step(self, step: StepSpec, ctx: StepContext) -> StepResult:
        if not self._should_run(step, ctx):
            logger.debug(f"{log_prefix('⏭️')} Step {step.id} skipped")
            return StepResult.skipped(step)

        logger.info(f"{log_prefix('▶️')} Step {step.id}: {step.description or step.name}")
        start = time.monotonic()
        stdout = stderr = ""
        exit_code: Optional[int] = None
        error: Optional[str] = None

        try:
            command = step.action(ctx)
            if command is not None:
                stdout, stderr, exit_code = command.stdout, command.stderr, command.exit_code
            outcome = StepOutcome.SUCCESS if not exit_code else StepOutcome.FAILURE
            if exit_code:
                error = f"exit code {exit_code}"
        except KeyboardInterrupt:
            logger.warning(f"{log_prefix('🛑')} Step {step.id} cancelled")
            ctx.results[step.id] = StepResult(
                id=step.id,
                name=step.name,
                outcome=StepOutcome.CANCELLED,
                conclusion=StepOutcome.CANCELLED,
                duration_seconds=time.monotonic() - start,
            )
            raise
        except TfPipeError as e:
            outcome = StepOutcome.FAILURE
            error = e.message
            stderr = e.message
            exit_code = 1
        except Exception as e:
            logger.exception(f"{log_prefix('💥')} Step {step.id} raised {type(e).__name__}")
            outcome = StepOutcome.FAILURE
            error = f"{type(e).__name__}: {e}"
            stderr = error
            exit_code = 1

        duration = time.monotonic() - start
        conclusion = outcome
        if outcome == StepOutcome.FAILURE and step.continue_on_error:
            conclusion = StepOutcome.SUCCESS

        if outcome == StepOutcome.SUCCESS:
            logger.info(f"{log_prefix('✅')} Step {step.id} succeeded in {duration:.1f}s")
        elif step.continue_on_error:
            logger.warning(f"{log_prefix('⚠️')} Step {step.id} failed ({error}), continuing")
        else:
            logger.error(f"{log_prefix('❌')} Step {step.id} failed: {error}")

        return StepResult(
            id=step.id,
            name=step.name,
            outcome=outcome,
            conclusion=conclusion,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_seconds=duration,
            error=error,
        )

    def _notify_step(self, stage: str, result: StepResult) -> None:
        if self.on_step:
            self.on_step(stage, result)

    def _notify_stage(self, result: StageResult) -> None:
        if self.on_stage:
            self.on_stage(result)
