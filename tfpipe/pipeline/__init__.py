"""
Pipeline - stage/step model and the sequential engine.

The Terraform pipeline itself lives in tfpipe.pipeline.definition.

Usage:
    from tfpipe.pipeline import PipelineEngine
    from tfpipe.pipeline.definition import build_terraform_pipeline

    stages = build_terraform_pipeline(config, services)
    run = PipelineEngine().run(stages, trigger)
    sys.exit(run.exit_code)
"""

from tfpipe.pipeline.engine import PipelineEngine
from tfpipe.pipeline.models import (
    CommandResult,
    EventType,
    PipelineRun,
    StageResult,
    StageSpec,
    StepContext,
    StepOutcome,
    StepResult,
    StepSpec,
    TriggerContext,
)

__all__ = [
    "CommandResult",
    "EventType",
    "PipelineEngine",
    "PipelineRun",
    "StageResult",
    "StageSpec",
    "StepContext",
    "StepOutcome",
    "StepResult",
    "StepSpec",
    "TriggerContext",
]
