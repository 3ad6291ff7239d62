"""
Step and stage conditions.

Small predicate builders over StepContext / TriggerContext, composed by the
pipeline definition.
"""

from __future__ import annotations

from tfpipe.pipeline.models import (
    StageCondition,
    StepCondition,
    StepContext,
    StepOutcome,
    TriggerContext,
)


def step_succeeded(step_id: str) -> StepCondition:
    """The earlier step's outcome is success."""

    def check(ctx: StepContext) -> bool:
        return ctx.outcome(step_id) == StepOutcome.SUCCESS

    check.__name__ = f"steps.{step_id}.outcome == 'success'"
    return check


def any_step_not_succeeded(*step_ids: str) -> StepCondition:
    """At least one of the steps did not succeed (including never ran)."""

    def check(ctx: StepContext) -> bool:
        return any(ctx.outcome(step_id) != StepOutcome.SUCCESS for step_id in step_ids)

    check.__name__ = " || ".join(f"steps.{s}.outcome != 'success'" for s in step_ids)
    return check


def step_event_is(event_name: str) -> StepCondition:
    def check(ctx: StepContext) -> bool:
        return ctx.trigger.event_name == event_name

    check.__name__ = f"event_name == '{event_name}'"
    return check


def event_is(event_name: str) -> StageCondition:
    """Stage condition: the run was triggered by event_name."""

    def check(trigger: TriggerContext) -> bool:
        return trigger.event_name == event_name

    check.__name__ = f"event_name == '{event_name}'"
    return check


def all_of(*conditions: StepCondition) -> StepCondition:
    def check(ctx: StepContext) -> bool:
        return all(condition(ctx) for condition in conditions)

    check.__name__ = " && ".join(c.__name__ for c in conditions)
    return check


def describe(condition) -> str:
    """Human-readable form of a condition."""
    if condition is None:
        return "always"
    return getattr(condition, "__name__", repr(condition))
