"""
Pull-request comment rendering.

One collapsible section per Terraform step, each labelled with the step
outcome and holding the captured stdout/stderr.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from tfpipe.pipeline.models import StepOutcome, StepResult, TriggerContext
from tfpipe.utils.security import redact_sensitive_info, strip_ansi

TRUNCATION_MARKER = "\n... (output truncated)"

# GitHub rejects issue comments longer than this (HTTP 422)
GITHUB_COMMENT_LIMIT = 65536


@dataclass(frozen=True)
class CommentSection:
    """How one step is presented in the comment."""

    step_id: str
    heading: str
    summary: str


CHECKS_TITLE = "Terraform Checks"
CHECKS_SECTIONS = (
    CommentSection("fmt", "Terraform Format and Style 🖌", "Show Format"),
    CommentSection("init", "Terraform Initialization ⚙️", "Show Initialization"),
    CommentSection("validate", "Terraform Validation 🤖", "Show Validation"),
    CommentSection("plan", "Terraform Plan 📖", "Show Plan"),
)

APPLY_TITLE = "Terraform Apply"
APPLY_SECTIONS = (
    CommentSection("apply", "Terraform Apply 📖", "Show Apply"),
)


def clean_output(text: str, max_chars: int) -> str:
    """Strip ANSI codes, redact secrets and truncate to max_chars."""
    text = redact_sensitive_info(strip_ansi(text or ""))
    if len(text) > max_chars:
        text = text[:max_chars] + TRUNCATION_MARKER
    return text


def _fence(text: str) -> str:
    # A fence longer than any backtick run inside the output
    longest = 0
    run = 0
    for char in text:
        run = run + 1 if char == "`" else 0
        longest = max(longest, run)
    return "`" * max(3, longest + 1)


def _raw_output(result: Optional[StepResult]) -> str:
    return result.combined_output if result else " "


def _share_budget(lengths: List[int], total: int) -> List[int]:
    """
    Split total characters across sections, shortest first.

    Sections that fit keep their full length; what they leave over is shared
    evenly by the larger ones, so the largest outputs are cut the most.
    """
    budgets = [0] * len(lengths)
    remaining = max(total, 0)
    order = sorted(range(len(lengths)), key=lengths.__getitem__)
    for position, index in enumerate(order):
        share = remaining // (len(order) - position)
        budgets[index] = min(lengths[index], share)
        remaining -= budgets[index]
    return budgets


def render_section(section: CommentSection, result: Optional[StepResult], max_chars: int) -> str:
    outcome = result.outcome.value if result else StepOutcome.SKIPPED.value
    output = clean_output(_raw_output(result), max_chars)
    fence = _fence(output)
    return (
        f"#### {section.heading}`{outcome}`\n"
        f"<details><summary>{section.summary}</summary>\n"
        "\n"
        f"{fence}terraform\n"
        f"{output}\n"
        f"{fence}\n"
        "\n"
        "</details>\n"
    )


def render_stage_comment(
    title: str,
    sections: Sequence[CommentSection],
    results: Dict[str, StepResult],
    trigger: TriggerContext,
    max_chars: int = 60000,
    max_body_chars: int = GITHUB_COMMENT_LIMIT,
) -> str:
    """
    Render the Markdown body for one stage.

    Each section's output is first capped at max_chars. The whole body is
    then kept within max_body_chars by sharing the remaining room across
    sections, truncating the largest outputs first.

    Args:
        title: Heading, e.g. "Terraform Checks".
        sections: Steps to include, in order.
        results: Step results by step id; a missing step renders as skipped.
        trigger: Run trigger, for the pusher/action footer.
        max_chars: Per-section output limit.
        max_body_chars: Limit for the whole comment body.
    """
    section_results = [results.get(section.step_id) for section in sections]

    def render(limits: List[int]) -> str:
        parts: List[str] = [f"## {title}:\n"]
        for section, result, limit in zip(sections, section_results, limits):
            parts.append(render_section(section, result, limit))
        parts.append(f"*Pusher: @{trigger.actor}, Action: `{trigger.event_name}`*")
        return "\n".join(parts)

    # Every section truncated to nothing; includes one marker per section
    skeleton = render([0] * len(sections))
    lengths = [
        min(max_chars, len(redact_sensitive_info(strip_ansi(_raw_output(result)))))
        for result in section_results
    ]
    room = max_body_chars - len(skeleton)

    body = render(_share_budget(lengths, room))
    while len(body) > max_body_chars and room > 0:
        # Longer fences after truncation can overshoot the estimate
        room -= len(body) - max_body_chars
        body = render(_share_budget(lengths, room))
    if len(body) > max_body_chars:
        body = skeleton
    return body
