"""
Display Manager for tfpipe.
Centralizes terminal output for pipeline progress and summaries.
"""
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from tfpipe.pipeline.conditions import describe
from tfpipe.pipeline.models import PipelineRun, StageResult, StageSpec, StepOutcome, StepResult, TriggerContext

tfpipe_theme = Theme({
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "skipped": "dim",
    "cancelled": "magenta",
})

_OUTCOME_STYLE = {
    StepOutcome.SUCCESS: ("success", "✓"),
    StepOutcome.FAILURE: ("error", "✗"),
    StepOutcome.SKIPPED: ("skipped", "-"),
    StepOutcome.CANCELLED: ("cancelled", "■"),
}


def outcome_label(outcome: StepOutcome) -> str:
    style, symbol = _OUTCOME_STYLE[outcome]
    return f"[{style}]{symbol} {outcome.value}[/{style}]"


class DisplayManager:
    """Renders pipeline progress and results with rich."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(theme=tfpipe_theme)

    def show_header(self, trigger: TriggerContext, run_id: str) -> None:
        self.console.print(
            f"\n[bold cyan]tfpipe[/bold cyan] run [bold]{run_id}[/bold] "
            f"[dim](event={trigger.event_name}, actor={trigger.actor or '-'}, base_ref={trigger.base_ref or '-'})[/dim]\n"
        )

    def show_step(self, stage: str, result: StepResult) -> None:
        if result.outcome == StepOutcome.SKIPPED:
            self.console.print(f"  [skipped]- {result.name} (skipped)[/skipped]")
            return
        line = f"  {outcome_label(result.outcome)} {result.name} [dim]{result.duration_seconds:.1f}s[/dim]"
        if result.outcome == StepOutcome.FAILURE and result.conclusion == StepOutcome.SUCCESS:
            line += " [warning](continue-on-error)[/warning]"
        self.console.print(line)
        if result.outcome == StepOutcome.FAILURE and result.error:
            self.console.print(f"    [error]{escape(result.error)}[/error]")

    def show_stage(self, result: StageResult) -> None:
        if result.status == StepOutcome.SKIPPED:
            self.console.print(f"[skipped]⏭  {result.name}: skipped ({escape(result.skip_reason or '')})[/skipped]")
            return
        self.console.print(f"[bold]{result.name}[/bold] → {outcome_label(result.status)}\n")

    def show_summary(self, run: PipelineRun) -> None:
        table = Table(title=f"Pipeline run {run.run_id}")
        table.add_column("Stage", style="cyan")
        table.add_column("Status")
        table.add_column("Environment", style="dim")
        table.add_column("Details", style="dim")

        for stage in run.stages:
            if stage.status == StepOutcome.FAILURE:
                details = ", ".join(s.id for s in stage.steps if s.outcome == StepOutcome.FAILURE)
            else:
                details = stage.skip_reason or ""
            table.add_row(stage.name, outcome_label(stage.status), stage.environment or "", escape(details))

        self.console.print(table)
        if run.succeeded:
            self.console.print("[success]Pipeline succeeded[/success]")
        elif run.cancelled:
            self.console.print("[cancelled]Pipeline cancelled[/cancelled]")
        else:
            self.console.print("[error]Pipeline failed[/error]")

    def show_plan(self, stages: List[StageSpec], trigger: TriggerContext) -> None:
        """Print the stage graph and which stages this trigger would run."""
        table = Table(title=f"Pipeline for event '{trigger.event_name}'")
        table.add_column("Stage", style="cyan")
        table.add_column("Needs")
        table.add_column("Condition")
        table.add_column("Runs?")
        table.add_column("Steps", style="dim")

        runs: dict[str, bool] = {}
        for stage in stages:
            condition_ok = stage.condition is None or stage.condition(trigger)
            will_run = condition_ok and all(runs.get(n, False) for n in stage.needs)
            runs[stage.name] = will_run
            table.add_row(
                stage.name,
                ", ".join(stage.needs) or "-",
                describe(stage.condition),
                "[success]yes[/success]" if will_run else "[skipped]no[/skipped]",
                ", ".join(step.id for step in stage.steps),
            )
        self.console.print(table)
