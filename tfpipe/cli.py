#!/usr/bin/env python3
"""
tfpipe CLI - Main entry point for the Terraform pipeline runner.

This module provides:
- `run`: execute the pipeline for a trigger
- `show`: print the stage graph for an event without running it
- `artifacts`: inspect and prune stored plan artifacts
"""
import os
import sys
from datetime import datetime
from typing import Optional

import click
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tfpipe import __version__
from tfpipe.artifacts.store import ArtifactStore
from tfpipe.config import check_required_env, load_config, passthrough_env, secret_values
from tfpipe.config.models import PipelineConfig
from tfpipe.core.exceptions import ConfigurationError
from tfpipe.executors.make import MakeExecutor
from tfpipe.github.client import GitHubClient
from tfpipe.github.context import trigger_from_env
from tfpipe.pipeline.definition import PipelineServices, build_terraform_pipeline
from tfpipe.pipeline.engine import PipelineEngine
from tfpipe.report.publisher import (
    CommentPublisher,
    ConsoleCommentPublisher,
    GitHubCommentPublisher,
)
from tfpipe.utils.display import DisplayManager, tfpipe_theme
from tfpipe.utils.logger import setup_logger
from tfpipe.utils.security import register_secrets

console = Console(theme=tfpipe_theme)

EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def _load_config_or_exit(config_path: Optional[str], working_dir: Optional[str]) -> PipelineConfig:
    try:
        return load_config(config_path, working_dir)
    except ConfigurationError as e:
        console.print(f"[error]Configuration error: {escape(e.message)}[/error]")
        sys.exit(EXIT_CONFIG_ERROR)


def _init_logging(ctx: click.Context, config: PipelineConfig) -> None:
    session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:19]
    setup_logger(
        verbose=ctx.obj["verbose"] or ctx.obj["debug"],
        session_id=session_id,
        log_file=os.environ.get("TFPIPE_LOG_FILE") or config.logging.file,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
    )


def build_publisher(config: PipelineConfig, no_comment: bool, display: DisplayManager) -> CommentPublisher:
    """Pick where comments go: GitHub when enabled and a token is set, else the console."""
    if no_comment or not config.comments.enabled:
        return ConsoleCommentPublisher(display.console)

    token = os.environ.get(config.comments.token_env)
    if not token:
        logger.warning(f"{config.comments.token_env} not set, comments will be printed instead of posted")
        return ConsoleCommentPublisher(display.console)

    client = GitHubClient(token, api_url=config.comments.api_url, timeout=config.comments.timeout)
    return GitHubCommentPublisher(client)


def build_services(config: PipelineConfig, publisher: CommentPublisher) -> PipelineServices:
    executor = MakeExecutor(
        config.working_dir,
        make_command=config.make_command,
        extra_env=passthrough_env(config),
        timeout=config.command_timeout,
    )
    return PipelineServices(
        executor=executor,
        artifacts=ArtifactStore(config.artifact_dir),
        publisher=publisher,
    )


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="tfpipe")
@click.option('--verbose', '-v', is_flag=True, help='Log to stderr')
@click.option('--debug', '-d', is_flag=True, help='Enable debug output')
@click.pass_context
def cli(ctx, verbose, debug):
    """
    tfpipe - Terraform pipeline runner.

    Runs fmt, init, validate and plan; then apply on pull requests, or
    plan-destroy and destroy on manual dispatch.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option('--event', '-e', default=None, help='Trigger event (pull_request, workflow_dispatch, ...; default: GITHUB_EVENT_NAME or local)')
@click.option('--base-ref', default=None, help='Target branch / environment')
@click.option('--actor', default=None, help='User who triggered the run')
@click.option('--repo', default=None, help='Repository slug (owner/repo)')
@click.option('--pr', 'pr_number', type=int, default=None, help='Pull request number')
@click.option('--run-id', default=None, help='Run identifier (defaults to GITHUB_RUN_ID)')
@click.option('--working-dir', '-C', type=click.Path(file_okay=False), default=None,
              help='Terraform working directory')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Path to tfpipe.yaml')
@click.option('--no-comment', is_flag=True, help='Print comments instead of posting them')
@click.pass_context
def run(ctx, event, base_ref, actor, repo, pr_number, run_id, working_dir, config_path, no_comment):
    """
    Run the pipeline for a trigger.

    Example: tfpipe run --event pull_request --pr 42 --base-ref main
    """
    config = _load_config_or_exit(config_path, working_dir)
    _init_logging(ctx, config)

    trigger = trigger_from_env(
        event_name=event,
        actor=actor,
        repository=repo,
        base_ref=base_ref,
        pr_number=pr_number,
        run_id=run_id,
    )

    try:
        check_required_env(config)
    except ConfigurationError as e:
        console.print(f"[error]{escape(e.message)}[/error]")
        sys.exit(EXIT_CONFIG_ERROR)

    register_secrets(secret_values(config))

    display = DisplayManager(console)
    services = build_services(config, build_publisher(config, no_comment, display))
    services.artifacts.prune()
    stages = build_terraform_pipeline(config, services)

    engine = PipelineEngine(on_step=display.show_step, on_stage=display.show_stage)
    display.show_header(trigger, trigger.run_id or "local")

    try:
        result = engine.run(stages, trigger)
    except KeyboardInterrupt as interrupt:
        partial = getattr(interrupt, "pipeline_run", None)
        if partial is not None:
            display.show_summary(partial)
        console.print("\n[warning]Interrupted[/warning]")
        sys.exit(EXIT_INTERRUPTED)

    display.show_summary(result)
    sys.exit(result.exit_code)


@cli.command()
@click.option('--event', '-e', default="pull_request", show_default=True, help='Trigger event')
@click.option('--working-dir', '-C', type=click.Path(file_okay=False), default=None,
              help='Terraform working directory')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Path to tfpipe.yaml')
@click.pass_context
def show(ctx, event, working_dir, config_path):
    """Show the stages and which would run for an event (nothing is executed)."""
    config = _load_config_or_exit(config_path, working_dir)
    _init_logging(ctx, config)
    display = DisplayManager(console)
    services = build_services(config, ConsoleCommentPublisher(console))
    stages = build_terraform_pipeline(config, services)
    trigger = trigger_from_env(environ={}, event_name=event)
    display.show_plan(stages, trigger)


@cli.group()
def artifacts():
    """Manage stored plan artifacts."""


@artifacts.command("list")
@click.option('--working-dir', '-C', type=click.Path(file_okay=False), default=None)
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None)
@click.pass_context
def artifacts_list(ctx, working_dir, config_path):
    """List stored artifacts."""
    config = _load_config_or_exit(config_path, working_dir)
    _init_logging(ctx, config)
    store = ArtifactStore(config.artifact_dir)
    items = store.list_artifacts()
    if not items:
        console.print("[info]No artifacts stored[/info]")
        return

    table = Table(title=f"Artifacts in {store.root}")
    table.add_column("Run", style="cyan")
    table.add_column("Name")
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("Expires")
    for item in items:
        expires = "[error]expired[/error]" if item.expired else item.expires_at
        table.add_row(item.run_id, item.name, item.filename, str(item.size_bytes), expires)
    console.print(table)


@artifacts.command("prune")
@click.option('--working-dir', '-C', type=click.Path(file_okay=False), default=None)
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None)
@click.pass_context
def artifacts_prune(ctx, working_dir, config_path):
    """Delete expired artifacts."""
    config = _load_config_or_exit(config_path, working_dir)
    _init_logging(ctx, config)
    removed = ArtifactStore(config.artifact_dir).prune()
    console.print(f"Removed {removed} expired artifact(s)")


@cli.command()
def version():
    """Show version information."""
    console.print(f"tfpipe v{__version__}")


def main():
    """Entry point for the tfpipe CLI."""
    cli()


if __name__ == "__main__":
    main()
