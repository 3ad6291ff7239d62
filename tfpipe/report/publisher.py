"""
Comment publishers - where a rendered comment goes.

GitHubCommentPublisher posts to the pull request; ConsoleCommentPublisher
prints locally (no token, or --no-comment).
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from loguru import logger
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from tfpipe.core.exceptions import CommentError
from tfpipe.github.client import GitHubClient
from tfpipe.pipeline.models import TriggerContext


@runtime_checkable
class CommentPublisher(Protocol):
    """Destination for stage comments."""

    def publish(self, trigger: TriggerContext, body: str) -> None:
        ...


class GitHubCommentPublisher:
    """Posts comments on the triggering pull request."""

    def __init__(self, client: GitHubClient):
        self.client = client

    def publish(self, trigger: TriggerContext, body: str) -> None:
        """
        Raises:
            CommentError: If the trigger has no repository or pull request number.
        """
        if not trigger.repository:
            raise CommentError("Cannot post comment: repository is unknown")
        if trigger.pr_number is None:
            raise CommentError("Cannot post comment: no pull request number for this run")
        self.client.create_issue_comment(trigger.repository, trigger.pr_number, body)


class ConsoleCommentPublisher:
    """Prints comments to the terminal instead of posting them."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.published: List[str] = []

    def publish(self, trigger: TriggerContext, body: str) -> None:
        logger.debug("Rendering comment to console")
        self.published.append(body)
        self.console.print(Panel(Markdown(body), title="Pull request comment", border_style="blue"))
