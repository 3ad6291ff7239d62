"""
Reporting - pull-request comment rendering and publishing.
"""

from tfpipe.report.comment import (
    APPLY_SECTIONS,
    APPLY_TITLE,
    CHECKS_SECTIONS,
    CHECKS_TITLE,
    CommentSection,
    render_stage_comment,
)
from tfpipe.report.publisher import (
    CommentPublisher,
    ConsoleCommentPublisher,
    GitHubCommentPublisher,
)

__all__ = [
    "APPLY_SECTIONS",
    "APPLY_TITLE",
    "CHECKS_SECTIONS",
    "CHECKS_TITLE",
    "CommentPublisher",
    "CommentSection",
    "ConsoleCommentPublisher",
    "GitHubCommentPublisher",
    "render_stage_comment",
]
