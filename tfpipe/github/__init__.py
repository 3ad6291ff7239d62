"""
GitHub integration - trigger context and pull-request comments.
"""

from tfpipe.github.client import GitHubClient
from tfpipe.github.context import trigger_from_env

__all__ = ["GitHubClient", "trigger_from_env"]
