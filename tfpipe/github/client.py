"""
GitHub REST client - pull-request comments.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import requests
from loguru import logger

from tfpipe.core.exceptions import CommentError
from tfpipe.utils.logger import log_prefix

VALID_REPO_SLUG_PATTERN = re.compile(r'^[a-zA-Z0-9_.-]+/[a-zA-Z0-9_.-]+$')


def validate_repo_slug(value: str) -> str:
    """Validate a repository slug (owner/repo)."""
    if not value or not isinstance(value, str):
        raise ValueError("Invalid repo slug: must be non-empty string")
    value = value.strip()
    if not VALID_REPO_SLUG_PATTERN.match(value):
        raise ValueError("Invalid repo slug: must be owner/repo format")
    return value


class GitHubClient:
    """Minimal GitHub REST client for issue comments."""

    def __init__(
        self,
        token: Optional[str],
        api_url: str = "https://api.github.com",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def create_issue_comment(self, repository: str, issue_number: int, body: str) -> Dict[str, Any]:
        """
        Post a comment on an issue or pull request.

        Returns:
            The created comment as returned by the API.

        Raises:
            CommentError: On missing token, invalid repo, transport error or non-2xx response.
        """
        if not self.token:
            raise CommentError("No GitHub token available to post comments")
        try:
            repository = validate_repo_slug(repository)
        except ValueError as e:
            raise CommentError(str(e)) from e

        url = f"{self.api_url}/repos/{repository}/issues/{int(issue_number)}/comments"
        try:
            response = self.session.post(
                url,
                json={"body": body},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise CommentError(f"Comment request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            message = response.text[:300] if response.text else response.reason
            raise CommentError(
                f"GitHub API returned HTTP {response.status_code}: {message}",
                status_code=response.status_code,
            )

        logger.info(f"{log_prefix('💬')} Comment posted on {repository}#{issue_number}")
        try:
            return response.json()
        except ValueError:
            return {}
