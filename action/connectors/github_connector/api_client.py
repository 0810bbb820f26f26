"""
GitHub REST API client.
Covers the single call the plan action needs: creating a pull request
comment through the issues API.
"""
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_TIMEOUT = 30


class GitHubAPIError(Exception):
    """Custom error for GitHub API interactions."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class GitHubAPIClient:
    """Client for the GitHub REST API, authenticated with a token."""

    def __init__(self, token: str, api_url: Optional[str] = None, session: Optional[requests.Session] = None):
        """
        Args:
            token: ``GITHUB_TOKEN`` or a personal access token.
            api_url: API root, e.g. from ``GITHUB_API_URL`` on GitHub Enterprise.
            session: Optional pre-built ``requests.Session``.
        """
        self.token = token
        self.api_url = (api_url or GITHUB_API_BASE).rstrip("/")
        self._session = session if session is not None else requests.Session()

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _post(self, path: str, json_data: Dict[str, Any]) -> Dict[str, Any]:
        """POST JSON and return the decoded response; raises GitHubAPIError otherwise."""
        url = f"{self.api_url}{path}"
        try:
            response = self._session.post(
                url, headers=self._get_headers(), json=json_data, timeout=GITHUB_TIMEOUT
            )
        except requests.RequestException as e:
            logger.error(f"GitHub POST {url} failed: {e}")
            raise GitHubAPIError(f"Request to {url} failed: {e}", body=str(e)) from e

        if response.status_code != 201:
            logger.error(f"GitHub POST {url} failed: {response.status_code}")
            raise GitHubAPIError(
                f"GitHub POST {url} returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError:
            return {}

    def create_issue_comment(self, owner: str, repo: str, issue_number: int, body: str) -> Dict[str, Any]:
        """Create a comment on an issue or pull request."""
        path = f"/repos/{owner}/{repo}/issues/{issue_number}/comments"
        comment = self._post(path, json_data={"body": body})
        logger.info(f"Created comment {comment.get('id')} on {owner}/{repo}#{issue_number}")
        return comment
