"""
Triggering-event context for GitHub Actions runs.

The runner exposes the repository as ``GITHUB_REPOSITORY`` (``owner/repo``)
and the webhook payload as a JSON file at ``GITHUB_EVENT_PATH``.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from services.plan_pipeline.errors import DestinationUnresolvedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestDestination:
    """A pull request addressed through the issues API."""

    owner: str
    repo: str
    issue_number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.issue_number}"


def load_event_payload(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Read the webhook payload; empty when the runner did not provide one."""
    environ = os.environ if environ is None else environ
    event_path = environ.get("GITHUB_EVENT_PATH")
    if not event_path or not os.path.exists(event_path):
        logger.debug(f"No event payload at {event_path!r}")
        return {}

    try:
        with open(event_path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read event payload {event_path}: {e}")
        raise DestinationUnresolvedError(f"unreadable event payload at {event_path}: {e}") from e
    return payload if isinstance(payload, dict) else {}


def resolve_request_destination(
    environ: Optional[Mapping[str, str]] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> Optional[RequestDestination]:
    """
    Identify the pull request that triggered the run.

    Returns:
        RequestDestination, or None outside a pull-request-triggered context
    """
    environ = os.environ if environ is None else environ
    if payload is None:
        payload = load_event_payload(environ)

    pull_request = payload.get("pull_request") or {}
    number = pull_request.get("number")
    if number is None:
        return None

    owner, _, repo = (environ.get("GITHUB_REPOSITORY") or "").partition("/")
    if not owner or not repo:
        repository = payload.get("repository") or {}
        owner = (repository.get("owner") or {}).get("login", "")
        repo = repository.get("name", "")
    if not owner or not repo:
        return None

    try:
        issue_number = int(number)
    except (TypeError, ValueError) as e:
        raise DestinationUnresolvedError(f"invalid pull request number {number!r}") from e

    return RequestDestination(owner=owner, repo=repo, issue_number=issue_number)
