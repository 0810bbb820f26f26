"""GitHub REST API client and Actions event context."""

from connectors.github_connector.api_client import GitHubAPIClient, GitHubAPIError
from connectors.github_connector.event_context import (
    RequestDestination,
    load_event_payload,
    resolve_request_destination,
)

__all__ = [
    "GitHubAPIClient",
    "GitHubAPIError",
    "RequestDestination",
    "load_event_payload",
    "resolve_request_destination",
]
