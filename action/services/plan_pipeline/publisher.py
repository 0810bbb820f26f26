"""
Publishes the plan report as a pull request comment.
"""

import logging
from typing import Optional

from connectors.github_connector.api_client import GitHubAPIClient, GitHubAPIError
from connectors.github_connector.event_context import RequestDestination
from services.plan_pipeline.errors import DestinationUnresolvedError, PublishRejectedError
from services.plan_pipeline.report import PlanReport, render_comment

logger = logging.getLogger(__name__)


class PlanPublisher:
    """Creates exactly one comment per call; earlier comments are left alone."""

    def __init__(self, client: GitHubAPIClient):
        self.client = client

    def publish(self, raw_output: str, destination: Optional[RequestDestination]) -> dict:
        """Bound, render and post *raw_output* to *destination*."""
        return self.publish_report(PlanReport.from_output(raw_output), destination)

    def publish_report(self, report: PlanReport, destination: Optional[RequestDestination]) -> dict:
        if destination is None:
            raise DestinationUnresolvedError()

        body = render_comment(report)
        logger.info(
            f"[PLAN] Posting plan to {destination} ({len(body)} characters, truncated={report.truncated})"
        )
        try:
            return self.client.create_issue_comment(
                destination.owner, destination.repo, destination.issue_number, body
            )
        except GitHubAPIError as e:
            raise PublishRejectedError(e.status_code, e.body or str(e)) from e
