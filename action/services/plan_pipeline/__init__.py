"""Compile, plan and publish pipeline for Wing pull requests."""

from services.plan_pipeline.errors import (
    CommandFailedError,
    ConfigInvalidError,
    DestinationUnresolvedError,
    LaunchFailedError,
    PlanPipelineError,
    PublishRejectedError,
    StateLocatorMissingError,
)

__all__ = [
    "PlanPipelineError",
    "ConfigInvalidError",
    "LaunchFailedError",
    "CommandFailedError",
    "StateLocatorMissingError",
    "DestinationUnresolvedError",
    "PublishRejectedError",
]
