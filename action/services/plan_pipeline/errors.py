"""
Exceptions raised by the plan pipeline.

Every failure is terminal for the run: the entry point catches
``PlanPipelineError``, marks the job failed with ``str(error)`` and exits.
"""

from typing import Optional

# Lines of captured output quoted in a CommandFailedError message
FAILURE_TAIL_LINES = 20


class PlanPipelineError(Exception):
    """Base exception for plan pipeline failures."""


class ConfigInvalidError(PlanPipelineError):
    """A required configuration field is empty or unusable."""

    def __init__(self, field: str, detail: Optional[str] = None):
        self.field = field
        self.detail = detail
        message = detail if detail else f"{field} is required"
        super().__init__(message)


class LaunchFailedError(PlanPipelineError):
    """The process could not be started at all."""

    def __init__(self, command: str, os_error: OSError):
        self.command = command
        self.os_error = os_error
        super().__init__(f"Failed to launch {command}: {os_error}")


class CommandFailedError(PlanPipelineError):
    """The process ran and exited with a nonzero status."""

    def __init__(self, command: str, exit_code: int, output: str):
        self.command = command
        self.exit_code = exit_code
        self.output = output
        message = f"{command} exited with code {exit_code}"
        tail = "\n".join(output.rstrip().splitlines()[-FAILURE_TAIL_LINES:])
        if tail:
            message = f"{message}:\n{tail}"
        super().__init__(message)


class StateLocatorMissingError(PlanPipelineError):
    """The remote-state backend needs a state locator that cannot be derived."""

    def __init__(self, variable: str, backend: str = "s3"):
        self.variable = variable
        self.backend = backend
        super().__init__(
            f"{variable} must be set to derive the state file for the {backend} backend"
        )


class DestinationUnresolvedError(PlanPipelineError):
    """The run was not triggered by an event that identifies a pull request."""

    def __init__(self, reason: str = "no pull request found in the event context"):
        self.reason = reason
        super().__init__(f"Cannot publish plan: {reason}")


class PublishRejectedError(PlanPipelineError):
    """The collaboration API did not accept the comment."""

    def __init__(self, status: Optional[int], body: str):
        self.status = status
        self.body = body
        status_text = status if status is not None else "no response"
        super().__init__(f"Failed to publish plan comment ({status_text}): {body}")
