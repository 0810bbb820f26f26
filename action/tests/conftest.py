"""Shared test fixtures for the plan action test suite."""

import sys
import os

import pytest

# Ensure action/ is on sys.path so ``services.*`` imports resolve.
_action_dir = os.path.join(os.path.dirname(__file__), os.pardir)
if os.path.abspath(_action_dir) not in sys.path:
    sys.path.insert(0, os.path.abspath(_action_dir))

from services.plan_pipeline.errors import CommandFailedError  # noqa: E402
from utils.terminal.terminal_run import InvocationResult  # noqa: E402


# ---------------------------------------------------------------------------
# Recording runner
# ---------------------------------------------------------------------------


class RecordingRunner:
    """Fake process runner that records invocations in call order.

    ``outputs`` maps an argv prefix (tuple) to the output returned for it;
    ``fail_on`` maps an argv prefix to the exit code to fail with.
    """

    def __init__(self, outputs=None, fail_on=None):
        self.invocations = []
        self.outputs = outputs or {}
        self.fail_on = fail_on or {}

    def __call__(self, invocation):
        self.invocations.append(invocation)
        argv = invocation.argv
        for prefix, exit_code in self.fail_on.items():
            if argv[: len(prefix)] == prefix:
                raise CommandFailedError(invocation.command, exit_code, "boom")
        for prefix, output in self.outputs.items():
            if argv[: len(prefix)] == prefix:
                return InvocationResult(output=output)
        return InvocationResult(output="")

    @property
    def commands(self):
        return [inv.argv for inv in self.invocations]


@pytest.fixture()
def recording_runner():
    """Return a ``RecordingRunner`` with ``terraform plan`` printing ``No changes.``."""
    return RecordingRunner(outputs={("terraform", "plan"): "No changes."})


@pytest.fixture()
def runner_factory():
    """Return the ``RecordingRunner`` class for tests that need custom outputs."""
    return RecordingRunner


@pytest.fixture()
def workspace(tmp_path):
    """An empty checkout directory without a package.json."""
    return str(tmp_path)
