"""Blocking process runner for the pipeline's external tools.

Runs one command, merges stderr into stdout, echoes each line as it arrives
and returns the captured text. Failures are raised, not returned.
"""

import logging
import shlex
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Dict, Optional, TextIO, Tuple

from services.plan_pipeline.errors import CommandFailedError, LaunchFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Invocation:
    """One external command: what to run, where, and with which environment.

    ``cwd=None`` means the current directory; ``env=None`` means the
    inherited process environment.
    """
    command: str
    args: Tuple[str, ...] = ()
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = field(default=None, compare=False)

    @property
    def argv(self) -> Tuple[str, ...]:
        return (self.command,) + tuple(self.args)

    def describe(self) -> str:
        return " ".join(shlex.quote(part) for part in self.argv)


@dataclass(frozen=True)
class InvocationResult:
    """Combined output and exit status of a finished invocation."""
    output: str
    returncode: int = 0

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def terminal_run(invocation: Invocation, stream: Optional[TextIO] = None) -> InvocationResult:
    """
    Run *invocation* to completion.

    Args:
        invocation: Command, arguments, working directory and environment
        stream: Where to echo output lines (default: sys.stdout)

    Returns:
        InvocationResult with the interleaved stdout/stderr text

    Raises:
        LaunchFailedError: the process could not be started
        CommandFailedError: the process exited nonzero
    """
    echo = stream if stream is not None else sys.stdout
    logger.info(f"Running: {invocation.describe()}")
    if invocation.cwd:
        logger.debug(f"Working directory: {invocation.cwd}")

    try:
        process = subprocess.Popen(
            list(invocation.argv),
            cwd=invocation.cwd,
            env=invocation.env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
        )
    except OSError as e:
        logger.error(f"Could not start {invocation.command}: {e}")
        raise LaunchFailedError(invocation.command, e) from e

    chunks = []
    with process:
        for line in process.stdout:
            chunks.append(line)
            echo.write(line)
        returncode = process.wait()

    output = "".join(chunks)
    logger.debug(f"{invocation.command} exited with code {returncode}")

    if returncode != 0:
        logger.warning(f"Command exited with code {returncode}: {invocation.describe()}")
        raise CommandFailedError(invocation.command, returncode, output)

    return InvocationResult(output=output, returncode=returncode)
