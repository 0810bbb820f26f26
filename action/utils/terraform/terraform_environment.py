# terraform_environment.py
"""
Environment and working-directory composition for pipeline invocations.
Every Terraform-facing stage gets its environment from compose_environment so
that TF_IN_AUTOMATION is set in exactly one place.
"""
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional
import logging

logger = logging.getLogger(__name__)

AUTOMATION_ENV_KEY = "TF_IN_AUTOMATION"
AUTOMATION_ENV_VALUE = "true"
BACKEND_STATE_FILE_ENV_KEY = "TF_BACKEND_STATE_FILE"


@dataclass(frozen=True)
class ComposedEnvironment:
    env: Dict[str, str]
    workdir: str


def resolve_workdir(workdir: Optional[str] = None, cwd: Optional[str] = None) -> str:
    """
    Resolve a working-directory override against cwd.
    Returns cwd itself (default: the process current directory) when no
    override is given.
    """
    base = cwd if cwd is not None else os.getcwd()
    if not workdir:
        return base
    return os.path.normpath(os.path.join(base, workdir))


def compose_environment(
    base_env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
    workdir: Optional[str] = None,
    cwd: Optional[str] = None,
    automation: bool = True,
) -> ComposedEnvironment:
    """
    Build the environment and working directory for one invocation.

    Args:
        base_env: Starting variables (default: the inherited process environment)
        overrides: Variables replacing any base entry of the same name
        workdir: Working-directory override, resolved relative to cwd
        cwd: Directory overrides are resolved against (default: os.getcwd())
        automation: Force TF_IN_AUTOMATION=true after overrides are applied

    Returns:
        ComposedEnvironment holding a fresh env dict and the resolved workdir
    """
    env = dict(os.environ if base_env is None else base_env)
    if overrides:
        env.update(overrides)

    if automation:
        if env.get(AUTOMATION_ENV_KEY, AUTOMATION_ENV_VALUE) != AUTOMATION_ENV_VALUE:
            logger.debug(f"Ignoring override {AUTOMATION_ENV_KEY}={env[AUTOMATION_ENV_KEY]!r}")
        env[AUTOMATION_ENV_KEY] = AUTOMATION_ENV_VALUE

    return ComposedEnvironment(env=env, workdir=resolve_workdir(workdir, cwd))
