"""Remote state locator derived from the pull request's base branch."""

import re
from typing import Optional

from services.plan_pipeline.errors import StateLocatorMissingError

BASE_REF_ENV_KEY = "GITHUB_BASE_REF"
STATE_FILE_SUFFIX = ".tfstate"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def state_file_for_ref(ref: Optional[str]) -> str:
    """Return the state file name for *ref*, e.g. ``feature/x`` -> ``feature-x.tfstate``."""
    if not ref:
        raise StateLocatorMissingError(BASE_REF_ENV_KEY)
    return f"{_UNSAFE_CHARS.sub('-', ref)}{STATE_FILE_SUFFIX}"
