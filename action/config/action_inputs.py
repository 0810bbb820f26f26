"""
Action input configuration.

GitHub Actions passes each ``with:`` input to the container as an
environment variable named ``INPUT_<NAME>``, upper-cased with spaces turned
into underscores (hyphens are kept, e.g. ``INPUT_WORKING-DIRECTORY``).
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from services.plan_pipeline.errors import ConfigInvalidError

# Input name -> model field, in the order they are validated
REQUIRED_INPUTS = (
    ("version", "version"),
    ("target", "target"),
    ("backend", "backend"),
    ("entry", "entry"),
    ("github-token", "github_token"),
)


def input_env_name(name: str) -> str:
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(name: str, environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the trimmed value of action input *name*, or an empty string."""
    environ = os.environ if environ is None else environ
    return (environ.get(input_env_name(name)) or "").strip()


class ActionInputs(BaseModel):
    entry: str = Field(default="", description="Path to the Wing entrypoint, e.g. 'infra/main.w'")
    version: str = Field(default="", description="winglang version to install")
    target: str = Field(default="", description="Wing target platform, e.g. 'tf-aws'")
    backend: str = Field(default="", description="Terraform backend kind, e.g. 's3' or 'local'")
    working_directory: str = Field(default="", description="Directory to run in, relative to the workspace")
    github_token: str = Field(default="", description="Token used to comment on the pull request")

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "ActionInputs":
        return cls(
            entry=get_input("entry", environ),
            version=get_input("version", environ),
            target=get_input("target", environ),
            backend=get_input("backend", environ),
            working_directory=get_input("working-directory", environ),
            github_token=get_input("github-token", environ),
        )

    def validate_required(self) -> "ActionInputs":
        """Raise ConfigInvalidError naming the first empty required input."""
        for input_name, attr in REQUIRED_INPUTS:
            if not getattr(self, attr):
                raise ConfigInvalidError(input_name)
        return self
