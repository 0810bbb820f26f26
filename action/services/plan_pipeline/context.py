"""
Read-only context shared by every pipeline stage.
"""

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional

from services.plan_pipeline.state_file import BASE_REF_ENV_KEY
from utils.terraform.terraform_environment import resolve_workdir

if TYPE_CHECKING:
    from config.action_inputs import ActionInputs

ENTRYPOINT_EXTENSION = ".w"


@dataclass(frozen=True)
class PipelineContext:
    """Inputs of one pipeline run, resolved once at start.

    ``workdir`` is absolute; every invocation runs there instead of the
    process changing directory. ``base_ref`` is only needed by the s3
    backend.
    """

    version: str
    target: str
    backend: str
    entrypoint: str
    workdir: str
    base_ref: Optional[str] = None

    @classmethod
    def from_inputs(
        cls,
        inputs: "ActionInputs",
        environ: Optional[Mapping[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> "PipelineContext":
        """Build a context from ``ActionInputs`` and the runner environment."""
        environ = os.environ if environ is None else environ
        return cls(
            version=inputs.version,
            target=inputs.target,
            backend=inputs.backend,
            entrypoint=inputs.entry,
            workdir=resolve_workdir(inputs.working_directory, cwd),
            base_ref=environ.get(BASE_REF_ENV_KEY) or None,
        )

    @property
    def entrypoint_name(self) -> str:
        """Base name of the entrypoint without its ``.w`` extension."""
        name = os.path.basename(self.entrypoint)
        if name.endswith(ENTRYPOINT_EXTENSION) and name != ENTRYPOINT_EXTENSION:
            name = name[: -len(ENTRYPOINT_EXTENSION)]
        return name

    @property
    def entrypoint_dir(self) -> str:
        return os.path.dirname(self.entrypoint)
