"""
Plan pipeline orchestrator.

Installs the Wing toolchain, compiles the entrypoint to Terraform, and runs
``terraform init`` and ``terraform plan`` in the generated directory. Stages
run strictly in order; the first failure propagates to the caller and no
later stage is invoked.
"""

import logging
import os
from typing import Callable, Dict, Mapping, Optional

from services.plan_pipeline.context import PipelineContext
from services.plan_pipeline.errors import ConfigInvalidError
from services.plan_pipeline.report import PlanReport
from services.plan_pipeline.state_file import state_file_for_ref
from utils.terminal.terminal_run import Invocation, InvocationResult, terminal_run
from utils.terraform.terraform_environment import (
    BACKEND_STATE_FILE_ENV_KEY,
    compose_environment,
)

logger = logging.getLogger(__name__)

Runner = Callable[[Invocation], InvocationResult]


class PlanPipeline:
    """Sequential compile-and-plan pipeline.

    Args:
        runner: Executes one Invocation; defaults to ``terminal_run``.
        environ: Base environment for Terraform-facing stages
            (default: the process environment at call time).
    """

    INSTALLER = "npm"
    TOOL_PACKAGE = "winglang"
    HELPER_PACKAGE = "@antfu/ni"
    HELPER_COMMAND = "ni"
    HELPER_FROZEN_FLAG = "--frozen"
    DEPENDENCY_MANIFEST = "package.json"

    COMPILER = "wing"
    REMOTE_STATE_BACKEND = "s3"
    BACKEND_PLATFORM_OVERLAY = "/action/platforms/backend.s3.js"
    OUTPUT_DIR = "target"

    PROVISIONER = "terraform"
    PLAN_ARGS = ("plan", "-input=false", "-no-color")

    def __init__(
        self,
        runner: Optional[Runner] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.runner = runner if runner is not None else terminal_run
        self.environ = environ

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def execute(self, context: PipelineContext) -> PlanReport:
        """Run every stage for *context* and return the bounded plan report."""
        self.validate(context)
        self.install_tool(context)
        self.install_helper(context)
        self.install_dependencies(context)
        self.compile(context)
        tf_workdir = self.resolve_terraform_workdir(context)
        self.init_backend(context, tf_workdir)
        output = self.plan(context, tf_workdir)

        report = PlanReport.from_output(output)
        if report.truncated:
            logger.warning(f"[PLAN] Plan output truncated from {len(output)} characters")
        return report

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def validate(self, context: PipelineContext) -> None:
        for field, value in (
            ("version", context.version),
            ("target", context.target),
            ("backend", context.backend),
            ("entry", context.entrypoint),
        ):
            if not value:
                raise ConfigInvalidError(field)

        if not context.entrypoint_name:
            raise ConfigInvalidError(
                "entry", f"entry must name a source file, got {context.entrypoint!r}"
            )
        if not context.workdir:
            raise ConfigInvalidError("working-directory")

        logger.debug(f"[PLAN] Using {context.entrypoint} ...")

    def install_tool(self, context: PipelineContext) -> None:
        package = f"{self.TOOL_PACKAGE}@{context.version}"
        self._run(context, self.INSTALLER, "install", "-g", package)
        logger.info(f"[PLAN] Installed {package}")

    def install_helper(self, context: PipelineContext) -> None:
        self._run(context, self.INSTALLER, "install", "-g", self.HELPER_PACKAGE)

    def install_dependencies(self, context: PipelineContext) -> bool:
        """Install project dependencies; returns False when there is no manifest."""
        manifest = os.path.join(context.workdir, self.DEPENDENCY_MANIFEST)
        if not os.path.exists(manifest):
            logger.info(
                f"[PLAN] No {self.DEPENDENCY_MANIFEST} found, skipping "
                f"{self.HELPER_COMMAND} {self.HELPER_FROZEN_FLAG}"
            )
            return False

        self._run(context, self.HELPER_COMMAND, self.HELPER_FROZEN_FLAG)
        logger.info(
            f"[PLAN] Installed NPM dependencies with {self.HELPER_COMMAND} {self.HELPER_FROZEN_FLAG}"
        )
        return True

    def compile(self, context: PipelineContext) -> None:
        if context.backend == self.REMOTE_STATE_BACKEND:
            state_file = state_file_for_ref(context.base_ref)
            logger.info(f"[PLAN] Injecting backend config for {context.backend.upper()}")
            self._run(
                context,
                self.COMPILER,
                "compile",
                "--platform",
                context.target,
                "--platform",
                self.BACKEND_PLATFORM_OVERLAY,
                context.entrypoint,
                env=self._automation_env({BACKEND_STATE_FILE_ENV_KEY: state_file}),
            )
        else:
            self._run(
                context,
                self.COMPILER,
                "compile",
                "--debug",
                "--platform",
                context.target,
                context.entrypoint,
                env=self._automation_env(),
            )

    def resolve_terraform_workdir(self, context: PipelineContext) -> str:
        """Directory the compiler writes Terraform to, e.g. ``infra/target/main.tfaws``."""
        synth_dir = f"{context.entrypoint_name}.{context.target.replace('-', '')}"
        return os.path.join(
            context.workdir, context.entrypoint_dir, self.OUTPUT_DIR, synth_dir
        )

    def init_backend(self, context: PipelineContext, tf_workdir: str) -> None:
        self._run(
            context, self.PROVISIONER, "init", cwd=tf_workdir, env=self._automation_env()
        )

    def plan(self, context: PipelineContext, tf_workdir: str) -> str:
        result = self._run(
            context,
            self.PROVISIONER,
            *self.PLAN_ARGS,
            cwd=tf_workdir,
            env=self._automation_env(),
        )
        return result.output

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _automation_env(self, overrides: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        return compose_environment(base_env=self.environ, overrides=overrides).env

    def _run(
        self,
        context: PipelineContext,
        command: str,
        *args: str,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> InvocationResult:
        invocation = Invocation(
            command=command,
            args=tuple(args),
            cwd=cwd if cwd is not None else context.workdir,
            env=env,
        )
        return self.runner(invocation)
