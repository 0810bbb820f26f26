"""Tests for the PlanPipeline orchestrator."""

import os

import pytest

from services.plan_pipeline.context import PipelineContext
from services.plan_pipeline.errors import (
    CommandFailedError,
    ConfigInvalidError,
    LaunchFailedError,
    StateLocatorMissingError,
)
from services.plan_pipeline.orchestrator import PlanPipeline
from services.plan_pipeline.report import MAX_PLAN_LENGTH


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_BASE_ENV = {"PATH": "/usr/bin", "HOME": "/home/runner"}

_INSTALL_TOOL = ("npm", "install", "-g", "winglang@0.85.0")
_INSTALL_HELPER = ("npm", "install", "-g", "@antfu/ni")
_INSTALL_DEPS = ("ni", "--frozen")
_COMPILE_LOCAL = ("wing", "compile", "--debug", "--platform", "tf-aws", "infra/main.w")
_COMPILE_S3 = (
    "wing",
    "compile",
    "--platform",
    "tf-aws",
    "--platform",
    "/action/platforms/backend.s3.js",
    "infra/main.w",
)
_INIT = ("terraform", "init")
_PLAN = ("terraform", "plan", "-input=false", "-no-color")


def _context(workdir, **overrides):
    fields = dict(
        version="0.85.0",
        target="tf-aws",
        backend="local",
        entrypoint="infra/main.w",
        workdir=workdir,
        base_ref=None,
    )
    fields.update(overrides)
    return PipelineContext(**fields)


def _tf_workdir(workdir):
    return os.path.join(workdir, "infra", "target", "main.tfaws")


# ---------------------------------------------------------------------------
# Stage ordering
# ---------------------------------------------------------------------------


class TestStageOrdering:

    def test_runs_five_commands_without_manifest(self, recording_runner, workspace):
        pipeline = PlanPipeline(runner=recording_runner, environ=_BASE_ENV)
        report = pipeline.execute(_context(workspace))

        assert recording_runner.commands == [
            _INSTALL_TOOL,
            _INSTALL_HELPER,
            _COMPILE_LOCAL,
            _INIT,
            _PLAN,
        ]
        assert report.body == "No changes."
        assert report.truncated is False

    def test_installs_dependencies_when_manifest_present(self, recording_runner, workspace):
        with open(os.path.join(workspace, "package.json"), "w") as f:
            f.write("{}")

        PlanPipeline(runner=recording_runner, environ=_BASE_ENV).execute(_context(workspace))

        assert recording_runner.commands == [
            _INSTALL_TOOL,
            _INSTALL_HELPER,
            _INSTALL_DEPS,
            _COMPILE_LOCAL,
            _INIT,
            _PLAN,
        ]

    def test_dependency_stage_reports_skip(self, recording_runner, workspace):
        pipeline = PlanPipeline(runner=recording_runner, environ=_BASE_ENV)
        assert pipeline.install_dependencies(_context(workspace)) is False
        assert recording_runner.invocations == []

    @pytest.mark.parametrize(
        "failing_prefix, expected_commands",
        [
            (_INSTALL_TOOL, [_INSTALL_TOOL]),
            (_INSTALL_HELPER, [_INSTALL_TOOL, _INSTALL_HELPER]),
            (("wing",), [_INSTALL_TOOL, _INSTALL_HELPER, _COMPILE_LOCAL]),
            (_INIT, [_INSTALL_TOOL, _INSTALL_HELPER, _COMPILE_LOCAL, _INIT]),
            (_PLAN, [_INSTALL_TOOL, _INSTALL_HELPER, _COMPILE_LOCAL, _INIT, _PLAN]),
        ],
    )
    def test_first_failure_stops_later_stages(
        self, runner_factory, workspace, failing_prefix, expected_commands
    ):
        runner = runner_factory(fail_on={failing_prefix: 1})
        pipeline = PlanPipeline(runner=runner, environ=_BASE_ENV)

        with pytest.raises(CommandFailedError):
            pipeline.execute(_context(workspace))

        assert runner.commands == expected_commands

    def test_launch_failure_propagates_unchanged(self, workspace):
        calls = []

        def runner(invocation):
            calls.append(invocation.argv)
            raise LaunchFailedError(invocation.command, FileNotFoundError(2, "not found"))

        with pytest.raises(LaunchFailedError):
            PlanPipeline(runner=runner, environ=_BASE_ENV).execute(_context(workspace))

        assert calls == [_INSTALL_TOOL]

    def test_every_invocation_defaults_to_context_workdir(self, recording_runner, workspace):
        PlanPipeline(runner=recording_runner, environ=_BASE_ENV).execute(_context(workspace))

        cwds = [inv.cwd for inv in recording_runner.invocations]
        assert cwds[:3] == [workspace, workspace, workspace]
        assert cwds[3:] == [_tf_workdir(workspace), _tf_workdir(workspace)]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:

    @pytest.mark.parametrize(
        "field, attr",
        [
            ("version", "version"),
            ("target", "target"),
            ("backend", "backend"),
            ("entry", "entrypoint"),
        ],
    )
    def test_empty_field_is_config_invalid(self, recording_runner, workspace, field, attr):
        pipeline = PlanPipeline(runner=recording_runner, environ=_BASE_ENV)

        with pytest.raises(ConfigInvalidError) as exc_info:
            pipeline.execute(_context(workspace, **{attr: ""}))

        assert exc_info.value.field == field
        assert str(exc_info.value) == f"{field} is required"
        assert recording_runner.invocations == []

    def test_entrypoint_without_base_name_is_rejected(self, recording_runner, workspace):
        pipeline = PlanPipeline(runner=recording_runner, environ=_BASE_ENV)

        with pytest.raises(ConfigInvalidError) as exc_info:
            pipeline.execute(_context(workspace, entrypoint="infra/"))

        assert exc_info.value.field == "entry"
        assert recording_runner.invocations == []


# ---------------------------------------------------------------------------
# Backend branching
# ---------------------------------------------------------------------------


class TestBackendBranching:

    def test_s3_without_base_ref_fails_before_compile(self, recording_runner, workspace):
        pipeline = PlanPipeline(runner=recording_runner, environ=_BASE_ENV)

        with pytest.raises(StateLocatorMissingError) as exc_info:
            pipeline.execute(_context(workspace, backend="s3"))

        assert exc_info.value.variable == "GITHUB_BASE_REF"
        assert all(argv[0] != "wing" for argv in recording_runner.commands)

    def test_s3_compiles_with_backend_overlay(self, recording_runner, workspace):
        pipeline = PlanPipeline(runner=recording_runner, environ=_BASE_ENV)
        pipeline.execute(_context(workspace, backend="s3", base_ref="main"))

        compile_inv = recording_runner.invocations[2]
        assert compile_inv.argv == _COMPILE_S3
        assert compile_inv.argv.count("--platform") == 2
        assert compile_inv.env["TF_BACKEND_STATE_FILE"] == "main.tfstate"
        assert compile_inv.env["TF_IN_AUTOMATION"] == "true"
        assert compile_inv.env["HOME"] == "/home/runner"

    def test_non_s3_compiles_in_debug_mode_without_locator(self, recording_runner, workspace):
        pipeline = PlanPipeline(runner=recording_runner, environ=_BASE_ENV)
        pipeline.execute(_context(workspace, base_ref="main"))

        compile_inv = recording_runner.invocations[2]
        assert compile_inv.argv == _COMPILE_LOCAL
        assert compile_inv.argv.count("--platform") == 1
        assert "TF_BACKEND_STATE_FILE" not in compile_inv.env


# ---------------------------------------------------------------------------
# Terraform stages
# ---------------------------------------------------------------------------


class TestTerraformStages:

    def test_resolves_terraform_workdir(self):
        pipeline = PlanPipeline(runner=lambda inv: None)
        context = _context("/repo")
        assert pipeline.resolve_terraform_workdir(context) == "/repo/infra/target/main.tfaws"

    def test_workdir_for_entrypoint_at_root(self):
        pipeline = PlanPipeline(runner=lambda inv: None)
        context = _context("/repo", entrypoint="main.w", target="sim")
        assert pipeline.resolve_terraform_workdir(context) == "/repo/target/main.sim"

    def test_init_and_plan_carry_automation_env(self, recording_runner, workspace):
        environ = dict(_BASE_ENV, TF_IN_AUTOMATION="false")
        PlanPipeline(runner=recording_runner, environ=environ).execute(_context(workspace))

        for inv in recording_runner.invocations[-2:]:
            assert inv.env["TF_IN_AUTOMATION"] == "true"
            assert inv.env["PATH"] == "/usr/bin"

    def test_install_stages_inherit_environment(self, recording_runner, workspace):
        PlanPipeline(runner=recording_runner, environ=_BASE_ENV).execute(_context(workspace))

        assert recording_runner.invocations[0].env is None
        assert recording_runner.invocations[1].env is None

    def test_large_plan_is_truncated(self, runner_factory, workspace):
        big_plan = "x" * (MAX_PLAN_LENGTH + 10)
        runner = runner_factory(outputs={("terraform", "plan"): big_plan})

        report = PlanPipeline(runner=runner, environ=_BASE_ENV).execute(_context(workspace))

        assert report.truncated is True
        assert report.body == big_plan[:MAX_PLAN_LENGTH]
