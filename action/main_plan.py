"""
Wing Plan Action - Main Entry Point
Reads the action inputs, compiles the Wing entrypoint, runs terraform plan
and comments the plan on the pull request that triggered the workflow.
"""
# Load a local .env before anything reads the environment
from dotenv import load_dotenv

load_dotenv()

import logging
import os
import sys
from typing import Mapping, Optional, TextIO

from config.action_inputs import ActionInputs
from connectors.github_connector import GitHubAPIClient, resolve_request_destination
from services.plan_pipeline.context import PipelineContext
from services.plan_pipeline.errors import PlanPipelineError
from services.plan_pipeline.orchestrator import PlanPipeline, Runner
from services.plan_pipeline.publisher import PlanPublisher
from utils.logging.secure_logging import register_secret, safe_log_dict

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(environ: Optional[Mapping[str, str]] = None) -> None:
    environ = os.environ if environ is None else environ
    level = logging.DEBUG if environ.get("RUNNER_DEBUG") == "1" else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])
    # Silence verbose loggers
    logging.getLogger("urllib3").setLevel(logging.INFO)


def escape_workflow_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def set_failed(message: str, stream: Optional[TextIO] = None) -> None:
    """Report *message* as the step's error annotation."""
    out = stream if stream is not None else sys.stdout
    out.write(f"::error::{escape_workflow_data(message)}\n")


def run(
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[str] = None,
    runner: Optional[Runner] = None,
    client: Optional[GitHubAPIClient] = None,
    stream: Optional[TextIO] = None,
) -> int:
    """Run the whole action once; returns the process exit code."""
    environ = os.environ if environ is None else environ
    try:
        inputs = ActionInputs.from_environ(environ).validate_required()
        register_secret(inputs.github_token, stream)
        safe_log_dict(inputs.model_dump(), logger.debug, "Action inputs")

        context = PipelineContext.from_inputs(inputs, environ=environ, cwd=cwd)
        if inputs.working_directory:
            logger.info(f"Running in {context.workdir}")

        report = PlanPipeline(runner=runner, environ=environ).execute(context)

        if client is None:
            client = GitHubAPIClient(inputs.github_token, api_url=environ.get("GITHUB_API_URL"))
        destination = resolve_request_destination(environ)
        PlanPublisher(client).publish_report(report, destination)
    except PlanPipelineError as e:
        logger.error(f"Plan action failed: {e}")
        set_failed(str(e), stream)
        return 1
    except Exception as e:
        logger.exception(f"Plan action failed unexpectedly: {e}")
        set_failed(str(e) or type(e).__name__, stream)
        return 1

    return 0


def main() -> None:
    configure_logging()
    sys.exit(run())


if __name__ == "__main__":
    main()
