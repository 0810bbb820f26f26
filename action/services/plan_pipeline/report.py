"""
Plan report rendering.

GitHub rejects comment bodies above 65536 characters, so the plan output is
cut to ``MAX_PLAN_LENGTH`` before it is wrapped in the comment template.
"""

from dataclasses import dataclass

MAX_PLAN_LENGTH = 65000

REPORT_HEADER = "#### Terraform Plan"
TRUNCATION_NOTICE = (
    "Plan is too large to display in a comment. Check the build logs for the full plan."
)
SUMMARY_LABEL = "Show Plan"


@dataclass(frozen=True)
class PlanReport:
    """Plan output bounded to MAX_PLAN_LENGTH characters."""

    body: str
    truncated: bool = False

    @classmethod
    def from_output(cls, raw_output: str, limit: int = MAX_PLAN_LENGTH) -> "PlanReport":
        if len(raw_output) > limit:
            return cls(body=raw_output[:limit], truncated=True)
        return cls(body=raw_output, truncated=False)


def render_comment(report: PlanReport) -> str:
    """Render *report* as the markdown body of a pull request comment."""
    sections = [REPORT_HEADER]
    if report.truncated:
        sections.append(TRUNCATION_NOTICE)
    sections.append(
        f"<details><summary>{SUMMARY_LABEL}</summary>\n\n"
        f"```\n{report.body}\n```\n\n"
        "</details>"
    )
    return "\n\n".join(sections) + "\n"
