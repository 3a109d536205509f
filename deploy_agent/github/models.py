"""Typed models for GitHub webhook payloads and the artifacts API.

Only the fields the agent acts on are declared. msgspec ignores every other
field in GitHub's payloads, and validates the declared ones at decode time.
"""

from __future__ import annotations

import enum
import typing as typ

import msgspec

SHORT_SHA_LENGTH = 7


class EventKind(enum.StrEnum):
    """Webhook event kinds the agent understands (``x-github-event``)."""

    PING = "ping"
    WORKFLOW_RUN = "workflow_run"


class WorkflowRunAction(enum.StrEnum):
    """Lifecycle stage reported by a ``workflow_run`` event."""

    REQUESTED = "requested"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class WorkflowRunConclusion(enum.StrEnum):
    """Final result of a completed workflow run."""

    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"
    STALE = "stale"
    SKIPPED = "skipped"


class WorkflowRun(msgspec.Struct, kw_only=True, frozen=True):
    """The ``workflow_run`` object of a webhook payload.

    Attributes
    ----------
    head_branch
        Branch the run was triggered for.
    head_sha
        Commit the run built.
    conclusion
        Result of the run; ``None`` until the run completes.
    artifacts_url
        REST endpoint listing the run's artifacts.
    workflow_path
        Repository path of the workflow file (``path`` in GitHub's payload).

    """

    head_branch: str
    head_sha: typ.Annotated[str, msgspec.Meta(min_length=SHORT_SHA_LENGTH)]
    artifacts_url: str
    workflow_path: str = msgspec.field(name="path")
    conclusion: WorkflowRunConclusion | None = None

    @property
    def short_sha(self) -> str:
        """Return the abbreviated commit SHA used in log lines."""
        return self.head_sha[:SHORT_SHA_LENGTH]


class WorkflowRunEvent(msgspec.Struct, kw_only=True, frozen=True):
    """Payload of a ``workflow_run`` webhook delivery."""

    action: WorkflowRunAction
    run: WorkflowRun = msgspec.field(name="workflow_run")


class ArtifactDescriptor(msgspec.Struct, kw_only=True, frozen=True):
    """One entry of a workflow run's artifact list."""

    archive_download_url: str
    name: str | None = None


class ArtifactList(msgspec.Struct, kw_only=True, frozen=True):
    """Response body of ``GET <artifacts_url>``."""

    artifacts: list[ArtifactDescriptor] = msgspec.field(default_factory=list)
