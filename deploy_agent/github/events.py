"""Decide which webhook deliveries trigger a deployment.

A delivery is acted on only when it is a ``workflow_run`` event for a
successful run of the tracked workflow on the tracked branch. Every other
authenticated delivery is acknowledged without side effects.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ
from pathlib import PurePosixPath

import msgspec

from deploy_agent.logging import get_logger, log_debug, log_info, log_warning

from .errors import MalformedPayloadError, MissingEventHeaderError
from .models import EventKind, WorkflowRun, WorkflowRunConclusion, WorkflowRunEvent

EVENT_HEADER = "x-github-event"

logger = get_logger(__name__)


class JobSink(typ.Protocol):
    """Anything that accepts artifact-list URLs for download."""

    async def enqueue(self, artifacts_url: str) -> object:
        """Accept a URL, suspending while the sink is full."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class WebhookEnvelope:
    """One webhook delivery as received over HTTP."""

    event_kind: str | None
    signature: str | None
    raw_body: bytes


class DispatchResult(enum.StrEnum):
    """What the event filter did with a delivery."""

    IGNORED = "ignored"
    SKIPPED = "skipped"
    QUEUED = "queued"


@dataclasses.dataclass(frozen=True, slots=True)
class DeploymentPolicy:
    """Which workflow runs are deployable.

    Attributes
    ----------
    branch
        Branch whose runs are deployed.
    workflow_file
        File name (not path) of the workflow whose runs are deployed.

    """

    branch: str = "main"
    workflow_file: str = "deploy.yml"

    def is_deployable(self, run: WorkflowRun) -> bool:
        """Return whether ``run`` is a successful run of the tracked workflow."""
        return (
            run.head_branch == self.branch
            and PurePosixPath(run.workflow_path).name == self.workflow_file
            and run.conclusion == WorkflowRunConclusion.SUCCESS
        )


def parse_event_kind(value: str | None) -> EventKind | None:
    """Map an ``x-github-event`` header to a known kind.

    Returns ``None`` for kinds the agent does not handle.

    Raises
    ------
    MissingEventHeaderError
        If the header is absent or blank.

    """
    if value is None or not value.strip():
        raise MissingEventHeaderError
    try:
        return EventKind(value.strip())
    except ValueError:
        return None


def decode_workflow_run_event(body: bytes) -> WorkflowRunEvent:
    """Decode and validate a ``workflow_run`` payload.

    Raises
    ------
    MalformedPayloadError
        If the body is not JSON or does not match the expected shape.

    """
    try:
        return msgspec.json.decode(body, type=WorkflowRunEvent)
    except msgspec.DecodeError as exc:  # includes msgspec.ValidationError
        raise MalformedPayloadError(EventKind.WORKFLOW_RUN, body, str(exc)) from exc


class EventFilter:
    """Route authenticated deliveries to the download queue."""

    def __init__(self, policy: DeploymentPolicy, jobs: JobSink) -> None:
        """Initialise the filter with a policy and a job sink."""
        self.policy = policy
        self._jobs = jobs

    async def dispatch(self, envelope: WebhookEnvelope) -> DispatchResult:
        """Act on an authenticated delivery.

        Raises
        ------
        MissingEventHeaderError
            If the delivery has no event kind.
        MalformedPayloadError
            If a ``workflow_run`` body cannot be decoded.

        """
        kind = parse_event_kind(envelope.event_kind)
        if kind is None:
            log_warning(logger, "Got unhandled event %s", envelope.event_kind)
            return DispatchResult.IGNORED
        if kind is EventKind.PING:
            log_info(logger, "Got ping from GitHub")
            return DispatchResult.IGNORED

        event = decode_workflow_run_event(envelope.raw_body)
        run = event.run
        if not self.policy.is_deployable(run):
            log_debug(
                logger,
                "Skipping %s run of %s on %s (conclusion=%s)",
                event.action,
                run.workflow_path,
                run.head_branch,
                run.conclusion,
            )
            return DispatchResult.SKIPPED

        log_info(
            logger,
            "Downloading artifacts for %s from %s",
            run.short_sha,
            run.artifacts_url,
        )
        await self._jobs.enqueue(run.artifacts_url)
        return DispatchResult.QUEUED
