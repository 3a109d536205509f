"""GitHub webhook authentication, event filtering and artifact download."""

from __future__ import annotations

from .artifacts import GitHubArtifactClient, GitHubArtifactConfig
from .events import (
    DeploymentPolicy,
    DispatchResult,
    EventFilter,
    WebhookEnvelope,
    decode_workflow_run_event,
    parse_event_kind,
)
from .models import (
    ArtifactDescriptor,
    ArtifactList,
    EventKind,
    WorkflowRun,
    WorkflowRunAction,
    WorkflowRunConclusion,
    WorkflowRunEvent,
)
from .signature import (
    SignatureVerifier,
    compute_signature,
    format_signature_header,
    parse_signature_header,
    verify_signature,
)

__all__ = [
    "ArtifactDescriptor",
    "ArtifactList",
    "DeploymentPolicy",
    "DispatchResult",
    "EventFilter",
    "EventKind",
    "GitHubArtifactClient",
    "GitHubArtifactConfig",
    "SignatureVerifier",
    "WebhookEnvelope",
    "WorkflowRun",
    "WorkflowRunAction",
    "WorkflowRunConclusion",
    "WorkflowRunEvent",
    "compute_signature",
    "decode_workflow_run_event",
    "format_signature_header",
    "parse_event_kind",
    "parse_signature_header",
    "verify_signature",
]
