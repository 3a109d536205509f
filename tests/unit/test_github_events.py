"""Unit tests for webhook event parsing and the deployment filter."""

from __future__ import annotations

import asyncio

import pytest

from deploy_agent.github.errors import MalformedPayloadError, MissingEventHeaderError
from deploy_agent.github.events import (
    DeploymentPolicy,
    DispatchResult,
    EventFilter,
    WebhookEnvelope,
    decode_workflow_run_event,
    parse_event_kind,
)
from deploy_agent.github.models import (
    EventKind,
    WorkflowRunAction,
    WorkflowRunConclusion,
)
from tests.helpers.fakes import RecordingLogger
from tests.helpers.webhook_payloads import (
    ARTIFACTS_URL,
    encode,
    ping_payload,
    workflow_run_payload,
)


class _CollectingSink:
    """Job sink that records enqueued URLs."""

    def __init__(self) -> None:
        self.urls: list[str] = []

    async def enqueue(self, artifacts_url: str) -> None:
        self.urls.append(artifacts_url)


@pytest.fixture
def recorded_logs(monkeypatch: pytest.MonkeyPatch) -> RecordingLogger:
    """Capture the events module's log lines."""
    recorder = RecordingLogger()
    monkeypatch.setattr("deploy_agent.github.events.logger", recorder)
    return recorder


def _dispatch(
    event: str | None,
    body: bytes,
    *,
    policy: DeploymentPolicy | None = None,
) -> tuple[DispatchResult, list[str]]:
    sink = _CollectingSink()
    event_filter = EventFilter(policy or DeploymentPolicy(), sink)
    envelope = WebhookEnvelope(event_kind=event, signature=None, raw_body=body)
    result = asyncio.run(event_filter.dispatch(envelope))
    return result, sink.urls


class TestParseEventKind:
    """Tests for parse_event_kind."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("ping", EventKind.PING), ("workflow_run", EventKind.WORKFLOW_RUN)],
    )
    def test_known_kinds(self, value: str, expected: EventKind) -> None:
        """Handled kinds map to EventKind members."""
        assert parse_event_kind(value) is expected

    def test_unknown_kind(self) -> None:
        """Unhandled kinds map to None."""
        assert parse_event_kind("push") is None

    @pytest.mark.parametrize("value", [None, "", " "])
    def test_missing_header(self, value: str | None) -> None:
        """A missing or blank header is an error."""
        with pytest.raises(MissingEventHeaderError):
            parse_event_kind(value)


class TestDecodeWorkflowRunEvent:
    """Tests for decode_workflow_run_event."""

    def test_decodes_fields_and_ignores_extras(self) -> None:
        """Declared fields are decoded; unknown fields are ignored."""
        event = decode_workflow_run_event(encode(workflow_run_payload()))

        assert event.action is WorkflowRunAction.COMPLETED
        assert event.run.head_branch == "main"
        assert event.run.workflow_path == ".github/workflows/deploy.yml"
        assert event.run.conclusion is WorkflowRunConclusion.SUCCESS
        assert event.run.artifacts_url == ARTIFACTS_URL
        assert event.run.short_sha == "0123456"

    def test_null_conclusion(self) -> None:
        """In-progress runs carry no conclusion."""
        payload = workflow_run_payload(conclusion=None, action="in_progress")
        event = decode_workflow_run_event(encode(payload))
        assert event.run.conclusion is None

    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            b'{"action": "completed"}',
            encode(workflow_run_payload(action="exploded")),
            encode(workflow_run_payload(head_sha="abc")),
        ],
    )
    def test_malformed(self, body: bytes) -> None:
        """Invalid bodies raise MalformedPayloadError carrying the raw body."""
        with pytest.raises(MalformedPayloadError) as excinfo:
            decode_workflow_run_event(body)
        assert excinfo.value.raw_body == body
        assert excinfo.value.event_kind == "workflow_run"

    def test_body_preview_is_truncated(self) -> None:
        """Very large bodies are truncated in log previews."""
        error = MalformedPayloadError("workflow_run", b"x" * 5000, "bad")
        preview = error.body_preview()
        assert len(preview) == 2048 + 3
        assert preview.endswith("...")


class TestDeploymentPolicy:
    """Tests for DeploymentPolicy.is_deployable."""

    @pytest.mark.parametrize(
        ("overrides", "deployable"),
        [
            ({}, True),
            ({"branch": "feature/x"}, False),
            ({"conclusion": "failure"}, False),
            ({"conclusion": None}, False),
            ({"path": ".github/workflows/test.yml"}, False),
            ({"path": "deploy.yml"}, True),
        ],
    )
    def test_rules(self, overrides: dict[str, str | None], *, deployable: bool) -> None:
        """Only successful runs of the tracked workflow on main deploy."""
        payload = workflow_run_payload(**overrides)  # type: ignore[arg-type]
        run = decode_workflow_run_event(encode(payload)).run
        assert DeploymentPolicy().is_deployable(run) is deployable

    def test_custom_branch_and_workflow(self) -> None:
        """Branch and workflow file are configurable."""
        payload = workflow_run_payload(
            branch="release", path=".github/workflows/ship.yml"
        )
        run = decode_workflow_run_event(encode(payload)).run
        policy = DeploymentPolicy(branch="release", workflow_file="ship.yml")
        assert policy.is_deployable(run)
        assert not DeploymentPolicy().is_deployable(run)


class TestEventFilterDispatch:
    """Tests for EventFilter.dispatch."""

    def test_ping_is_ignored(self, recorded_logs: RecordingLogger) -> None:
        """Ping deliveries are acknowledged and logged."""
        result, urls = _dispatch("ping", encode(ping_payload()))

        assert result is DispatchResult.IGNORED
        assert urls == []
        assert "Got ping from GitHub" in recorded_logs.messages("INFO")

    def test_unknown_event_is_ignored(self, recorded_logs: RecordingLogger) -> None:
        """Unhandled kinds are acknowledged with a warning, body unread."""
        result, urls = _dispatch("push", b"not even json")

        assert result is DispatchResult.IGNORED
        assert urls == []
        assert recorded_logs.messages("WARNING") == ["Got unhandled event push"]

    def test_deployable_run_is_queued(self, recorded_logs: RecordingLogger) -> None:
        """A successful main-branch deploy run enqueues its artifacts URL."""
        result, urls = _dispatch("workflow_run", encode(workflow_run_payload()))

        assert result is DispatchResult.QUEUED
        assert urls == [ARTIFACTS_URL]
        assert (
            f"Downloading artifacts for 0123456 from {ARTIFACTS_URL}"
            in recorded_logs.messages("INFO")
        )

    @pytest.mark.parametrize(
        "payload",
        [
            workflow_run_payload(branch="feature/x"),
            workflow_run_payload(conclusion="failure"),
            workflow_run_payload(action="requested", conclusion=None),
        ],
    )
    def test_non_deployable_run_is_skipped(self, payload: dict[str, object]) -> None:
        """Other runs are acknowledged without queueing."""
        result, urls = _dispatch("workflow_run", encode(payload))

        assert result is DispatchResult.SKIPPED
        assert urls == []

    def test_malformed_run_raises(self) -> None:
        """Undecodable workflow_run bodies propagate as errors."""
        with pytest.raises(MalformedPayloadError):
            _dispatch("workflow_run", b"{}")

    def test_missing_event_raises(self) -> None:
        """Deliveries without an event kind propagate as errors."""
        with pytest.raises(MissingEventHeaderError):
            _dispatch(None, b"{}")
