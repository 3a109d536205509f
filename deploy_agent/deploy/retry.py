"""Retry policy and per-job state machine for artifact downloads.

Each job moves through ``PENDING -> ATTEMPTING(n) -> SUCCEEDED | EXHAUSTED``.
The state machine only decides; sleeping between attempts is left to the
caller so the back-off schedule can be tested without real delays.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from deploy_agent.common.time import utcnow

if typ.TYPE_CHECKING:
    import datetime as dt

    from .queue import DownloadJob

DEFAULT_MAX_ATTEMPTS = 9
DEFAULT_BACKOFF_BASE_S = 2.0


class JobState(enum.StrEnum):
    """Lifecycle of a download job."""

    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


class InvalidTransitionError(RuntimeError):
    """Raised when a job is driven out of order."""

    def __init__(self, state: JobState, action: str) -> None:
        """Initialise with the current state and the rejected action."""
        self.state = state
        self.action = action
        super().__init__(f"cannot {action} a job in state {state}")


@dataclasses.dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Exponential back-off between download attempts.

    Attributes
    ----------
    max_attempts
        Total attempts per job, including the first.
    backoff_base_s
        The delay after attempt ``n`` is ``backoff_base_s ** n`` seconds.

    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_base_s: float = DEFAULT_BACKOFF_BASE_S

    def __post_init__(self) -> None:
        """Reject policies that would never attempt a job."""
        if self.max_attempts < 1:
            msg = f"max_attempts must be positive, got: {self.max_attempts}"
            raise ValueError(msg)

    def delay_for(self, attempt: int) -> float:
        """Return the back-off after failed attempt ``attempt`` (1-based)."""
        if attempt < 1:
            msg = f"attempt numbers start at 1, got: {attempt}"
            raise ValueError(msg)
        return self.backoff_base_s**attempt

    def has_attempts_left(self, attempt: int) -> bool:
        """Return whether another attempt may follow attempt ``attempt``."""
        return attempt < self.max_attempts

    def schedule(self) -> tuple[float, ...]:
        """Return every delay a job that always fails would sleep."""
        return tuple(self.delay_for(n) for n in range(1, self.max_attempts))


@dataclasses.dataclass(frozen=True, slots=True)
class JobOutcome:
    """Terminal record of a processed job."""

    artifacts_url: str
    state: JobState
    attempts: int
    total_delay_s: float
    enqueued_at: dt.datetime
    finished_at: dt.datetime
    last_error: str | None = None


@dataclasses.dataclass(slots=True)
class JobRun:
    """Mutable retry state for one job."""

    job: DownloadJob
    policy: RetryPolicy
    state: JobState = JobState.PENDING
    attempt: int = 0
    total_delay_s: float = 0.0
    last_error: str | None = None

    @property
    def terminal(self) -> bool:
        """Return whether the job has succeeded or run out of attempts."""
        return self.state in {JobState.SUCCEEDED, JobState.EXHAUSTED}

    def begin_attempt(self) -> int:
        """Enter ``ATTEMPTING`` and return the new attempt number."""
        if self.terminal or (
            self.state is JobState.ATTEMPTING
            and not self.policy.has_attempts_left(self.attempt)
        ):
            raise InvalidTransitionError(self.state, "begin an attempt for")
        self.attempt += 1
        self.state = JobState.ATTEMPTING
        return self.attempt

    def succeed(self) -> None:
        """Record that the current attempt succeeded."""
        if self.state is not JobState.ATTEMPTING:
            raise InvalidTransitionError(self.state, "mark as succeeded")
        self.state = JobState.SUCCEEDED

    def fail(self, error: BaseException) -> float | None:
        """Record a failed attempt.

        Returns
        -------
        float | None
            Seconds to wait before the next attempt, or ``None`` when the job
            is now exhausted.

        """
        if self.state is not JobState.ATTEMPTING:
            raise InvalidTransitionError(self.state, "mark as failed")
        self.last_error = f"{type(error).__name__}: {error}"
        if not self.policy.has_attempts_left(self.attempt):
            self.state = JobState.EXHAUSTED
            return None
        delay = self.policy.delay_for(self.attempt)
        self.total_delay_s += delay
        return delay

    def outcome(self) -> JobOutcome:
        """Return the terminal record for this job."""
        if not self.terminal:
            raise InvalidTransitionError(self.state, "report the outcome of")
        return JobOutcome(
            artifacts_url=self.job.artifacts_url,
            state=self.state,
            attempts=self.attempt,
            total_delay_s=self.total_delay_s,
            enqueued_at=self.job.enqueued_at,
            finished_at=utcnow(),
            last_error=self.last_error,
        )
