"""The single consumer of the download queue.

Jobs are processed one at a time in arrival order, so two deployments never
write to the extraction directory concurrently. Each job gets up to
``RetryPolicy.max_attempts`` attempts with exponential back-off between them;
a job that exhausts its attempts is logged as dead-lettered, handed to the
optional dead-letter sink, and dropped.
"""

from __future__ import annotations

import asyncio
import typing as typ

from deploy_agent.logging import get_logger, log_exception

from .errors import QueueClosedError
from .observability import DeployEventLogger
from .retry import JobOutcome, JobRun, RetryPolicy

if typ.TYPE_CHECKING:
    from .dead_letter import DeadLetterSink
    from .pipeline import Deployer
    from .queue import DownloadJob, DownloadQueue

type Sleep = typ.Callable[[float], typ.Awaitable[object]]

logger = get_logger(__name__)


class DownloadWorker:
    """Drain a :class:`DownloadQueue`, deploying each job with retries.

    Parameters
    ----------
    queue
        Queue shared with the webhook resource.
    deployer
        Runs one fetch-and-install attempt.
    policy
        Attempt limit and back-off schedule.
    sleep
        Awaitable used for back-off delays; tests inject a recorder.
    event_logger
        Structured event emitter.
    dead_letters
        Optional sink for exhausted jobs.

    """

    def __init__(  # noqa: PLR0913
        self,
        queue: DownloadQueue,
        deployer: Deployer,
        *,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        event_logger: DeployEventLogger | None = None,
        dead_letters: DeadLetterSink | None = None,
    ) -> None:
        """Create a worker bound to a queue and a deployer."""
        self._queue = queue
        self._deployer = deployer
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._events = event_logger or DeployEventLogger()
        self.dead_letters = dead_letters

    async def process_job(self, job: DownloadJob) -> JobOutcome:
        """Run attempts for ``job`` until it succeeds or is exhausted."""
        run = JobRun(job=job, policy=self.policy)
        while True:
            attempt = run.begin_attempt()
            self._events.log_attempt_started(job, attempt, self.policy.max_attempts)
            try:
                report = await self._deployer.deploy(job.artifacts_url)
            except Exception as exc:  # noqa: BLE001 - every attempt failure is retried
                delay = run.fail(exc)
                self._events.log_attempt_failed(job, attempt, exc, delay)
                if delay is None:
                    break
                await self._sleep(delay)
            else:
                run.succeed()
                outcome = run.outcome()
                self._events.log_job_succeeded(outcome, report)
                return outcome

        outcome = run.outcome()
        self._events.log_job_dead_lettered(outcome)
        await self._record_dead_letter(outcome)
        return outcome

    async def _record_dead_letter(self, outcome: JobOutcome) -> None:
        if self.dead_letters is None:
            return
        try:
            await self.dead_letters.record(outcome)
        except OSError as exc:
            log_exception(
                logger,
                f"Failed to record dead-lettered job {outcome.artifacts_url}",
                exc,
            )

    async def run(self) -> None:
        """Process jobs until the queue is closed and drained."""
        self._events.log_worker_started(self._queue.capacity)
        while True:
            try:
                job = await self._queue.get()
            except QueueClosedError:
                break
            try:
                await self.process_job(job)
            finally:
                self._queue.task_done()
        self._events.log_worker_stopped()
