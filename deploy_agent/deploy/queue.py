"""Bounded FIFO of pending artifact downloads.

One queue is created at startup and handed to both the webhook resource (the
producers, one per in-flight request) and the download worker (the only
consumer). When the queue is full, ``enqueue`` suspends the request until the
worker frees a slot, so a stalled download throttles webhook acknowledgement
instead of dropping deliveries.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from deploy_agent.common.time import utcnow

from .errors import QueueClosedError

if typ.TYPE_CHECKING:
    import datetime as dt

DEFAULT_QUEUE_CAPACITY = 8


@dataclasses.dataclass(frozen=True, slots=True)
class DownloadJob:
    """A workflow run's artifact list waiting to be downloaded."""

    artifacts_url: str
    enqueued_at: dt.datetime


class DownloadQueue:
    """Bounded FIFO queue of :class:`DownloadJob` items.

    Parameters
    ----------
    capacity
        Maximum number of queued jobs before producers suspend.

    """

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY) -> None:
        """Create an empty queue."""
        if capacity < 1:
            msg = f"queue capacity must be positive, got: {capacity}"
            raise ValueError(msg)
        self._queue: asyncio.Queue[DownloadJob] = asyncio.Queue(maxsize=capacity)
        self._closed = False

    @property
    def capacity(self) -> int:
        """Return the maximum number of queued jobs."""
        return self._queue.maxsize

    @property
    def depth(self) -> int:
        """Return the number of jobs waiting for the worker."""
        return self._queue.qsize()

    @property
    def closed(self) -> bool:
        """Return whether :meth:`close` has been called."""
        return self._closed

    async def enqueue(self, artifacts_url: str) -> DownloadJob:
        """Append a job, suspending while the queue is full.

        Raises
        ------
        QueueClosedError
            If the queue is closed before or while waiting for space.

        """
        job = DownloadJob(artifacts_url=artifacts_url, enqueued_at=utcnow())
        try:
            await self._queue.put(job)
        except asyncio.QueueShutDown as exc:
            raise QueueClosedError from exc
        return job

    async def get(self) -> DownloadJob:
        """Remove and return the oldest job, suspending while empty.

        Raises
        ------
        QueueClosedError
            Once the queue is closed and every queued job has been taken.

        """
        try:
            return await self._queue.get()
        except asyncio.QueueShutDown as exc:
            raise QueueClosedError from exc

    def task_done(self) -> None:
        """Mark the job last returned by :meth:`get` as finished."""
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued job has been marked done."""
        await self._queue.join()

    def close(self) -> None:
        """Stop accepting jobs and wake any suspended producers.

        Jobs already queued stay available to :meth:`get`.
        """
        self._closed = True
        self._queue.shutdown()
