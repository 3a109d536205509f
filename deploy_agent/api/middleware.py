"""Lifespan middleware running the download worker beside the ASGI app.

The worker is started on the ASGI ``lifespan.startup`` event, so it runs on
the server's event loop for the whole process lifetime. On shutdown the
queue is closed, the worker task is cancelled (an in-flight download is
abandoned), and owned clients are closed.

Usage
-----
Register the middleware when creating the Falcon app::

    lifespan = DownloadWorkerLifespan(worker, queue, closers=[client.aclose])
    app = falcon.asgi.App(middleware=[lifespan])

"""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

from deploy_agent.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from deploy_agent.deploy.queue import DownloadQueue
    from deploy_agent.deploy.worker import DownloadWorker

__all__ = ["DownloadWorkerLifespan"]

logger = get_logger(__name__)

type Closer = cabc.Callable[[], cabc.Awaitable[object]]


class DownloadWorkerLifespan:
    """Falcon middleware owning the background download task.

    Parameters
    ----------
    worker
        The queue consumer to run.
    queue
        Queue shared with the webhook resource; closed at shutdown.
    closers
        Async callables invoked at shutdown to release clients.

    """

    def __init__(
        self,
        worker: DownloadWorker,
        queue: DownloadQueue,
        *,
        closers: cabc.Sequence[Closer] = (),
    ) -> None:
        """Initialise the middleware with the worker and its queue."""
        self._worker = worker
        self._queue = queue
        self._closers = tuple(closers)
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        """Return whether the worker task is alive."""
        return self._task is not None and not self._task.done()

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Start the worker task."""
        self._task = asyncio.create_task(
            self._worker.run(), name="download-worker"
        )
        log_info(logger, "Started download queue processor")

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Stop the worker task and release owned clients."""
        self._queue.close()
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        for closer in self._closers:
            await closer()
        log_info(logger, "Finished download queue processor")
