"""Liveness, readiness and echo resources.

These resources never touch the secret store or GitHub. The readiness probe
reports the download queue depth and whether the background worker is alive.

Usage
-----
Register the endpoints on the Falcon app::

    from deploy_agent.api.health.resources import (
        EchoResource,
        HealthResource,
        ReadyResource,
    )

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(queue=queue, worker=lifespan))
    app.add_route("/echo", EchoResource())

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from deploy_agent.deploy.queue import DownloadQueue

__all__ = ["EchoResource", "HealthResource", "ReadyResource", "WorkerStatus"]


class WorkerStatus(typ.Protocol):
    """Anything that knows whether the download worker is running."""

    @property
    def is_running(self) -> bool:
        """Return whether the worker task is alive."""
        ...


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe resource.

    Responds with HTTP 200 and the queue depth while the worker runs, and
    with HTTP 503 once the worker task has stopped. Without a worker (for
    example in tests), it always reports ready.

    Parameters
    ----------
    queue
        Optional download queue whose depth is reported.
    worker
        Optional status source for the background worker.

    """

    def __init__(
        self,
        *,
        queue: DownloadQueue | None = None,
        worker: WorkerStatus | None = None,
    ) -> None:
        """Initialise with optional queue and worker status sources."""
        self._queue = queue
        self._worker = worker

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with readiness status.

        """
        if self._worker is not None and not self._worker.is_running:
            resp.media = {"status": "unavailable"}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
            return

        media: dict[str, object] = {"status": "ready"}
        if self._queue is not None:
            media["queue_depth"] = self._queue.depth
            media["queue_capacity"] = self._queue.capacity
        resp.media = media
        resp.status = HTTPStatus.OK


class EchoResource:
    """Diagnostic resource echoing the ``message`` query parameter."""

    async def on_get(self, req: Request, resp: Response) -> None:
        """Handle GET /echo requests with a plain-text ``Echo: <message>``."""
        message = req.get_param("message", default="")
        resp.content_type = falcon.MEDIA_TEXT
        resp.text = f"Echo: {message}"
        resp.status = HTTPStatus.OK
