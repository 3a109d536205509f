"""Application factory for the deploy agent Falcon ASGI application.

This module provides ``create_app()`` which builds and configures the
Falcon ASGI application with probe endpoints and, when webhook
dependencies are available, the ``POST /github`` endpoint.

Usage
-----
Create a probe-only app (no secret store)::

    app = create_app()

Create a full app with the webhook endpoint and download worker::

    from deploy_agent.api.app import create_app
    from deploy_agent.api.factory import build_dependencies

    app = create_app(build_dependencies(config))

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from deploy_agent.api.errors import register_error_handlers
from deploy_agent.api.health.resources import (
    EchoResource,
    HealthResource,
    ReadyResource,
)
from deploy_agent.api.middleware import Closer, DownloadWorkerLifespan
from deploy_agent.api.webhook.resources import GitHubWebhookResource

if typ.TYPE_CHECKING:
    from deploy_agent.deploy.queue import DownloadQueue
    from deploy_agent.deploy.worker import DownloadWorker
    from deploy_agent.github.events import EventFilter
    from deploy_agent.github.signature import SignatureVerifier

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    verifier
        Authenticates webhook bodies.
    event_filter
        Decides which deliveries queue a deployment.
    queue
        Download queue shared by the webhook and the worker.
    worker
        Optional queue consumer. When set, it is started and stopped with
        the ASGI lifespan; tests usually leave it unset and inspect the
        queue directly.
    closers
        Async callables invoked at shutdown to release clients.

    """

    verifier: SignatureVerifier
    event_filter: EventFilter
    queue: DownloadQueue
    worker: DownloadWorker | None = None
    closers: tuple[Closer, ...] = ()


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/health``, ``/ready`` and ``/echo`` are always registered. With
    *dependencies*, ``POST /github`` is added, and a worker in the
    dependencies is run by :class:`DownloadWorkerLifespan`.

    Parameters
    ----------
    dependencies
        Optional application dependencies.  When ``None``, only probe
        endpoints are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    middleware: list[object] = []
    lifespan: DownloadWorkerLifespan | None = None

    if dependencies is not None and dependencies.worker is not None:
        lifespan = DownloadWorkerLifespan(
            dependencies.worker,
            dependencies.queue,
            closers=dependencies.closers,
        )
        middleware.append(lifespan)

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    # Probe endpoints are always available
    app.add_route("/health", HealthResource())
    app.add_route(
        "/ready",
        ReadyResource(
            queue=dependencies.queue if dependencies is not None else None,
            worker=lifespan,
        ),
    )
    app.add_route("/echo", EchoResource())

    if dependencies is not None:
        app.add_route(
            "/github",
            GitHubWebhookResource(dependencies.verifier, dependencies.event_filter),
        )

    register_error_handlers(app)

    return app
