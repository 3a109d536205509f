"""Falcon error handlers for the webhook endpoint.

Authentication and payload problems are the caller's fault and map to 400.
A secret store failure is infrastructure trouble, not attacker input, and
maps to 500 so GitHub records the delivery as failed.

Usage
-----
Register error handlers on the Falcon app::

    from deploy_agent.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from deploy_agent.deploy.errors import QueueClosedError
from deploy_agent.github.errors import (
    MalformedPayloadError,
    MissingEventHeaderError,
    SignatureError,
)
from deploy_agent.logging import get_logger, log_error
from deploy_agent.secret_store import SecretStoreError

if typ.TYPE_CHECKING:
    from falcon.asgi import App, Request, Response

__all__ = [
    "handle_malformed_payload",
    "handle_missing_event_header",
    "handle_queue_closed",
    "handle_secret_store_error",
    "handle_signature_error",
    "register_error_handlers",
]

logger = get_logger(__name__)


async def handle_signature_error(
    _req: Request,
    resp: Response,
    ex: SignatureError,
    _params: dict[str, typ.Any],
) -> None:
    """Map a missing, malformed or mismatched signature to HTTP 400."""
    resp.status = falcon.HTTP_400
    resp.media = {"title": "Invalid signature", "description": str(ex)}


async def handle_missing_event_header(
    _req: Request,
    resp: Response,
    ex: MissingEventHeaderError,
    _params: dict[str, typ.Any],
) -> None:
    """Map a delivery without ``x-github-event`` to HTTP 400."""
    log_error(logger, "Rejected webhook: %s", ex)
    resp.status = falcon.HTTP_400
    resp.media = {"title": "Missing event header", "description": str(ex)}


async def handle_malformed_payload(
    _req: Request,
    resp: Response,
    ex: MalformedPayloadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map an undecodable payload to HTTP 400, logging the raw body.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The decode failure, carrying the event kind and raw body.
    _params
        URI template parameters (unused).

    """
    log_error(
        logger,
        "Failed to deserialize %s payload (%s): %s",
        ex.event_kind,
        ex.reason,
        ex.body_preview(),
    )
    resp.status = falcon.HTTP_400
    resp.media = {
        "title": "Malformed payload",
        "description": f"{ex.event_kind} payload could not be decoded",
    }


async def handle_secret_store_error(
    _req: Request,
    resp: Response,
    ex: SecretStoreError,
    _params: dict[str, typ.Any],
) -> None:
    """Map a secret store failure to HTTP 500."""
    log_error(logger, "Secret store failure while verifying webhook: %s", ex)
    resp.status = falcon.HTTP_500
    resp.media = {
        "title": "Secret store unavailable",
        "description": f"could not read {ex.secret_name}",
    }


async def handle_queue_closed(
    _req: Request,
    resp: Response,
    ex: QueueClosedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map a delivery that arrives during shutdown to HTTP 503."""
    resp.status = falcon.HTTP_503
    resp.media = {"title": "Shutting down", "description": str(ex)}


def register_error_handlers(app: App) -> None:
    """Register every webhook error handler on ``app``."""
    app.add_error_handler(SignatureError, handle_signature_error)
    app.add_error_handler(MissingEventHeaderError, handle_missing_event_header)
    app.add_error_handler(MalformedPayloadError, handle_malformed_payload)
    app.add_error_handler(SecretStoreError, handle_secret_store_error)
    app.add_error_handler(QueueClosedError, handle_queue_closed)
