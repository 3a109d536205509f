"""GitHub webhook resource.

Usage
-----
Register the webhook endpoint on the Falcon app::

    from deploy_agent.api.webhook.resources import GitHubWebhookResource

    app.add_route("/github", GitHubWebhookResource(verifier, event_filter))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from deploy_agent.github.events import EVENT_HEADER, WebhookEnvelope
from deploy_agent.github.signature import SIGNATURE_HEADER

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from deploy_agent.github.events import EventFilter
    from deploy_agent.github.signature import SignatureVerifier

__all__ = ["GitHubWebhookResource"]


class GitHubWebhookResource:
    """Accept GitHub webhook deliveries on ``POST /github``.

    The body is authenticated before anything else is read from it. Errors
    raised by the verifier and the event filter are translated to HTTP
    responses by the handlers in :mod:`deploy_agent.api.errors`.

    Parameters
    ----------
    verifier
        Checks ``x-hub-signature-256`` against the webhook secret.
    event_filter
        Decides whether the delivery queues a deployment.

    """

    def __init__(
        self, verifier: SignatureVerifier, event_filter: EventFilter
    ) -> None:
        """Initialise the resource with its collaborators."""
        self._verifier = verifier
        self._event_filter = event_filter

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /github requests.

        Parameters
        ----------
        req
            Falcon request carrying the delivery headers and raw JSON body.
        resp
            Falcon response populated with the dispatch result.

        """
        envelope = WebhookEnvelope(
            event_kind=req.get_header(EVENT_HEADER),
            signature=req.get_header(SIGNATURE_HEADER),
            raw_body=await req.stream.read(),
        )
        await self._verifier.verify(envelope.raw_body, envelope.signature)
        result = await self._event_filter.dispatch(envelope)
        resp.media = {"status": result.value}
        resp.status = HTTPStatus.OK
