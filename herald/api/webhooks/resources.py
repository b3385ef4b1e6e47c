"""``POST /webhooks/github``: accept GitHub deliveries.

The resource verifies the delivery signature, decodes the JSON body with
msgspec, derives the action, and acknowledges with HTTP 202 before the event
is processed. Processing runs as a Falcon background task after the response
is sent, so GitHub's delivery timeout never depends on SMTP or API latency.

Usage
-----
Register the resource on the Falcon app::

    app.add_route(
        "/webhooks/github",
        GitHubWebhookResource(router, secret=os.environ["HERALD_WEBHOOK_SECRET"]),
    )

"""

from __future__ import annotations

import typing as typ

import falcon
import msgspec

from herald.api.errors import InvalidInputError, InvalidSignatureError
from herald.api.webhooks.signature import verify_signature
from herald.handlers.base import InboundEvent
from herald.logging import get_logger, log_debug, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from herald.notify.results import EventResult

__all__ = ["GitHubWebhookResource", "WebhookProcessor", "resolve_action"]

logger = get_logger(__name__)

EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"
SIGNATURE_HEADER = "X-Hub-Signature-256"
UNKNOWN_ACTION = "unknown"


class WebhookProcessor(typ.Protocol):
    """Process one accepted webhook event."""

    async def process(self, event: InboundEvent) -> EventResult:
        """Handle ``event`` and return its outcome without raising."""
        ...


def resolve_action(event_type: str, payload: typ.Mapping[str, typ.Any]) -> str:
    """Return the action an event is routed and gated under.

    ``deployment`` deliveries without an action count as ``created``.
    ``deployment_status`` deliveries use the status state (``success``,
    ``failure``...) so final states can be told apart.
    """
    if event_type == "deployment_status":
        status = payload.get("deployment_status")
        state = status.get("state") if isinstance(status, dict) else None
        if isinstance(state, str) and state:
            return state
    action = payload.get("action")
    if isinstance(action, str) and action:
        return action
    if event_type == "deployment":
        return "created"
    return UNKNOWN_ACTION


class GitHubWebhookResource:
    """Resource receiving GitHub App webhook deliveries.

    Parameters
    ----------
    processor
        Event processor, normally the :class:`~herald.handlers.EventRouter`.
    secret
        Shared webhook secret. When set, every delivery must carry a valid
        ``X-Hub-Signature-256`` header.
    process_inline
        Await processing before responding instead of scheduling it after
        the response. Intended for tests.

    """

    def __init__(
        self,
        processor: WebhookProcessor,
        *,
        secret: str | None = None,
        process_inline: bool = False,
    ) -> None:
        """Configure the resource."""
        self._processor = processor
        self._secret = secret
        self._process_inline = process_inline

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /webhooks/github.

        Raises
        ------
        InvalidSignatureError
            If a secret is configured and the signature is missing or wrong.
        InvalidInputError
            If the event header is missing or the body is not a JSON object.

        """
        body = await req.stream.read()
        self._verify(req, body)

        event_type = req.get_header(EVENT_HEADER)
        if not event_type:
            msg = "header is required"
            raise InvalidInputError(msg, field=EVENT_HEADER)
        delivery_id = req.get_header(DELIVERY_HEADER)
        payload = _decode_payload(body)

        if event_type == "ping":
            log_debug(logger, "Received ping delivery %s", delivery_id or "-")
            resp.media = {"status": "pong"}
            resp.status = falcon.HTTP_200
            return

        event = InboundEvent(
            event_type=event_type,
            action=resolve_action(event_type, payload),
            payload=payload,
            delivery_id=delivery_id,
        )
        if self._process_inline:
            await self._processor.process(event)
        else:

            async def process_after_response() -> None:
                await self._processor.process(event)

            resp.schedule(process_after_response)

        resp.media = {"status": "accepted", "delivery_id": delivery_id}
        resp.status = falcon.HTTP_202

    def _verify(self, req: Request, body: bytes) -> None:
        if not self._secret:
            return
        signature = req.get_header(SIGNATURE_HEADER)
        if signature is None:
            log_warning(logger, "Rejected webhook delivery without a signature")
            raise InvalidSignatureError.missing()
        if not verify_signature(self._secret, body, signature):
            log_warning(logger, "Rejected webhook delivery with a bad signature")
            raise InvalidSignatureError.mismatch()


def _decode_payload(body: bytes) -> dict[str, typ.Any]:
    try:
        payload = msgspec.json.decode(body)
    except msgspec.DecodeError as exc:
        msg = f"Request body is not valid JSON: {exc}"
        raise InvalidInputError(msg) from exc
    if not isinstance(payload, dict):
        msg = "Webhook payload must be a JSON object"
        raise InvalidInputError(msg)
    return payload
