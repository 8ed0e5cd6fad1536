import asyncio
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse

from ..config import settings
from ..context import set_context
from ..exceptions import MethodNotAllowedError, RelayError, RequestCancelledError, UnknownKindError
from ..logging import jlog, log_enabled
from ..sanitize import sanitize_value
from ..schemas import NOTIFICATION, SUBSCRIPTION_CONFIRMATION, decode_envelope
from ..service import check_origin, confirm_subscription, relay_notification

router = APIRouter()

T = TypeVar("T")

# Every method is routed here so the handler, not the framework, decides
# between 400 (unknown type) and 405 (recognized type, not POST)
CALLBACK_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _require_post(request: Request) -> None:
    if request.method != "POST":
        raise MethodNotAllowedError("only POST method accepted")


async def _bound_to_request(request: Request, aw: Awaitable[T]) -> T:
    """
    Await `aw` while polling for the inbound client going away. On disconnect
    the outbound operation is cancelled; SNS will redeliver.
    """
    task = asyncio.ensure_future(aw)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=settings.disconnect_poll_s)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                raise RequestCancelledError("client disconnected")
    finally:
        if not task.done():
            task.cancel()


@router.api_route(settings.endpoint_path, methods=CALLBACK_METHODS)
async def sns_callback(request: Request) -> Response:
    """
    SNS HTTP(S) subscription endpoint.
    SubscriptionConfirmation -> GET SubscribeURL; Notification -> publish to Pub/Sub.
    """
    set_context(None)
    try:
        await _handle(request)
    except RelayError as e:
        jlog(
            event=e.event,
            severity="ERROR",
            status_code=e.status_code,
            method=request.method,
            detail=e.detail,
            **e.fields,
        )
        return PlainTextResponse(e.detail, status_code=e.status_code)
    return Response(status_code=200)


async def _handle(request: Request) -> None:
    envelope = decode_envelope(await request.body(), max_bytes=settings.max_body_bytes)
    set_context(envelope.message_id or None)

    if log_enabled("DEBUG"):
        jlog(
            event="sns_callback_received",
            severity="DEBUG",
            **{k: sanitize_value(k, v) for k, v in envelope.model_dump(exclude={"signature", "signing_cert_url"}).items()},
        )

    # Origin gate runs before any outbound call
    check_origin(envelope, settings.sns_arn)

    kind = envelope.kind
    if kind == SUBSCRIPTION_CONFIRMATION:
        _require_post(request)
        await _bound_to_request(
            request,
            confirm_subscription(request.app.state.httpx_client, envelope.subscribe_url),
        )
    elif kind == NOTIFICATION:
        _require_post(request)
        await _bound_to_request(
            request,
            relay_notification(
                request.app.state.publisher,
                settings.gcp_project,
                settings.topic_name,
                envelope,
                timeout=settings.publish_timeout_s,
            ),
        )
    else:
        raise UnknownKindError("unsupported SNS message type", type=envelope.type_)
