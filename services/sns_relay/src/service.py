import asyncio
from typing import Dict, Optional, Tuple

import httpx
from google.cloud import pubsub_v1

from .exceptions import ForbiddenOriginError, HandshakeError, PublishError, StartupError
from .logging import jlog
from .schemas import SNSEnvelope

# Characters stripped around both ARNs before comparing
_ASCII_WHITESPACE = " \t\n\r\x0b\x0c"


def create_publisher(project_id: str) -> pubsub_v1.PublisherClient:
    """
    Build the process-wide Pub/Sub publisher. Failure here must stop the process
    so the platform never routes traffic to an instance that cannot publish.
    """
    if not project_id.strip():
        jlog(event="publisher_init_failed", severity="CRITICAL", error="GCP_PROJECT is not set")
        raise StartupError("an error occurred creating pubsub client: GCP_PROJECT is not set")
    try:
        return pubsub_v1.PublisherClient()
    except Exception as e:
        jlog(event="publisher_init_failed", severity="CRITICAL", project_id=project_id, error=str(e))
        raise StartupError(f"an error occurred creating pubsub client: {e}") from e


def check_origin(envelope: SNSEnvelope, expected_topic_arn: str) -> None:
    # Without this gate the endpoint is an open relay into Pub/Sub
    expected = expected_topic_arn.strip(_ASCII_WHITESPACE)
    received = envelope.topic_arn.strip(_ASCII_WHITESPACE)
    if not expected or received != expected:
        raise ForbiddenOriginError("invalid SNS topic", topic_arn=envelope.topic_arn)


async def confirm_subscription(client: httpx.AsyncClient, subscribe_url: str) -> None:
    """
    Confirm a pending SNS subscription by fetching its SubscribeURL once.
    Only a 200 counts; the response body is ignored.
    """
    if not subscribe_url:
        raise HandshakeError("error creating request to confirm subscription", error="empty SubscribeURL")
    try:
        request = client.build_request("GET", subscribe_url)
    except (httpx.InvalidURL, ValueError, TypeError) as e:
        raise HandshakeError("error creating request to confirm subscription", error=str(e)) from e
    if request.url.scheme not in ("http", "https"):
        raise HandshakeError(
            "error creating request to confirm subscription",
            error=f"unsupported scheme {request.url.scheme!r}",
        )

    try:
        response = await client.send(request)
    except httpx.HTTPError as e:
        raise HandshakeError(
            "an error occurred while confirming subscription",
            subscribe_url=subscribe_url,
            error=str(e),
        ) from e

    if response.status_code != 200:
        raise HandshakeError(
            "confirming subscription failed",
            subscribe_url=subscribe_url,
            upstream_status=response.status_code,
        )

    jlog(event="subscription_confirmed", subscribe_url=subscribe_url)


def build_message(envelope: SNSEnvelope) -> Tuple[bytes, Dict[str, str]]:
    attributes = {
        "snsMessageId": envelope.message_id,
        "snsSubject": envelope.subject,
    }
    return envelope.message.encode("utf-8"), attributes


async def relay_notification(
    publisher: pubsub_v1.PublisherClient,
    project_id: str,
    topic_name: str,
    envelope: SNSEnvelope,
    timeout: Optional[float] = None,
) -> str:
    """
    Publish one SNS notification to Pub/Sub and wait for the server-assigned id.
    The wait is a plain await on the publish future, so cancelling the calling
    task abandons it. No retries: SNS redelivers on a 5xx.
    """
    data, attributes = build_message(envelope)
    topic_path = publisher.topic_path(project_id, topic_name)

    try:
        future = publisher.publish(topic_path, data=data, **attributes)
        message_id = await asyncio.wait_for(asyncio.wrap_future(future), timeout)
    except Exception as e:
        raise PublishError(
            "Error publishing message",
            topic=topic_name,
            error=str(e) or type(e).__name__,
        ) from e

    jlog(event="message_published", topic=topic_name, message_id=message_id)
    return message_id
