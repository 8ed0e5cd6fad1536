from typing import Any


class RelayError(Exception):
    """
    Base for every failure the callback endpoint reports.
    `detail` goes into the response body; `fields` only into the log line.
    """
    status_code = 500
    event = "relay_failed"

    def __init__(self, detail: str, **fields: Any):
        super().__init__(detail)
        self.detail = detail
        self.fields = fields


class DecodeError(RelayError):
    """Body could not be read or is not JSON."""
    status_code = 400
    event = "decode_failed"


class InvalidEnvelopeError(RelayError):
    """Valid JSON that does not have the SNS envelope shape."""
    status_code = 403
    event = "invalid_envelope"


class ForbiddenOriginError(RelayError):
    status_code = 403
    event = "invalid_topic"


class UnknownKindError(RelayError):
    status_code = 400
    event = "unknown_message_type"


class MethodNotAllowedError(RelayError):
    status_code = 405
    event = "method_not_allowed"


class HandshakeError(RelayError):
    """Temporary or config issue on the SNS side: confirmation GET failed."""
    status_code = 500
    event = "subscription_confirm_failed"


class PublishError(RelayError):
    """Pub/Sub publish failed; SNS redelivers, we do not retry."""
    status_code = 500
    event = "publish_failed"


class RequestCancelledError(RelayError):
    # nginx-style "client closed request"; nobody is left to read it
    status_code = 499
    event = "request_cancelled"


class StartupError(Exception):
    """Publisher could not be created. Fatal."""
