import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import DecodeError, InvalidEnvelopeError

SUBSCRIPTION_CONFIRMATION = "subscriptionconfirmation"
NOTIFICATION = "notification"

# Unpaired UTF-16 surrogates survive json.loads but cannot be UTF-8 encoded
_LONE_SURROGATE = re.compile(r"[\ud800-\udfff]")


class SNSEnvelope(BaseModel):
    """
    HTTP(S) callback body posted by SNS. Wire names are matched case-sensitively;
    unknown keys are ignored and missing ones default to "".
    """
    model_config = ConfigDict(extra="ignore", frozen=True)

    # Use alias to preserve the exact wire field names
    type_: str = Field("", alias="Type", description="SubscriptionConfirmation, Notification, ...")
    message_id: str = Field("", alias="MessageId")
    token: str = Field("", alias="Token")
    topic_arn: str = Field("", alias="TopicArn", description="ARN of the topic that produced the callback")
    subject: str = Field("", alias="Subject")
    message: str = Field("", alias="Message", description="Payload, relayed as-is")
    subscribe_url: str = Field("", alias="SubscribeURL", description="Only set on SubscriptionConfirmation")
    timestamp: str = Field("", alias="Timestamp")
    signature_version: str = Field("", alias="SignatureVersion")
    signature: str = Field("", alias="Signature")
    signing_cert_url: str = Field("", alias="SigningCertURL")
    unsubscribe_url: str = Field("", alias="UnsubscribeURL")

    @field_validator("*", mode="before")
    @classmethod
    def _normalize(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, str):
            return _LONE_SURROGATE.sub("\ufffd", v)
        return v

    @property
    def kind(self) -> str:
        return self.type_.lower()


def decode_envelope(body: bytes, max_bytes: int) -> SNSEnvelope:
    if len(body) > max_bytes:
        raise DecodeError("error reading request", size=len(body), max_bytes=max_bytes)
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise DecodeError("error reading request", error=str(e)) from e

    if not isinstance(payload, dict):
        raise InvalidEnvelopeError("invalid SNS message", error=f"expected object, got {type(payload).__name__}")
    try:
        return SNSEnvelope.model_validate(payload)
    except ValidationError as e:
        raise InvalidEnvelopeError(
            "invalid SNS message",
            error=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from e
