import hashlib
from typing import Any

SAFE_KEYS = {
    "type_", "topic_arn", "message_id", "subject", "subscribe_url", "timestamp",
}
SENSITIVE_KEYS = {
    "message", "token", "signature", "authorization", "body",
}

def hash_preview(s: str, n: int = 12) -> str:
    if not isinstance(s, str):
        s = str(s)
    return f"sha256={hashlib.sha256(s.encode('utf-8', 'surrogatepass')).hexdigest()[:n]},len={len(s)}"

def sanitize_value(key: str, value: Any) -> Any:
    k = (key or "").lower()
    if k in SAFE_KEYS:
        return value
    if k in SENSITIVE_KEYS:
        # Never log raw; return only hash/length
        return hash_preview(str(value))
    if isinstance(value, (bytes, bytearray)):
        return f"bytes:{len(value)}"
    if isinstance(value, str):
        return value if len(value) <= 120 else hash_preview(value)
    if isinstance(value, (int, float, bool)) or value is None:
        return value
    if isinstance(value, dict):
        return {k: sanitize_value(k, v) for k, v in value.items()}
    if isinstance(value, list):
        return [sanitize_value("", v) for v in value]
    return str(value)
