import contextvars
from typing import Optional

_sns_message_id = contextvars.ContextVar("sns_message_id", default=None)

def set_context(sns_message_id: Optional[str]) -> None:
    _sns_message_id.set(sns_message_id) # type: ignore

def get_context() -> Optional[str]:
    return _sns_message_id.get()
