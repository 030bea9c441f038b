from .errors import GENERIC_FAILURE, NETWORK_FAILURE, ChatClientError, ErrorBody, describe_error
from .retry import RetryPolicy, post_with_retry
from .session import DEFAULT_CHAT_URL, ChatSession, Notification, aiter_delta_fragments
from .transcript import DEFAULT_GREETING, Message, apply_fragment

__all__ = [
    "DEFAULT_CHAT_URL",
    "DEFAULT_GREETING",
    "GENERIC_FAILURE",
    "NETWORK_FAILURE",
    "ChatClientError",
    "ChatSession",
    "ErrorBody",
    "Message",
    "Notification",
    "RetryPolicy",
    "aiter_delta_fragments",
    "apply_fragment",
    "describe_error",
    "post_with_retry",
]
