"""Service layer exports."""

from .callback_bridge import (
    CallbackBridge,
    CallbackOutcome,
    CallbackState,
    MissingAuthorizationCode,
)

__all__ = [
    "CallbackBridge",
    "CallbackOutcome",
    "CallbackState",
    "MissingAuthorizationCode",
]
