"""Build telemetry callbacks."""
from frontboost.callbacks.handler import (
    BuildCallbackHandler,
    CompositeCallbackHandler,
    LoggingCallbackHandler,
)

__all__ = ["BuildCallbackHandler", "CompositeCallbackHandler", "LoggingCallbackHandler"]
