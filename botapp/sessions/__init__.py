"""Durable chat sessions and their registry."""

from .registry import (
    BUSY_MESSAGE,
    PendingOutput,
    Session,
    SessionRegistry,
    Transport,
    TransportError,
    UnknownSession,
)

__all__ = [
    "BUSY_MESSAGE",
    "PendingOutput",
    "Session",
    "SessionRegistry",
    "Transport",
    "TransportError",
    "UnknownSession",
]
