"""
Error taxonomy for order execution and streaming.

Propagation:
- ValidationError / CredentialError: raised before any network attempt.
- NetworkError / ExchangeError: raised from submit/cancel; the dispatcher
  catches them per order and keeps going.
- ConnectionLoss: internal to stream sessions, never raised to callers.
"""

from __future__ import annotations

from typing import Optional


class TerminalError(Exception):
    """Base class for every error the terminal raises on purpose."""


class ValidationError(TerminalError):
    """Local input check failed; nothing was sent."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.message = message
        self.field = field
        super().__init__(message)


class CredentialError(TerminalError):
    """Live mode without an API key or secret."""

    def __init__(self, message: str = "API Key and Secret required for Live Mode") -> None:
        super().__init__(message)


class NetworkError(TerminalError):
    """Transport failure reaching the exchange."""

    def __init__(self, message: str = "Network communication failed") -> None:
        super().__init__(message)


class ExchangeError(TerminalError):
    """Non-success HTTP response from the exchange."""

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[int] = None) -> None:
        self.message = message
        self.status = status
        self.code = code
        super().__init__(message)

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.message} (code={self.code})"
        return self.message


class ConnectionLoss(TerminalError):
    """Stream closed unexpectedly. Handled by the session via reconnect."""


class ModeLockedError(TerminalError):
    """Mode switch requested while a submission is in flight."""

    def __init__(self, message: str = "Cannot switch execution mode while orders are in flight") -> None:
        super().__init__(message)
