from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.gateway import GatewayError, GatewayTransportError


CONNECTION_ERROR_MESSAGE = "Connection error. Make sure the ledger service is running."


@dataclass
class OperationResult:
    """Generic result type for simple operations."""

    success: bool
    error_message: Optional[str] = None
    message: Optional[str] = None

    @property
    def text(self) -> str:
        """The message to show the user, whichever way the operation went."""

        if self.success:
            return self.message or "Done."
        return self.error_message or "Something went wrong."


def failure_message(exc: GatewayError, fallback: str) -> str:
    """
    Normalize a gateway exception to a user-facing message.

    A server-supplied error text wins; a transport failure gets the generic
    connection message; anything else gets the caller's fallback.
    """

    if exc.server_message:
        return exc.server_message
    if isinstance(exc, GatewayTransportError):
        return CONNECTION_ERROR_MESSAGE
    return fallback
