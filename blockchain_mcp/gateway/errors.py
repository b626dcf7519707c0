"""Internal exceptions for the gateway layer.

None of these escape :class:`GatewayFacade`; they are converted into response
envelopes with a matching status code.
"""

from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base exception for gateway routing errors."""

    status_code = 500
    status_text = "Error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class RequestBuildError(GatewayError):
    """Raised when a request cannot be built from the caller's input."""

    status_code = 400
    status_text = "Bad Request"


class GatewayCatalogError(GatewayError):
    """Raised when the vendor gateway catalog cannot be loaded."""

    status_code = 503
    status_text = "Service Unavailable"
