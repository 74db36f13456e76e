"""
Application-level exceptions.

Each domain error carries the HTTP status the API layer answers with, so
services raise them and the FastAPI exception handlers map them to the
{"success": false, "error": ...} envelope.
"""

from __future__ import annotations


class AlpacaLottoError(Exception):
    """Base class for domain errors raised by services."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(AlpacaLottoError):
    """Malformed request parameters or optimizer input."""

    status_code = 400


class InvalidDuration(InvalidInput):
    """Session key duration is not a positive integer number of seconds."""


class NotFound(AlpacaLottoError):
    """Requested lottery, session key or other resource does not exist."""

    status_code = 404


class AuthorizationPending(AlpacaLottoError):
    """Signature or session-key authorization missing or not matching the wallet."""

    status_code = 401


class UpstreamFailure(AlpacaLottoError):
    """Contract, RPC, price API or database call failed."""

    status_code = 500
