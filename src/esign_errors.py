"""
Error types raised by the Adobe Sign envelope adapter.
"""
from typing import Optional


class AdobeSignError(Exception):
    """Base class for Adobe Sign adapter errors."""


class AuthenticationError(AdobeSignError):
    """The OAuth2 token endpoint failed or returned no access token."""


class RemoteCallError(AdobeSignError):
    """A call to the Adobe Sign REST API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CircuitOpenError(AdobeSignError):
    """The circuit breaker is open and the call was not attempted."""


class EnvelopeNotFoundError(AdobeSignError, LookupError):
    """No agreement is mapped to the requested envelope id."""

    def __init__(self, envelope_id):
        super().__init__(f"Envelope not found: {envelope_id}")
        self.envelope_id = envelope_id


class UnsupportedOperationError(AdobeSignError, NotImplementedError):
    """The operation is not supported by the Adobe Sign adapter."""
