"""
Error hierarchy for webhook signature verification.

Both signature error kinds inherit from WebhookSignatureError, so callers can
catch any signature failure in a single except block and turn it into an
HTTP response using its ``status_code``.
"""

from __future__ import annotations

SIGNATURE_ERROR_TYPES = frozenset({
    "WebhookSignatureFormatError",
    "WebhookSignatureValueError",
})


class WebhookSignatureError(Exception):
    """Base error class for all signature errors.

    Attributes:
        message: Human-readable error description.
        status_code: Suggested HTTP status code for the response, set by
            each concrete error kind.
        type: Discriminant naming the concrete error kind.
    """

    type: str = "WebhookSignatureError"
    status_code: int | None = None

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class WebhookSignatureValueError(WebhookSignatureError):
    """Raised when the signature does not match the expected value (HTTP 401).

    Also raised when a request carries no signature header at all.
    """

    type = "WebhookSignatureValueError"
    status_code = 401


class WebhookSignatureFormatError(WebhookSignatureError):
    """Raised when the signature material is malformed (HTTP 400).

    This covers a missing or unparseable header, multiple headers, a missing
    request body, and an invalid secret, payload or timestamp handed to the
    signature functions.
    """

    type = "WebhookSignatureFormatError"
    status_code = 400


SIGNATURE_ERRORS = (WebhookSignatureFormatError, WebhookSignatureValueError)


class RequestBodyTypeError(TypeError):
    """Raised when a request body was parsed before verification.

    Not a signature error: it signals a misconfigured receiver, since a
    parsed body can't be turned back into the exact bytes that were signed.
    """


def is_signature_error(error: object) -> bool:
    """Check whether or not the given error is a signature error.

    Args:
        error: Any object, typically a caught exception.

    Returns:
        True if ``error`` is a format or value signature error.
    """
    return (
        isinstance(error, WebhookSignatureError)
        and error.type in SIGNATURE_ERROR_TYPES
    )
