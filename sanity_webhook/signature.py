"""
Webhook signature encoding, decoding and verification.

Webhook deliveries are signed with HMAC-SHA256 using a shared secret. The
signature header carries the signing time so the hash is bound to it.

Signature header format: ``t=<epoch-milliseconds>,v1=<base64url HMAC>``
Signed payload format: ``<timestamp>.<raw-body>``

Every operation has an awaitable twin prefixed with ``a`` that takes an
``AsyncSigner`` instead of a ``Signer``; validation and errors are identical.
"""

from __future__ import annotations

import base64
import hmac
import logging
import math
import re
from typing import Any

from .errors import (
    SIGNATURE_ERRORS,
    RequestBodyTypeError,
    WebhookSignatureFormatError,
    WebhookSignatureValueError,
)
from .signer import DEFAULT_ASYNC_SIGNER, DEFAULT_SIGNER, AsyncSigner, Signer
from .types import ConnectLikeRequest, DecodedSignature

logger = logging.getLogger(__name__)

# Signed payloads were not sent prior to 2021-01-01T00:00:00.000Z
MINIMUM_TIMESTAMP = 1609459200000

SIGNATURE_HEADER_NAME = "sanity-webhook-signature"

SIGNATURE_HEADER_RE = re.compile(r"t=([0-9]+)[, ]+v1=([^, ]+)")

BODY_TYPE_MESSAGE = (
    "[sanity_webhook] `request.body` was not a string/bytes - this can lead to "
    "invalid signatures. Verify against the raw request body, before any JSON "
    "parsing takes place."
)


# ── Encoding ─────────────────────────────────────────────────────────────


def compute_signature(
    payload: str,
    timestamp: int,
    secret: str,
    *,
    signer: Signer | None = None,
) -> str:
    """Compute the base64url HMAC-SHA256 of ``<timestamp>.<payload>``.

    Args:
        payload: The raw request body as a string. Must be the exact text
            that was delivered, not a re-serialized JSON object.
        timestamp: Signing time in epoch milliseconds.
        secret: The webhook signing secret.
        signer: Optional HMAC backend. Defaults to the stdlib ``hmac`` module.

    Returns:
        The unpadded base64url encoding of the raw digest.

    Raises:
        WebhookSignatureFormatError: If the secret, payload or timestamp is
            invalid.
    """
    message, key = _signing_input(payload, timestamp, secret)
    return _encode_digest((signer or DEFAULT_SIGNER).sign(message, key))


async def acompute_signature(
    payload: str,
    timestamp: int,
    secret: str,
    *,
    signer: AsyncSigner | None = None,
) -> str:
    """Compute a signature (async). See :func:`compute_signature`."""
    message, key = _signing_input(payload, timestamp, secret)
    digest = await (signer or DEFAULT_ASYNC_SIGNER).sign(message, key)
    return _encode_digest(digest)


def encode_signature_header(
    payload: str,
    timestamp: int,
    secret: str,
    *,
    signer: Signer | None = None,
) -> str:
    """Build the signature header value for a payload.

    Returns:
        The header value in the format ``t=<timestamp>,v1=<signature>``.

    Raises:
        WebhookSignatureFormatError: If the secret, payload or timestamp is
            invalid.
    """
    ts = _check_signature_input(payload, timestamp, secret)
    return _format_header(ts, compute_signature(payload, ts, secret, signer=signer))


async def aencode_signature_header(
    payload: str,
    timestamp: int,
    secret: str,
    *,
    signer: AsyncSigner | None = None,
) -> str:
    """Build the signature header value (async). See :func:`encode_signature_header`."""
    ts = _check_signature_input(payload, timestamp, secret)
    signature = await acompute_signature(payload, ts, secret, signer=signer)
    return _format_header(ts, signature)


# ── Decoding ─────────────────────────────────────────────────────────────


def decode_signature_header(header: str) -> DecodedSignature:
    """Parse a signature header into its timestamp and hashed payload.

    The timestamp is not range-checked here; that happens when the expected
    signature is computed.

    Raises:
        WebhookSignatureFormatError: If the header is empty or malformed.
    """
    if not header:
        raise WebhookSignatureFormatError("Missing or empty signature header")

    match = None
    if isinstance(header, str):
        match = SIGNATURE_HEADER_RE.fullmatch(header.strip())
    if match is None or not match.group(1) or not match.group(2):
        raise WebhookSignatureFormatError("Invalid signature payload format")

    return DecodedSignature(
        timestamp=int(match.group(1)),
        hashed_payload=match.group(2),
    )


# ── Signature verification ───────────────────────────────────────────────


def assert_valid_signature(
    payload: str,
    signature: str,
    secret: str,
    *,
    signer: Signer | None = None,
) -> None:
    """Verify a signature header against a payload.

    The whole header is re-encoded from the decoded timestamp and compared
    to the received value, so only the canonical form validates.

    Args:
        payload: The raw request body as a string.
        signature: The value of the ``sanity-webhook-signature`` header.
        secret: The webhook signing secret.
        signer: Optional HMAC backend.

    Raises:
        WebhookSignatureFormatError: If the header or inputs are malformed.
        WebhookSignatureValueError: If the signature does not match.
    """
    decoded = decode_signature_header(signature)
    expected = encode_signature_header(payload, decoded.timestamp, secret, signer=signer)
    _compare_headers(signature, expected)


async def aassert_valid_signature(
    payload: str,
    signature: str,
    secret: str,
    *,
    signer: AsyncSigner | None = None,
) -> None:
    """Verify a signature header (async). See :func:`assert_valid_signature`."""
    decoded = decode_signature_header(signature)
    expected = await aencode_signature_header(
        payload, decoded.timestamp, secret, signer=signer
    )
    _compare_headers(signature, expected)


def is_valid_signature(
    payload: str,
    signature: str,
    secret: str,
    *,
    signer: Signer | None = None,
) -> bool:
    """Check a signature header against a payload.

    Returns:
        True if the signature is valid, False on any signature error. Other
        exceptions propagate.
    """
    try:
        assert_valid_signature(payload, signature, secret, signer=signer)
    except SIGNATURE_ERRORS as exc:
        logger.debug("Webhook signature rejected: %s", exc.type)
        return False
    return True


async def ais_valid_signature(
    payload: str,
    signature: str,
    secret: str,
    *,
    signer: AsyncSigner | None = None,
) -> bool:
    """Check a signature header (async). See :func:`is_valid_signature`."""
    try:
        await aassert_valid_signature(payload, signature, secret, signer=signer)
    except SIGNATURE_ERRORS as exc:
        logger.debug("Webhook signature rejected: %s", exc.type)
        return False
    return True


# ── Request verification ─────────────────────────────────────────────────


def assert_valid_request(
    request: ConnectLikeRequest,
    secret: str,
    *,
    signer: Signer | None = None,
) -> None:
    """Verify the signature of an inbound request.

    The request body must be the raw ``str`` or ``bytes`` that was received.

    Raises:
        WebhookSignatureFormatError: On multiple signature headers, a missing
            body, or a malformed signature.
        WebhookSignatureValueError: If the signature header is absent or does
            not match.
        RequestBodyTypeError: If the body was already parsed.
    """
    payload, signature = _read_request(request)
    assert_valid_signature(payload, signature, secret, signer=signer)


async def aassert_valid_request(
    request: ConnectLikeRequest,
    secret: str,
    *,
    signer: AsyncSigner | None = None,
) -> None:
    """Verify the signature of an inbound request (async). See :func:`assert_valid_request`."""
    payload, signature = _read_request(request)
    await aassert_valid_signature(payload, signature, secret, signer=signer)


def is_valid_request(
    request: ConnectLikeRequest,
    secret: str,
    *,
    signer: Signer | None = None,
) -> bool:
    """Check the signature of an inbound request.

    Returns:
        True if the request is validly signed, False on any signature error.
        ``RequestBodyTypeError`` and other exceptions propagate.
    """
    try:
        assert_valid_request(request, secret, signer=signer)
    except SIGNATURE_ERRORS as exc:
        logger.debug("Webhook request rejected: %s", exc.type)
        return False
    return True


async def ais_valid_request(
    request: ConnectLikeRequest,
    secret: str,
    *,
    signer: AsyncSigner | None = None,
) -> bool:
    """Check the signature of an inbound request (async). See :func:`is_valid_request`."""
    try:
        await aassert_valid_request(request, secret, signer=signer)
    except SIGNATURE_ERRORS as exc:
        logger.debug("Webhook request rejected: %s", exc.type)
        return False
    return True


# ── Helpers ──────────────────────────────────────────────────────────────


def _check_signature_input(payload: Any, timestamp: Any, secret: Any) -> int:
    """Validate signing inputs, returning the timestamp as an ``int``."""
    if not secret or not isinstance(secret, str):
        raise WebhookSignatureFormatError("Invalid secret provided")

    if not payload:
        raise WebhookSignatureFormatError("Can not compute signature of empty payload")

    if not isinstance(payload, str):
        raise WebhookSignatureFormatError("Payload must be a JSON-encoded string")

    ts: int | None = None
    if isinstance(timestamp, bool):
        ts = None
    elif isinstance(timestamp, int):
        ts = timestamp
    elif isinstance(timestamp, float) and math.isfinite(timestamp) and timestamp.is_integer():
        ts = int(timestamp)

    if ts is None or ts < MINIMUM_TIMESTAMP:
        raise WebhookSignatureFormatError(
            "Invalid signature timestamp, must be a unix timestamp with millisecond precision"
        )
    return ts


def _signing_input(payload: str, timestamp: int, secret: str) -> tuple[bytes, bytes]:
    """Return the ``(message, key)`` pair to feed the HMAC backend."""
    ts = _check_signature_input(payload, timestamp, secret)
    return f"{ts}.{payload}".encode("utf-8"), secret.encode("utf-8")


def _encode_digest(digest: bytes) -> str:
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _format_header(timestamp: int, signature: str) -> str:
    return f"t={timestamp},v1={signature}"


def _compare_headers(received: str, expected: str) -> None:
    # Timing-safe comparison of the full header
    if not hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8")):
        raise WebhookSignatureValueError("Signature is invalid")


def _read_request(request: ConnectLikeRequest) -> tuple[str, str]:
    """Extract ``(payload, signature)`` from a request, enforcing its shape."""
    signature = request.headers.get(SIGNATURE_HEADER_NAME)
    if isinstance(signature, (list, tuple)):
        raise WebhookSignatureFormatError("Multiple signature headers received")

    if not isinstance(signature, str):
        raise WebhookSignatureValueError("Request contained no signature header")

    body = request.body
    if body is None:
        raise WebhookSignatureFormatError("Request contained no parsed request body")

    if isinstance(body, str):
        return body, signature

    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body).decode("utf-8", errors="replace"), signature

    raise RequestBodyTypeError(BODY_TYPE_MESSAGE)
