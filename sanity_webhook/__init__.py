"""
Sanity webhook toolkit — verify signed webhook deliveries.

Webhook payloads are signed with HMAC-SHA256 and a shared secret; the
``sanity-webhook-signature`` header carries the signing time and the hash.

Example::

    import os
    from sanity_webhook import is_valid_signature, SIGNATURE_HEADER_NAME

    is_valid = is_valid_signature(
        payload=request.body.decode("utf-8"),
        signature=request.headers[SIGNATURE_HEADER_NAME],
        secret=os.environ["SANITY_WEBHOOK_SECRET"],
    )
"""

from __future__ import annotations

from .auth import WebhookSignatureAuth
from .errors import (
    RequestBodyTypeError,
    WebhookSignatureError,
    WebhookSignatureFormatError,
    WebhookSignatureValueError,
    is_signature_error,
)
from .middleware import (
    SignatureMiddlewareOptions,
    SignedRequestMiddleware,
    require_signed_request,
)
from .signature import (
    MINIMUM_TIMESTAMP,
    SIGNATURE_HEADER_NAME,
    aassert_valid_request,
    aassert_valid_signature,
    acompute_signature,
    aencode_signature_header,
    ais_valid_request,
    ais_valid_signature,
    assert_valid_request,
    assert_valid_signature,
    compute_signature,
    decode_signature_header,
    encode_signature_header,
    is_valid_request,
    is_valid_signature,
)
from .signer import (
    AsyncHmacSha256Signer,
    AsyncSigner,
    HmacSha256Signer,
    Signer,
    ThreadedSigner,
)
from .types import ConnectLikeRequest, DecodedSignature, HeaderValue, WebhookRequest

__version__ = "0.1.0"

__all__ = [
    # Signature
    "MINIMUM_TIMESTAMP",
    "SIGNATURE_HEADER_NAME",
    "compute_signature",
    "encode_signature_header",
    "decode_signature_header",
    "assert_valid_signature",
    "is_valid_signature",
    "assert_valid_request",
    "is_valid_request",
    "acompute_signature",
    "aencode_signature_header",
    "aassert_valid_signature",
    "ais_valid_signature",
    "aassert_valid_request",
    "ais_valid_request",
    # Errors
    "WebhookSignatureError",
    "WebhookSignatureFormatError",
    "WebhookSignatureValueError",
    "RequestBodyTypeError",
    "is_signature_error",
    # Types
    "DecodedSignature",
    "ConnectLikeRequest",
    "WebhookRequest",
    "HeaderValue",
    # Signers
    "Signer",
    "AsyncSigner",
    "HmacSha256Signer",
    "AsyncHmacSha256Signer",
    "ThreadedSigner",
    # Middleware
    "SignatureMiddlewareOptions",
    "SignedRequestMiddleware",
    "require_signed_request",
    # Outgoing requests
    "WebhookSignatureAuth",
]
