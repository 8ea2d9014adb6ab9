"""
Signing for outgoing webhook requests.

Useful for sending test deliveries to a receiver, or for relaying payloads
to services that verify them with this library.

Example::

    import httpx
    from sanity_webhook import WebhookSignatureAuth

    with httpx.Client(auth=WebhookSignatureAuth(secret)) as client:
        client.post(url, content=b'{"_id":"resume"}', headers={"content-type": "application/json"})
"""

from __future__ import annotations

import time
from collections.abc import Generator

import httpx

from .signature import SIGNATURE_HEADER_NAME, encode_signature_header
from .signer import Signer


class WebhookSignatureAuth(httpx.Auth):
    """httpx auth flow that adds a ``sanity-webhook-signature`` header.

    Args:
        secret: The webhook signing secret.
        timestamp: Fixed signing time in epoch milliseconds. Defaults to the
            current time for every request.
        signer: Optional HMAC backend.
    """

    requires_request_body = True

    def __init__(
        self,
        secret: str,
        *,
        timestamp: int | None = None,
        signer: Signer | None = None,
    ) -> None:
        self._secret = secret
        self._timestamp = timestamp
        self._signer = signer

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        ts = self._timestamp if self._timestamp is not None else int(time.time() * 1000)
        request.headers[SIGNATURE_HEADER_NAME] = encode_signature_header(
            request.content.decode("utf-8", errors="replace"),
            ts,
            self._secret,
            signer=self._signer,
        )
        yield request
