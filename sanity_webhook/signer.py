"""
HMAC backends for signature computation.

The signature functions depend only on the ``Signer``/``AsyncSigner``
capabilities, so whether the digest is computed inline, awaited, or pushed
to a worker thread is decided by the backend handed in, not by the codec.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
from typing import Protocol


class Signer(Protocol):
    """Computes a keyed digest synchronously."""

    def sign(self, message: bytes, key: bytes) -> bytes: ...


class AsyncSigner(Protocol):
    """Computes a keyed digest behind an awaitable call."""

    async def sign(self, message: bytes, key: bytes) -> bytes: ...


class HmacSha256Signer:
    """HMAC-SHA256 over the standard library ``hmac`` module."""

    def sign(self, message: bytes, key: bytes) -> bytes:
        return hmac.new(key, message, hashlib.sha256).digest()


class AsyncHmacSha256Signer:
    """HMAC-SHA256 computed inline on the event loop.

    Webhook payloads are small, so hashing them is cheaper than a thread hop.
    """

    async def sign(self, message: bytes, key: bytes) -> bytes:
        return hmac.new(key, message, hashlib.sha256).digest()


class ThreadedSigner:
    """Run a blocking ``Signer`` in a worker thread.

    Useful when the wrapped backend is slow (e.g. an HSM client) and must not
    stall the event loop.

    Args:
        signer: The blocking backend to offload.
    """

    def __init__(self, signer: Signer) -> None:
        self._signer = signer

    async def sign(self, message: bytes, key: bytes) -> bytes:
        return await asyncio.to_thread(self._signer.sign, message, key)


DEFAULT_SIGNER: Signer = HmacSha256Signer()
DEFAULT_ASYNC_SIGNER: AsyncSigner = AsyncHmacSha256Signer()
