"""
Models for webhook signature verification.

The decoded signature is a frozen pydantic model; requests are described by
a structural protocol so framework request objects can be verified directly,
with a pydantic model provided for callers that build requests by hand.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, Union

from pydantic import BaseModel, Field

HeaderValue = Union[str, list[str], tuple[str, ...], None]
"""A header as delivered by the transport: single, repeated, or absent."""


class DecodedSignature(BaseModel):
    """A decoded ``sanity-webhook-signature`` header."""

    timestamp: int
    """The time the signature was created, in epoch milliseconds."""

    hashed_payload: str = Field(alias="hashedPayload")
    """The hashed payload (base64url encoded, unpadded)."""

    model_config = {"populate_by_name": True, "frozen": True}


class ConnectLikeRequest(Protocol):
    """Anything with a ``headers`` mapping and a ``body``.

    Header names are looked up in lowercase; normalising them is up to
    whoever builds the mapping.
    """

    @property
    def headers(self) -> Mapping[str, HeaderValue]: ...

    @property
    def body(self) -> Any: ...


class WebhookRequest(BaseModel):
    """A minimal inbound request, for verifying outside of a web framework."""

    headers: dict[str, HeaderValue] = Field(default_factory=dict)
    """Header values keyed by lowercase header name."""

    body: Any = None
    """The raw request body. ``None`` means no body was captured."""
