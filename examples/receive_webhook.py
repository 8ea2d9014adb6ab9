"""
Webhook Receiver Example

A Starlette app that only accepts deliveries carrying a valid
``sanity-webhook-signature`` header.

Run with: SANITY_WEBHOOK_SECRET=... uvicorn examples.receive_webhook:app
"""

from __future__ import annotations

import logging
import os

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from sanity_webhook import SIGNATURE_HEADER_NAME, is_valid_signature, require_signed_request

logger = logging.getLogger(__name__)

SECRET = os.environ["SANITY_WEBHOOK_SECRET"]


async def on_document_change(request: Request) -> JSONResponse:
    # The middleware already verified the signature and parsed the JSON body
    document = request.state.webhook_payload
    logger.info("Document changed: %s", document.get("_id"))
    return JSONResponse({"success": True})


async def on_manual_check(request: Request) -> JSONResponse:
    # Without middleware: verify against the raw body, never a re-serialized one
    body = await request.body()
    if not is_valid_signature(
        body.decode("utf-8"),
        request.headers.get(SIGNATURE_HEADER_NAME, ""),
        SECRET,
    ):
        return JSONResponse({"message": "Invalid signature"}, status_code=401)
    return JSONResponse({"success": True})


hooks = Starlette(
    routes=[Route("/document", on_document_change, methods=["POST"])],
    middleware=[require_signed_request(SECRET)],
)

app = Starlette(
    routes=[Route("/manual", on_manual_check, methods=["POST"])],
)
app.mount("/hooks", hooks)
