"""
Starlette middleware that rejects requests without a valid webhook signature.

Example::

    from starlette.applications import Starlette
    from sanity_webhook import require_signed_request

    app = Starlette(
        routes=routes,
        middleware=[require_signed_request(os.environ["SANITY_WEBHOOK_SECRET"])],
    )
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from .errors import is_signature_error
from .signature import SIGNATURE_HEADER_NAME, aassert_valid_request
from .signer import AsyncSigner
from .types import HeaderValue, WebhookRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignatureMiddlewareOptions:
    """Configuration for signature checking middleware.

    Attributes:
        secret: The webhook signing secret.
        parse_body: Store the JSON-decoded payload on
            ``request.state.webhook_payload`` once verified.
        respond_on_error: Answer signature errors directly with
            ``{"message": ...}`` and the error's status code. When False, the
            error goes to the application's exception handler instead.
        signer: Optional HMAC backend.
    """

    secret: str
    parse_body: bool = True
    respond_on_error: bool = True
    signer: AsyncSigner | None = None

    def __post_init__(self) -> None:
        if not self.secret or not isinstance(self.secret, str):
            raise ValueError("A non-empty webhook secret is required for signature checking.")


class SignedRequestMiddleware(BaseHTTPMiddleware):
    """Verify the ``sanity-webhook-signature`` header of every request.

    Accepts either ready-made ``options`` or the option fields as keyword
    arguments, so it can be registered through ``Middleware(...)``.
    """

    def __init__(
        self,
        app: ASGIApp,
        options: SignatureMiddlewareOptions | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(app)
        self.options = options if options is not None else SignatureMiddlewareOptions(**kwargs)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        body = await request.body()
        webhook_request = WebhookRequest(
            headers={SIGNATURE_HEADER_NAME: _signature_header(request)},
            body=body,
        )

        try:
            await aassert_valid_request(
                webhook_request, self.options.secret, signer=self.options.signer
            )
            if self.options.parse_body:
                request.state.webhook_payload = json.loads(body)
        except Exception as exc:
            if is_signature_error(exc):
                logger.warning(
                    "Rejected unsigned webhook request",
                    extra={
                        "method": request.method,
                        "path": request.url.path,
                        "error": exc.type,
                    },
                )
                if self.options.respond_on_error:
                    return JSONResponse({"message": exc.message}, status_code=exc.status_code)

            return await _handle_exception(request, exc)

        return await call_next(request)


def require_signed_request(
    secret: str,
    *,
    parse_body: bool = True,
    respond_on_error: bool = True,
    signer: AsyncSigner | None = None,
) -> Middleware:
    """Build a ``Middleware`` entry for ``Starlette(middleware=[...])``.

    Raises:
        ValueError: If ``secret`` is empty.
    """
    options = SignatureMiddlewareOptions(
        secret=secret,
        parse_body=parse_body,
        respond_on_error=respond_on_error,
        signer=signer,
    )
    return Middleware(SignedRequestMiddleware, options=options)


async def _handle_exception(request: Request, exc: Exception) -> Response:
    """Answer ``exc`` with the application's registered exception handler.

    Middleware runs outside Starlette's ``ExceptionMiddleware``, so the
    handler is looked up here the same way: first match along the MRO.
    Re-raises when the application has no handler for it.
    """
    app = request.scope.get("app")
    handlers = getattr(app, "exception_handlers", None) or {}

    handler = None
    for cls in type(exc).__mro__:
        if cls in handlers:
            handler = handlers[cls]
            break

    if handler is None:
        raise exc

    if asyncio.iscoroutinefunction(handler):
        return await handler(request, exc)
    return await run_in_threadpool(handler, request, exc)


def _signature_header(request: Request) -> HeaderValue:
    values = request.headers.getlist(SIGNATURE_HEADER_NAME)
    if not values:
        return None
    if len(values) > 1:
        return values
    return values[0]
