"""Exception handlers for checkout-specific failures.

Domain validation and missing aggregates are mapped by Protean's own
FastAPI integration; this adds the checkout persistence failure.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers as register_domain_exception_handlers

from storefront.checkout.orchestrator import CheckoutFailed

logger = structlog.get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    register_domain_exception_handlers(app)

    @app.exception_handler(CheckoutFailed)
    async def checkout_failed(request: Request, exc: CheckoutFailed):
        logger.error("Checkout failed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=503, content={"error": str(exc)})
