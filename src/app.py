"""Storefront FastAPI application.

Web server that processes cart, checkout and order commands synchronously
via HTTP. Every request runs inside the storefront domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storefront.domain import storefront  # noqa: E402
from storefront.utils.logging import add_context, clear_context  # noqa: E402

storefront.init()

from storefront.catalog.loader import get_catalog  # noqa: E402
from storefront.checkout.administration import load_checkout_steps  # noqa: E402
from storefront.config import load_settings  # noqa: E402
from storefront.stock import get_stock_service  # noqa: E402
from storefront.stock.seeding import seed_stock  # noqa: E402

# A SQL stock store keeps its own counters; the in-memory one starts from the catalog
if not load_settings().stock_database_url:
    with storefront.domain_context():
        seed_stock(get_stock_service().store, get_catalog(), load_checkout_steps())

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Online ordering — cart, checkout wizard, orders and stock",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context for each request."""
    add_context(method=request.method, path=request.url.path)
    try:
        with storefront.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import (  # noqa: E402
    cart_router,
    checkout_router,
    order_router,
    register_exception_handlers,
    step_router,
)

app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(order_router)
app.include_router(step_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": {"name": storefront.name},
        }
    )
