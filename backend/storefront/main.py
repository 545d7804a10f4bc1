"""
# `storefront/main.py` — Application entry point

## Overview
Builds the FastAPI application: routers, CORS, the document store, the cart
session registry and the background scheduler.

## Routers
**Public:** `/auth`, `/users`, `/products`, `/cart`, `/orders`

**Admin (prefix `/admin`):** `/products`, `/orders`, guarded by `require_admin`.

## Document store
`STORE_BACKEND=firestore` (default) uses the Firebase Admin async Firestore
client; `STORE_BACKEND=memory` keeps everything in process (local development).

## Background scheduler
- **Library:** APScheduler (`AsyncIOScheduler`)
- **Job:** `prune-cart-sessions` closes cart sessions idle for
  `SESSION_IDLE_MINUTES`, every `SESSION_SWEEP_MINUTES`.

**Events:**
- `startup`: scheduler started.
- `shutdown`: scheduler stopped, every cart session flushed and closed.
"""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.config import Settings, settings as default_settings
from storefront.core.errors import StoreFailure
from storefront.routers import auth, cart, orders, products, users
from storefront.services.document_store import DocumentStore, build_store
from storefront.services.sessions import CartSessionRegistry

logger = logging.getLogger("storefront")


def create_app(store: Optional[DocumentStore] = None, cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or default_settings
    logging.basicConfig(
        level=logging.DEBUG if cfg.debug else cfg.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Storefront API",
        description="Product catalog, synchronized shopping cart and orders on Firebase.",
        version="1.0.0",
        redirect_slashes=False,
    )
    app.state.settings = cfg
    app.state.store = store if store is not None else build_store(cfg)
    app.state.sessions = CartSessionRegistry(app.state.store, cfg)

    # Configure CORS (allow front-end domain or all origins as specified)
    allow_origins = [origin.strip() for origin in cfg.allowed_origins.split(',')] if cfg.allowed_origins else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreFailure)
    async def _store_failure(request: Request, exc: StoreFailure):
        logger.error("%s %s: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Storage is temporarily unavailable."},
        )

    # Include public routers
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(cart.router)
    app.include_router(orders.router)

    # Include admin routers (with prefix /admin)
    app.include_router(products.admin_router, prefix="/admin")
    app.include_router(orders.admin_router, prefix="/admin")

    scheduler = AsyncIOScheduler()
    app.state.scheduler = scheduler

    @app.on_event("startup")
    async def _startup_scheduler():
        if not scheduler.running:
            scheduler.start()
        scheduler.add_job(
            app.state.sessions.prune_idle,
            "interval",
            minutes=cfg.session_sweep_minutes,
            id="prune-cart-sessions",
            replace_existing=True,
        )

    @app.on_event("shutdown")
    async def _shutdown():
        if scheduler.running:
            scheduler.shutdown(wait=False)
        await app.state.sessions.close_all()

    return app


app = create_app()

# Run the app directly with uvicorn (for development)
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=8000, reload=True)
