"""FastAPI application setup."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from product_api.api.controller import product_router
from product_api.api.errors import register_exception_handlers, unhandled_exception_handler
from product_api.config import AppConfig, get_config, setup_logging
from product_api.services import ProductStore

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The product store is built from ``config`` and connected when the
    application starts; it is closed on shutdown.
    """
    config = config or get_config()
    setup_logging(config.logging.level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = ProductStore.from_config(config)
        await store.connect()
        app.state.product_store = store
        try:
            yield
        finally:
            await store.close()

    docs = config.api_docs
    app = FastAPI(
        title=docs.title,
        description=docs.description,
        version=docs.version,
        contact={"name": docs.contact_name, "email": docs.contact_email},
        servers=[{"url": docs.server_url}],
        docs_url=docs.docs_url,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            # Exceptions without a dedicated handler surface here
            return await unhandled_exception_handler(request, e)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f} ms")
        return response

    register_exception_handlers(app)

    # Include routers
    app.include_router(product_router)

    @app.get("/", tags=["Root"])
    async def root() -> dict:
        """API info."""
        return {"name": docs.title, "version": docs.version, "docs": docs.docs_url}

    @app.get("/health", tags=["Root"])
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
