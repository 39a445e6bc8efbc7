"""FastAPI application factory."""

import logging
from collections.abc import Awaitable, Callable
from uuid import uuid4

from fastapi import FastAPI, Request, Response

from inventory_counting.api.admin import router as admin_router
from inventory_counting.api.errors import CORRELATION_HEADER, install_error_handlers
from inventory_counting.api.inventory import router as inventory_router
from inventory_counting.app_logging import configure_logging
from inventory_counting.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI(title="Inventory Counting")
    app.state.container = container

    @app.middleware("http")
    async def assign_correlation_id(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        supplied = request.headers.get(CORRELATION_HEADER, "").strip()
        request.state.correlation_id = supplied or str(uuid4())
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = request.state.correlation_id
        return response

    install_error_handlers(app)
    app.include_router(inventory_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    logger.info("Inventory counting API ready (%s)", container.settings.environment)
    return app
