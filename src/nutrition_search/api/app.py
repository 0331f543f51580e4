"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nutrition_search.api.providers import cnf_router, off_router, usda_router
from nutrition_search.api.search import router as search_router
from nutrition_search.app_logging import configure_logging
from nutrition_search.containers import AppContainer
from nutrition_search.domain.errors import NutritionSearchError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to close provider clients")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(NutritionSearchError)
    async def handle_search_error(
        request: Request, exc: NutritionSearchError
    ) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = sorted(
            {str(error["loc"][-1]) for error in exc.errors() if error.get("loc")}
        )
        message = "Invalid request"
        if fields:
            message = f"Invalid value for {', '.join(fields)}"
        return JSONResponse({"error": message}, status_code=400)

    app.include_router(search_router)
    app.include_router(usda_router)
    app.include_router(cnf_router)
    app.include_router(off_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
