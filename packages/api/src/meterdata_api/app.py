"""
FastAPI application factory.

Start with:
    uvicorn meterdata_api.app:app --reload --port 8000
    meterdata-api
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meterdata_shared.config import settings
from meterdata_pipeline.utils.logging import configure_logging

from meterdata_api import __version__
from meterdata_api.middleware.logging import LoggingMiddleware
from meterdata_api.responses import failure_response
from meterdata_api.routers.csv import router as csv_router
from meterdata_api.routers.health import router as health_router

logger = structlog.get_logger()


async def _csv_validation_handler(request: Request, exc: RequestValidationError):
    """Render invalid upload forms in the upload envelope; defer elsewhere."""
    if not request.url.path.startswith(csv_router.prefix):
        return await request_validation_exception_handler(request, exc)
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ())[1:])}: {err.get('msg')}"
        for err in exc.errors()
    )
    logger.info("upload_form_invalid", path=request.url.path, errors=problems)
    return JSONResponse(
        status_code=400,
        content=failure_response(f"Invalid upload parameters: {problems}"),
    )


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="meterdata API",
        description="Bulk CSV ingestion of meters and readings",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(RequestValidationError, _csv_validation_handler)

    # Routers
    app.include_router(health_router)
    app.include_router(csv_router)

    logger.info("app_created", cors_origins=settings.cors_origins_list)
    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run("meterdata_api.app:app", host=settings.api_host, port=settings.api_port)
