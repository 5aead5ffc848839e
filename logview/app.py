from __future__ import annotations

import json

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .logging_config import configure_logging, logger
from .routes import api_router
from .services import DokployError, get_dokploy_client, get_log_view_registry
from .services.logs import ConfigurationError
from .utils import error_response


# Register global exception handlers for consistent error responses across the API
def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.debug("validation error", extra={"errors": exc.errors(), "path": str(request.url)})
        return error_response(
            "Invalid request",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=json.loads(json.dumps(exc.errors(), default=str)),
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        logger.debug(
            "http error",
            extra={"detail": exc.detail, "status": exc.status_code, "path": str(request.url)},
        )
        detail = exc.detail
        if not isinstance(detail, str):
            detail = json.dumps(detail)
        return error_response(detail, status_code=exc.status_code)

    @app.exception_handler(ConfigurationError)
    async def _configuration_exception_handler(request: Request, exc: ConfigurationError):
        logger.info("rejected log view intent", extra={"error": str(exc), "path": str(request.url)})
        return error_response(str(exc), status_code=status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(DokployError)
    async def _dokploy_exception_handler(request: Request, exc: DokployError):
        logger.warning("Dokploy request failed", extra={"error": str(exc), "path": str(request.url)})
        return error_response("Dokploy request failed", status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": str(request.url)})
        return JSONResponse(
            {"ok": False, "error": "Internal server error"},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


configure_logging()
_settings = get_settings()

app = FastAPI(
    title=_settings.app_name,
    version=_settings.app_version,
    docs_url=_settings.resolved_docs_url,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)


@app.on_event("shutdown")
# Close every open log view and the Dokploy HTTP client when the app stops
async def _close_log_views() -> None:
    registry = get_log_view_registry()
    await registry.close_all()
    client = get_dokploy_client()
    if client is not None:
        await client.close()


__all__ = ["app"]
