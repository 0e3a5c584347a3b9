"""Entry point for the Fragments service."""

import socket
import time
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from fragments import config
from fragments.exceptions import (
    ConfigurationError,
    ConversionError,
    ConversionUnsupportedError,
    FragmentNotFoundError,
    FragmentsException,
    FragmentValidationError,
    StorageFailureError,
    TypeMismatchError,
    UnsupportedContentTypeError
)
from fragments.routes.fragment_routes import router as fragment_router
from fragments.schemas.common import ErrorResponse, HealthResponse
from fragments.storage.interfaces import StorageBackends
from fragments.storage.selector import create_backends

logger = setup_logging('fragments')


def _error(status_code: int, exc: Exception, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=code).model_dump()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the fragment error taxonomy onto HTTP responses.
    """

    @app.exception_handler(FragmentNotFoundError)
    async def fragment_not_found_handler(request: Request, exc: FragmentNotFoundError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Fragment not found: {exc} [request_id={request_id}] path={request.url.path}")
        return _error(status.HTTP_404_NOT_FOUND, exc, "FRAGMENT_NOT_FOUND")

    @app.exception_handler(ConversionUnsupportedError)
    async def conversion_unsupported_handler(request: Request, exc: ConversionUnsupportedError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Invalid conversion: {exc} [request_id={request_id}] path={request.url.path}")
        return _error(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, exc, "CONVERSION_UNSUPPORTED")

    @app.exception_handler(UnsupportedContentTypeError)
    async def unsupported_content_type_handler(request: Request, exc: UnsupportedContentTypeError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Unsupported content type: {exc} [request_id={request_id}] path={request.url.path}")
        return _error(status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, exc, "UNSUPPORTED_CONTENT_TYPE")

    @app.exception_handler(TypeMismatchError)
    async def type_mismatch_handler(request: Request, exc: TypeMismatchError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Type mismatch: {exc} [request_id={request_id}] path={request.url.path}")
        return _error(status.HTTP_400_BAD_REQUEST, exc, "TYPE_MISMATCH")

    @app.exception_handler(FragmentValidationError)
    async def validation_error_handler(request: Request, exc: FragmentValidationError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Validation error: {exc} [request_id={request_id}] path={request.url.path}")
        return _error(status.HTTP_400_BAD_REQUEST, exc, "VALIDATION_ERROR")

    @app.exception_handler(ConversionError)
    async def conversion_error_handler(request: Request, exc: ConversionError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(f"Conversion failed: {exc} [request_id={request_id}] path={request.url.path}")
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, exc, "CONVERSION_FAILED")

    @app.exception_handler(StorageFailureError)
    async def storage_failure_handler(request: Request, exc: StorageFailureError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Storage failure: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=exc
        )
        return _error(status.HTTP_502_BAD_GATEWAY, exc, "STORAGE_FAILURE")

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error(f"Configuration error: {exc} path={request.url.path}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "CONFIGURATION_ERROR")

    @app.exception_handler(FragmentsException)
    async def fragments_exception_handler(request: Request, exc: FragmentsException):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Fragments exception: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=exc
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


def create_app(backends: Optional[StorageBackends] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        backends: Storage backends to serve from. When omitted they are
            selected from configuration on startup.

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Fragments",
        description="Typed content fragments with on-demand format conversion",
        version=config.FRAGMENTS_VERSION
    )
    app.state.backends = backends

    @app.on_event("startup")
    async def startup_event():
        logger.info("Fragments service starting up...")
        if app.state.backends is None:
            app.state.backends = create_backends()
        logger.info(f"Storage backends bound [kind={app.state.backends.kind}]")

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

        response = await call_next(request)

        duration = time.time() - start_time
        owner_id = getattr(request.state, 'owner_id', None)

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s "
            f"[request_id={request_id}] [owner_id={owner_id or 'anonymous'}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response

    register_exception_handlers(app)
    app.include_router(fragment_router)

    @app.get("/", response_model=HealthResponse)
    async def root():
        """
        Health check. Not authenticated and never cached.
        """
        return JSONResponse(
            content=HealthResponse(version=config.FRAGMENTS_VERSION, hostname=socket.gethostname()).model_dump(),
            headers={"Cache-Control": "no-cache"}
        )

    @app.get("/health")
    async def health_check():
        """
        Liveness endpoint for container health checks.
        """
        return {"status": "healthy", "service": "fragments"}

    return app


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "fragments.main:app",
        host=config.FRAGMENTS_HOST,
        port=config.FRAGMENTS_PORT
    )


if __name__ == "__main__":
    main()
