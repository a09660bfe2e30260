"""
FastAPI backend for the FuelEU Ledger.

Provides REST API endpoints for:
- Compliance balance calculation and lookup
- Banking of surplus and application against deficits
- Pooling of ship balances
- Route registry and baseline comparison

Version: 1.0.0
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import uvicorn

from api.config import settings
from api.health import API_VERSION
from api.middleware import setup_middleware, get_request_id
from api.rate_limit import limiter
from api.routers import banking, compliance, pooling, routes, system
from api.state import get_app_state
from src.compliance.errors import ComplianceError, NotFound, StorageError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


def _request_id(request: Request):
    return get_request_id() or getattr(request.state, "request_id", None)


def _error_response(request: Request, status_code: int, error: str, detail) -> JSONResponse:
    request_id = _request_id(request)
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail, "request_id": request_id},
        headers={"X-Request-ID": request_id} if request_id else {},
    )


def create_app() -> FastAPI:
    """
    Application factory for the FuelEU Ledger API.

    Creates and configures the FastAPI application with middleware,
    routers and error mapping.

    Returns:
        FastAPI: Configured application instance
    """
    application = FastAPI(
        title="FuelEU Ledger API",
        description="""
Compliance balance ledger for FuelEU Maritime.

- Compute a ship's compliance balance (CB) against the GHG intensity target
- Bank surplus CB and apply it against later deficits
- Pool balances across ships with fairness guarantees
- Compare routes against a baseline route

Mutating endpoints are rate limited per client.
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    setup_middleware(
        application,
        debug=settings.is_development,
        enable_hsts=settings.is_production,
    )

    # CORS middleware - use configured origins only (NO WILDCARDS)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_credentials,
        allow_methods=[m.strip() for m in settings.cors_methods.split(",")],
        allow_headers=settings.cors_headers_list,
    )

    application.state.limiter = limiter

    @application.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        response = _error_response(request, 429, "rate_limit_exceeded", str(exc.detail))
        response.headers["Retry-After"] = str(getattr(exc, 'retry_after', 60))
        return response

    @application.exception_handler(ComplianceError)
    async def compliance_error_handler(request: Request, exc: ComplianceError):
        status_code = 404 if isinstance(exc, NotFound) else 400
        return _error_response(request, status_code, exc.kind, exc.message)

    @application.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.__cause__!r}")
        return _error_response(
            request, 503, exc.kind, "Ledger storage is unavailable. Retry later."
        )

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
        return _error_response(request, 422, "request_validation_error", jsonable_errors(exc))

    @application.on_event("startup")
    def startup_event():
        """Create ledger tables when backed by SQL, and warm the app state."""
        if settings.storage_backend == "sql":
            from api.database import init_db
            init_db()
        get_app_state()
        logger.info("Startup complete (storage backend: %s)", settings.storage_backend)

    application.include_router(system.router)
    application.include_router(compliance.router)
    application.include_router(banking.router)
    application.include_router(pooling.router)
    application.include_router(routes.router)

    return application


def jsonable_errors(exc: RequestValidationError):
    """Validation errors without the raw input (may hold NaN or large payloads)."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


# Create the application
app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.api_workers,
        log_level=settings.log_level,
    )
