"""
HTTP middleware for the FuelEU Ledger API.

Provides:
- Security headers for a JSON-only API
- Request ID tracking (X-Request-ID), exposed to error bodies and logs
- Structured JSON request logs
- In-memory request and ledger-operation metrics
- Sanitized 500 responses
"""
import time
import uuid
import logging
import json
import threading
from typing import Callable, Dict, Optional
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from fastapi import FastAPI

SERVICE_NAME = "fueleu-ledger-api"

# Context variable for request ID (thread-safe)
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_ctx.get()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StructuredLogger:
    """
    JSON line logger. Every entry carries the service name and, inside a
    request, its request ID.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(self, level: str, message: str, **kwargs):
        log_entry = {
            "timestamp": _utcnow().isoformat(),
            "level": level,
            "message": message,
            "service": SERVICE_NAME,
            "request_id": get_request_id(),
            **kwargs
        }

        # Remove None values
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        getattr(self.logger, level.lower())(json.dumps(log_entry, default=str))

    def info(self, message: str, **kwargs):
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs):
        self._log("ERROR", message, **kwargs)


# Global structured logger instance
structured_logger = StructuredLogger("fueleu.http")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security headers to all responses. The API serves JSON only, so the
    content policy forbids every resource type.
    """

    def __init__(self, app, enable_hsts: bool = False):
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"

        # Swagger UI needs its CDN assets
        if not request.url.path.startswith(("/api/docs", "/api/redoc")):
            response.headers["Content-Security-Policy"] = (
                "default-src 'none'; frame-ancestors 'none'"
            )

        # HSTS - only enable behind HTTPS
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Accepts X-Request-ID from the caller or generates a UUID4, stores it in
    ``request_id_ctx`` for the lifetime of the request and echoes it back.
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            request_id_ctx.reset(token)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, duration and client for every request."""

    # Probes and scrapes
    EXCLUDED_PATHS = {"/api/health", "/api/health/live", "/api/health/ready", "/api/metrics"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            structured_logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                client_ip=client_ip,
            )
            raise

        level = "warning" if response.status_code >= 400 else "info"
        getattr(structured_logger, level)(
            "Request completed",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params) if request.query_params else None,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            client_ip=client_ip,
        )
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last-resort handler for exceptions no route handler mapped.

    Outside debug mode the body carries a generic message and the request ID;
    the full error is logged.
    """

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = get_request_id() or getattr(request.state, "request_id", None)

            structured_logger.error(
                "Unhandled exception",
                error=str(e),
                error_type=type(e).__name__,
                path=request.url.path,
                method=request.method,
            )

            if self.debug:
                detail = str(e)
            else:
                detail = "An internal error occurred. Please contact support with the request ID."

            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "detail": detail,
                    "request_id": request_id,
                },
                headers={"X-Request-ID": request_id} if request_id else {},
            )


class MetricsCollector:
    """
    In-memory request and ledger-operation counters.

    Request keys use the matched route template (``/api/pools/{pool_id}``),
    so ship and pool ids never explode the label space.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.request_count: Dict[str, int] = {}
        self.request_duration_sum: Dict[str, float] = {}
        self.error_count: Dict[str, int] = {}
        self.operation_count: Dict[str, int] = {}
        self.start_time = _utcnow()

    def record_request(self, method: str, path: str, status_code: int, duration_seconds: float):
        key = f"{method}:{path}:{status_code}"
        with self._lock:
            self.request_count[key] = self.request_count.get(key, 0) + 1
            self.request_duration_sum[key] = (
                self.request_duration_sum.get(key, 0.0) + duration_seconds
            )
            if status_code >= 500:
                error_key = f"{method}:{path}"
                self.error_count[error_key] = self.error_count.get(error_key, 0) + 1

    def record_operation(self, operation: str, outcome: str):
        """Count a ledger operation by outcome ("ok" or an error kind)."""
        key = f"{operation}:{outcome}"
        with self._lock:
            self.operation_count[key] = self.operation_count.get(key, 0) + 1

    @property
    def uptime_seconds(self) -> float:
        return (_utcnow() - self.start_time).total_seconds()

    def get_metrics(self) -> dict:
        """Get all metrics as a dictionary."""
        with self._lock:
            return {
                "uptime_seconds": self.uptime_seconds,
                "requests": {
                    "total": sum(self.request_count.values()),
                    "by_endpoint": dict(self.request_count),
                },
                "latency": {"sum_seconds": dict(self.request_duration_sum)},
                "errors": {
                    "total": sum(self.error_count.values()),
                    "by_endpoint": dict(self.error_count),
                },
                "operations": dict(self.operation_count),
            }

    def get_prometheus_metrics(self) -> str:
        """Get metrics in Prometheus exposition format."""
        lines = [
            "# HELP fueleu_uptime_seconds Time since service start",
            "# TYPE fueleu_uptime_seconds gauge",
            f"fueleu_uptime_seconds {self.uptime_seconds}",
        ]

        with self._lock:
            lines.append("# HELP fueleu_requests_total Total request count")
            lines.append("# TYPE fueleu_requests_total counter")
            for key, count in self.request_count.items():
                method, path, status = key.rsplit(":", 2)
                lines.append(
                    f'fueleu_requests_total{{method="{method}",path="{path}",status="{status}"}} {count}'
                )

            lines.append("# HELP fueleu_request_duration_seconds_sum Total request duration")
            lines.append("# TYPE fueleu_request_duration_seconds_sum counter")
            for key, total in self.request_duration_sum.items():
                method, path, status = key.rsplit(":", 2)
                lines.append(
                    f'fueleu_request_duration_seconds_sum{{method="{method}",path="{path}",status="{status}"}} {total}'
                )

            lines.append("# HELP fueleu_errors_total Total 5xx count")
            lines.append("# TYPE fueleu_errors_total counter")
            for key, count in self.error_count.items():
                method, path = key.split(":", 1)
                lines.append(f'fueleu_errors_total{{method="{method}",path="{path}"}} {count}')

            lines.append("# HELP fueleu_ledger_operations_total Ledger operations by outcome")
            lines.append("# TYPE fueleu_ledger_operations_total counter")
            for key, count in self.operation_count.items():
                operation, outcome = key.split(":", 1)
                lines.append(
                    f'fueleu_ledger_operations_total{{operation="{operation}",outcome="{outcome}"}} {count}'
                )

        return "\n".join(lines) + "\n"


# Global metrics collector
metrics_collector = MetricsCollector()


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records count and latency per route template and status."""

    EXCLUDED_PATHS = {"/api/metrics"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        route = request.scope.get("route")
        path = getattr(route, "path", None) or "unmatched"
        metrics_collector.record_request(
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_seconds=duration,
        )

        return response


def setup_middleware(app: FastAPI, debug: bool = False, enable_hsts: bool = False):
    """
    Configure the middleware stack.

    Middleware runs in reverse order of addition: error handling is the
    outermost layer, metrics the innermost.
    """
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=enable_hsts)
    app.add_middleware(ErrorHandlingMiddleware, debug=debug)


@contextmanager
def track_operation(operation: str):
    """
    Count one ledger operation by outcome.

    Usage:
        with track_operation("bank"):
            service.bank_surplus(...)
    """
    try:
        yield
    except Exception as e:
        metrics_collector.record_operation(operation, getattr(e, "kind", "error"))
        raise
    else:
        metrics_collector.record_operation(operation, "ok")
