"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from activity_ledger.config import get_settings
from activity_ledger.domain.errors import LedgerError
from activity_ledger.infrastructure.db.session import check_db_connection
from activity_ledger.api.v1 import reports, entries

logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the exception handlers did not map (500)"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content="Internal Server Error", status_code=500)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Business error -> fixed status + {error, code, message, timestamp}"""
    if exc.http_status >= 500:
        logger.error("Ledger failure on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "Rejected %s %s: %s (%s)",
            request.method, request.url.path, exc.code, exc.message,
        )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


def create_app() -> FastAPI:
    """
    Application factory - создаёт и настраивает FastAPI приложение

    Returns:
        Настроенный FastAPI app
    """
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    app = FastAPI(
        title="Activity Ledger",
        debug=settings.DEBUG,
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    app.include_router(reports.router)
    app.include_router(entries.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (проверяет доступность БД)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "activity_ledger.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
