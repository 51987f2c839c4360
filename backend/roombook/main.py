import logging
import time
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from roombook import __version__
from roombook.api.router import api_router
from roombook.core.config import Settings, get_settings, settings as default_settings
from roombook.core.errors import BookingError, StoreUnavailable, failure_body
from roombook.core.limiter import limiter
from roombook.db import init_db
from roombook.services.mailer import build_mailer

logger = logging.getLogger("roombook")

HTTP_CATEGORIES = {
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "unauthorized",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "validation",
}


def _validation_message(errors: list) -> str:
    if not errors:
        return "Validation failed"
    message = errors[0].get("msg", "Validation failed")
    return message.removeprefix("Value error, ")


def create_application(settings: Settings = default_settings) -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app = FastAPI(title=settings.PROJECT_NAME, version=__version__)
    app.state.limiter = limiter
    app.state.mailer = build_mailer(settings)
    # Request handlers see the settings this app was built with
    app.dependency_overrides[get_settings] = lambda: settings
    production = settings.is_production

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
        )
        return response

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        if exc.status_code >= 500:
            logger.warning(f"{exc.category} failure on {request.url.path}: {exc.message} ({exc.detail})")
        return JSONResponse(
            status_code=exc.status_code,
            content=failure_body(exc.message, exc.category, exc.detail, production=production),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
        body = failure_body(_validation_message(errors), "validation")
        body["detail"] = errors
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        category = HTTP_CATEGORIES.get(exc.status_code, "internal" if exc.status_code >= 500 else "validation")
        return JSONResponse(
            status_code=exc.status_code,
            content=failure_body(str(exc.detail), category),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=failure_body(
                "Too many requests. Please try again later.", "rate_limited", str(exc.detail)
            ),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        if isinstance(exc, OperationalError) or (
            isinstance(exc, DBAPIError) and exc.connection_invalidated
        ):
            logger.error(f"Database unavailable on {request.url.path}: {exc}")
            return await booking_error_handler(
                request, StoreUnavailable("Database connection not available.", detail=str(exc))
            )
        logger.exception(f"Database error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=failure_body("Internal server error", "internal", str(exc), production=production),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=failure_body("Internal server error", "internal", str(exc), production=production),
        )

    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Serve uploaded room images
    uploads_dir = Path(settings.UPLOAD_DIR)
    (uploads_dir / "rooms").mkdir(parents=True, exist_ok=True)
    logger.info(f"Static files directory: {uploads_dir.resolve()}")
    app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")

    @app.on_event("startup")
    def _startup() -> None:
        init_db()

    return app


app = create_application()
