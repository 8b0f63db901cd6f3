from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from medreport.config import Settings
from medreport.deps import limiter, settings as default_settings
from medreport.logging_config import configure_logging
from medreport.middleware.tracing import TracingMiddleware
from medreport.routes import analysis_routes
from medreport.utils.exceptions import (
    OCRError,
    error_body,
    handle_http_exception,
    handle_ocr_error,
    handle_unhandled_exception,
)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.info({"function": "rate_limit", "path": str(request.url.path)})
    return JSONResponse(
        status_code=429,
        headers={"Retry-After": "60"},
        content=error_body(429, "Too many requests. Please wait a bit and try again."),
    )


def create_app(settings: Settings = default_settings) -> FastAPI:
    app = FastAPI(title="Medical Report Analyzer", version="0.1.0")
    app.state.settings = settings
    app.state.limiter = limiter

    app.add_middleware(TracingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(OCRError, handle_ocr_error)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, handle_unhandled_exception)

    app.include_router(analysis_routes.router)
    return app


logger = configure_logging(default_settings.log_level)
app = create_app()
