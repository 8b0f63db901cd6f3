from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from medreport.middleware.tracing import current_trace_id


class ReportAnalysisError(Exception):
    """Base class for failures talking to the upstream services."""


class OCRError(ReportAnalysisError):
    """The OCR stage produced no usable text. Fatal for the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GenerationError(ReportAnalysisError):
    """The generation service failed or answered with something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def status_to_code(status_code: int) -> str:
    mapping = {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        413: "PAYLOAD_TOO_LARGE",
        415: "UNSUPPORTED_MEDIA_TYPE",
        422: "UNPROCESSABLE_ENTITY",
        429: "TOO_MANY_REQUESTS",
        500: "INTERNAL_SERVER_ERROR",
        502: "BAD_GATEWAY",
    }
    return mapping.get(status_code, f"HTTP_{status_code}")


def error_body(status_code: int, message: str, details: Any = None) -> dict:
    body = {"code": status_to_code(status_code), "message": message, "trace_id": current_trace_id()}
    if details is not None:
        body["details"] = details
    return body


async def handle_http_exception(request: Request, exc: HTTPException):
    detail: Any = exc.detail
    message = detail if isinstance(detail, str) else "HTTP error"
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, message, detail))


async def handle_ocr_error(request: Request, exc: OCRError):
    # Oversized uploads keep their own status; everything else is a bad upload
    code = 413 if exc.status_code == 413 else status.HTTP_400_BAD_REQUEST
    body = error_body(
        code,
        "Could not read text from the uploaded file. Please retry or try a different file.",
        exc.message,
    )
    return JSONResponse(status_code=code, content=body)


async def handle_unhandled_exception(request: Request, exc: Exception):
    body = error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred", str(exc))
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)
