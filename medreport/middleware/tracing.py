"""Per-request trace ids for log records and error bodies."""
import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

TRACE_HEADER = "x-trace-id"
TRACE_ID_CTX_VAR: ContextVar[str] = ContextVar("trace_id", default="")

# Caller-supplied ids end up in logs, so only short plain tokens are reused.
_VALID_TRACE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def current_trace_id() -> str:
    return TRACE_ID_CTX_VAR.get()


def resolve_trace_id(incoming: str | None) -> str:
    if incoming and _VALID_TRACE_ID.match(incoming):
        return incoming
    return uuid.uuid4().hex


class TracingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = resolve_trace_id(request.headers.get(TRACE_HEADER))
        TRACE_ID_CTX_VAR.set(trace_id)
        request.state.trace_id = trace_id

        response = await call_next(request)
        response.headers[TRACE_HEADER] = trace_id
        return response
