import logging
import time
import uuid

from fastapi import Request
from starlette.responses import Response

from pulse.core.logging import client_ip_ctx, request_id_ctx

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 200

access_logger = logging.getLogger("access")


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH:
        return incoming
    return str(uuid.uuid4())


async def request_context(request: Request, call_next):
    rid = request_id(request)
    request.state.request_id = rid
    request_id_ctx.set(rid)
    client_ip_ctx.set(client_ip(request))
    start = time.monotonic()
    response: Response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = rid
    duration_ms = int((time.monotonic() - start) * 1000)
    access_logger.info(
        "request",
        extra={
            "event": {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
        },
    )
    return response
