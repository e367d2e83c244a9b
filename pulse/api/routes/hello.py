from fastapi import APIRouter, Request
from slowapi import Limiter

from pulse.api.responses import RATE_LIMITED
from pulse.schemas.common import MessageResponse


def hello(request: Request):
    return MessageResponse(message="Hello, World!")


def build_router(limiter: Limiter | None = None, limit: str | None = None) -> APIRouter:
    """API v1 routes; each is wrapped with ``limiter.limit(limit)`` when a limiter is given."""
    router = APIRouter(tags=["hello"], responses=RATE_LIMITED)
    endpoint = limiter.limit(limit)(hello) if limiter is not None else hello
    router.add_api_route("/hello", endpoint, methods=["GET"], response_model=MessageResponse)
    return router
