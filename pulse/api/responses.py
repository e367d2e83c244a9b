from pulse.schemas.common import ErrorResponse

RATE_LIMITED = {429: {"model": ErrorResponse, "description": "Too many requests"}}
