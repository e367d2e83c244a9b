from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class HealthStatus(str, Enum):
    healthy = "healthy"
    unhealthy = "unhealthy"


class HealthResponse(BaseModel):
    status: HealthStatus
    timestamp: datetime
    version: str | None = None
    uptime: str | None = None
