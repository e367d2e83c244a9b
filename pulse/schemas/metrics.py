from pydantic import BaseModel

from pulse.core.durations import format_duration
from pulse.core.metrics import MetricsSnapshot


class MetricsResponse(BaseModel):
    total_requests: int
    active_requests: int
    error_count: int
    error_rate_percent: float
    average_duration: str
    uptime: str
    status_codes: dict[int, int]

    @classmethod
    def from_snapshot(cls, snapshot: MetricsSnapshot) -> "MetricsResponse":
        return cls(
            total_requests=snapshot.request_count,
            active_requests=snapshot.active_requests,
            error_count=snapshot.error_count,
            error_rate_percent=snapshot.error_rate_percent,
            average_duration=format_duration(snapshot.average_duration_ns),
            uptime=format_duration(snapshot.uptime_ns),
            status_codes=snapshot.status_codes,
        )
