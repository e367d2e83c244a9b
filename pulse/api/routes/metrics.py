from fastapi import APIRouter, Depends

from pulse.api.deps import get_metrics
from pulse.core.metrics import Metrics
from pulse.schemas.metrics import MetricsResponse

router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_model=MetricsResponse)
def read_metrics(metrics: Metrics = Depends(get_metrics)):
    return MetricsResponse.from_snapshot(metrics.snapshot())
