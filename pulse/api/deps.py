from fastapi import Request

from pulse.core.metrics import Metrics


def get_metrics(request: Request) -> Metrics:
    return request.app.state.metrics
