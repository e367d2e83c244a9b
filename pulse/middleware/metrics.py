import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pulse.core.metrics import Metrics


class StatusRecorder:
    """Wraps an ASGI ``send`` and remembers the first status written.

    Later status writes do not change the recorded code. A response that
    never reports a status counts as 200.
    """

    def __init__(self, send: Send) -> None:
        self._send = send
        self.status_code = 200
        self.written = False

    def write_header(self, status_code: int) -> None:
        if self.written:
            return
        self.status_code = status_code
        self.written = True

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.write_header(message["status"])
        elif message["type"] == "http.response.body":
            self.written = True
        await self._send(message)


class MetricsMiddleware:
    """Records request start and finish on ``metrics`` around every HTTP request."""

    def __init__(self, app: ASGIApp, metrics: Metrics) -> None:
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        recorder = StatusRecorder(send)
        start = time.perf_counter_ns()
        self.metrics.record_request_start()
        try:
            await self.app(scope, receive, recorder)
        except Exception:
            # the server error handler outside this middleware answers 500
            recorder.write_header(500)
            raise
        finally:
            self.metrics.record_request_finish(
                recorder.status_code, time.perf_counter_ns() - start
            )
