"""In-process request metrics shared by the instrumentation middleware and /metrics.

Scalar counters are updated independently of each other and of the status
code map, so a reader may see e.g. ``error_count`` already bumped while
``status_codes[500]`` is not yet. Each individual field is always consistent.
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable

MAX_DURATION_NS = 2**63 - 1


class _Counter:
    """Integer counter with a private lock around each update.

    Reads are a plain attribute load and never wait on writers.
    """

    __slots__ = ("_lock", "_value")

    def __init__(self) -> None:
        self._lock = Lock()
        self._value = 0

    def add(self, delta: int = 1) -> None:
        with self._lock:
            self._value += delta

    @property
    def value(self) -> int:
        return self._value


@dataclass(frozen=True)
class MetricsSnapshot:
    request_count: int
    error_count: int
    active_requests: int
    average_duration_ns: int
    uptime_ns: int
    error_rate_percent: float
    status_codes: dict[int, int] = field(default_factory=dict)


class Metrics:
    def __init__(self, clock: Callable[[], int] = time.monotonic_ns) -> None:
        self._clock = clock
        self._start_ns = clock()
        self._requests = _Counter()
        self._errors = _Counter()
        self._total_duration_ns = _Counter()
        self._active = _Counter()
        self._status_lock = Lock()
        self._status_codes: Counter[int] = Counter()

    def record_request_start(self) -> None:
        self._requests.add(1)
        self._active.add(1)

    def record_request_finish(self, status_code: int, duration_ns: int) -> None:
        # Negative durations are not corrected here; callers measure with a
        # monotonic clock.
        self._active.add(-1)
        self._total_duration_ns.add(duration_ns)
        with self._status_lock:
            self._status_codes[status_code] += 1
        if status_code >= 500:
            self._errors.add(1)

    @property
    def request_count(self) -> int:
        return self._requests.value

    @property
    def error_count(self) -> int:
        return self._errors.value

    @property
    def active_requests(self) -> int:
        return self._active.value

    def average_duration_ns(self) -> int:
        count = self._requests.value
        if count == 0:
            return 0
        return min(self._total_duration_ns.value // count, MAX_DURATION_NS)

    def uptime_ns(self) -> int:
        return self._clock() - self._start_ns

    def error_rate(self) -> float:
        """Percentage of requests answered with a 5xx status."""
        requests = self._requests.value
        if requests == 0:
            return 0.0
        return self._errors.value / requests * 100

    def status_codes(self) -> dict[int, int]:
        with self._status_lock:
            return dict(self._status_codes)

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            request_count=self.request_count,
            error_count=self.error_count,
            active_requests=self.active_requests,
            average_duration_ns=self.average_duration_ns(),
            uptime_ns=self.uptime_ns(),
            error_rate_percent=self.error_rate(),
            status_codes=self.status_codes(),
        )
