import threading
from concurrent.futures import ThreadPoolExecutor

from pulse.core.metrics import MAX_DURATION_NS, Metrics

MS = 1_000_000


class FakeClock:
    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def test_new_metrics_start_at_zero():
    metrics = Metrics()
    snapshot = metrics.snapshot()
    assert snapshot.request_count == 0
    assert snapshot.error_count == 0
    assert snapshot.active_requests == 0
    assert snapshot.average_duration_ns == 0
    assert snapshot.error_rate_percent == 0
    assert snapshot.status_codes == {}


def test_record_request_start_counts_active_request():
    metrics = Metrics()
    metrics.record_request_start()
    assert metrics.request_count == 1
    assert metrics.active_requests == 1
    assert metrics.status_codes() == {}


def test_start_then_finish_clears_active_request():
    metrics = Metrics()
    metrics.record_request_start()
    metrics.record_request_finish(200, 100 * MS)
    snapshot = metrics.snapshot()
    assert snapshot.active_requests == 0
    assert snapshot.status_codes[200] == 1


def test_only_5xx_counts_as_error():
    metrics = Metrics()
    for code in (200, 404, 500, 503):
        metrics.record_request_start()
        metrics.record_request_finish(code, 10 * MS)
    assert metrics.error_count == 2
    assert metrics.status_codes() == {200: 1, 404: 1, 500: 1, 503: 1}


def test_finish_500_increments_error_count_by_one():
    metrics = Metrics()
    metrics.record_request_start()
    metrics.record_request_finish(404, MS)
    assert metrics.error_count == 0
    metrics.record_request_start()
    metrics.record_request_finish(500, MS)
    assert metrics.error_count == 1


def test_average_duration():
    metrics = Metrics()
    metrics.record_request_start()
    metrics.record_request_finish(200, 100 * MS)
    metrics.record_request_start()
    metrics.record_request_finish(200, 200 * MS)
    assert abs(metrics.average_duration_ns() - 150 * MS) <= MS


def test_duration_only_accumulates_on_finish():
    metrics = Metrics()
    metrics.record_request_start()
    metrics.record_request_start()
    metrics.record_request_finish(200, 300 * MS)
    # the in-flight request still counts towards the denominator
    assert metrics.average_duration_ns() == 150 * MS


def test_average_duration_is_clamped():
    metrics = Metrics()
    metrics.record_request_start()
    metrics.record_request_finish(200, 2**63)
    assert metrics.average_duration_ns() == MAX_DURATION_NS
    assert metrics.snapshot().average_duration_ns == MAX_DURATION_NS


def test_error_rate():
    metrics = Metrics()
    for code in (200, 200, 500):
        metrics.record_request_start()
        metrics.record_request_finish(code, 10 * MS)
    assert abs(metrics.error_rate() - 33.33) < 0.1


def test_uptime_uses_clock():
    clock = FakeClock(now=5_000)
    metrics = Metrics(clock=clock)
    clock.now += 10 * MS
    assert metrics.uptime_ns() == 10 * MS
    assert metrics.snapshot().uptime_ns == 10 * MS


def test_snapshot_status_codes_are_a_copy():
    metrics = Metrics()
    metrics.record_request_start()
    metrics.record_request_finish(200, MS)
    snapshot = metrics.snapshot()
    snapshot.status_codes[200] = 99
    snapshot.status_codes[418] = 1
    assert metrics.snapshot().status_codes == {200: 1}


def test_status_code_total_matches_finished_requests():
    metrics = Metrics()
    for _ in range(3):
        metrics.record_request_start()
    metrics.record_request_finish(201, MS)
    metrics.record_request_finish(204, MS)
    snapshot = metrics.snapshot()
    assert sum(snapshot.status_codes.values()) == 2
    assert snapshot.active_requests == snapshot.request_count - 2


def test_concurrent_starts_are_not_lost():
    metrics = Metrics()
    workers, per_worker = 16, 500

    def run():
        for _ in range(per_worker):
            metrics.record_request_start()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        for _ in range(workers):
            pool.submit(run)
    assert metrics.snapshot().request_count == workers * per_worker
    assert metrics.active_requests == workers * per_worker


def test_concurrent_readers_never_see_negative_active_requests():
    metrics = Metrics()
    stop = threading.Event()
    observed = []
    codes = (200, 404, 500)

    def writer(index: int):
        for i in range(2_000):
            metrics.record_request_start()
            metrics.record_request_finish(codes[(index + i) % len(codes)], i)

    def reader():
        while not stop.is_set():
            observed.append(metrics.snapshot().active_requests)

    reader_thread = threading.Thread(target=reader)
    reader_thread.start()
    with ThreadPoolExecutor(max_workers=8) as pool:
        for index in range(8):
            pool.submit(writer, index)
    stop.set()
    reader_thread.join()

    assert observed
    assert min(observed) >= 0
    final = metrics.snapshot()
    assert final.request_count == 16_000
    assert final.active_requests == 0
    assert sum(final.status_codes.values()) == 16_000
