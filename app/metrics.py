import threading
from collections import defaultdict, deque
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

P_REQUESTS = Counter('http_requests_total', 'HTTP requests handled', ['method', 'status'])
P_UPSTREAM = Counter('upstream_calls_total', 'Calls to upstream services', ['service', 'outcome'])
P_FALLBACKS = Counter('inference_fallbacks_total', 'Inference calls answered with a fallback', ['capability', 'reason'])
H_LAT = Histogram('http_request_ms', 'Request latency ms', buckets=(50, 100, 250, 500, 1000, 2000, 5000, 15000))

_lock = threading.Lock()
counters = defaultdict(int)
timings_ms = defaultdict(lambda: deque(maxlen=5000))

def inc(name: str, amount: int = 1) -> None:
    with _lock:
        counters[name] += amount

def observe_ms(name: str, duration_ms: float) -> None:
    with _lock:
        timings_ms[name].append(duration_ms)

def record_upstream(service: str, outcome: str, duration_ms: float) -> None:
    inc(f'{service}_{outcome}_total')
    observe_ms(f'{service}_ms', duration_ms)
    P_UPSTREAM.labels(service=service, outcome=outcome).inc()

def record_fallback(capability: str, reason: str) -> None:
    inc(f'{capability}_fallback_total')
    P_FALLBACKS.labels(capability=capability, reason=reason).inc()

def snapshot_metrics():
    with _lock:
        c = dict(counters)
        t = {k: list(v) for k, v in timings_ms.items()}
    def stats(vals):
        if not vals:
            return {'count': 0, 'p50': 0, 'p95': 0, 'max': 0}
        sorted_vals = sorted(vals)
        count = len(sorted_vals)
        p50 = sorted_vals[int(0.5 * (count - 1))]
        p95 = sorted_vals[int(0.95 * (count - 1))]
        return {'count': count, 'p50': p50, 'p95': p95, 'max': sorted_vals[-1]}
    return {
        'counters': c,
        'timings_ms': {k: stats(v) for k, v in t.items()}
        }

def prometheus_payload() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
