"""
Prometheus metrics definitions for the API.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Credential gate
auth_attempts_total = Counter(
    'auth_attempts_total',
    'Total login attempts',
    ['outcome']
)

# Presign issuance
presigns_issued_total = Counter(
    'presigns_issued_total',
    'Total presigned upload URLs issued',
    ['key_policy']
)

presigns_failed_total = Counter(
    'presigns_failed_total',
    'Total presign requests that failed',
    ['reason']
)

presign_duration_seconds = Histogram(
    'presign_duration_seconds',
    'Time spent signing an upload URL',
    buckets=[0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25]
)
