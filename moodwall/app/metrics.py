from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "moodwall_requests_total",
    "Total HTTP requests processed by MoodWall",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "moodwall_request_latency_seconds",
    "HTTP request latency in seconds",
    ("method", "path"),
)

REQUEST_ERRORS = Counter(
    "moodwall_request_errors_total",
    "HTTP requests resulting in server errors",
    ("method", "path", "status"),
)

USER_API_COUNTER = Counter(
    "moodwall_user_api_hits_total",
    "Authenticated API hits per endpoint",
    ("endpoint",),
)

EMOTION_LOGS_CREATED = Counter(
    "moodwall_emotion_logs_total",
    "Emotion log rows recorded",
)

COMFORT_POSTS_CREATED = Counter(
    "moodwall_comfort_posts_total",
    "Comfort wall posts created",
)


def observe_request(method: str, path: str, status: int, seconds: float) -> None:
    status_label = str(status)
    REQUEST_COUNT.labels(method=method, path=path, status=status_label).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(seconds)
    if status >= 500:
        REQUEST_ERRORS.labels(method=method, path=path, status=status_label).inc()


__all__ = [
    "COMFORT_POSTS_CREATED",
    "EMOTION_LOGS_CREATED",
    "REQUEST_COUNT",
    "REQUEST_ERRORS",
    "REQUEST_LATENCY",
    "USER_API_COUNTER",
    "observe_request",
]
