"""Monitoring configuration for the trainer."""
from prometheus_client import Counter, Histogram, start_http_server

# Session metrics
sessions_started = Counter(
    "mnemodrill_sessions_started_total",
    "Total number of practice sessions started",
    ["mode"],
)

sessions_completed = Counter(
    "mnemodrill_sessions_completed_total",
    "Total number of practice sessions that reached their natural end",
    ["mode"],
)

sessions_cancelled = Counter(
    "mnemodrill_sessions_cancelled_total",
    "Total number of practice sessions abandoned before the end",
    ["mode"],
)

attempts = Counter(
    "mnemodrill_attempts_total",
    "Total number of submitted attempts",
    ["mode", "outcome"],
)

session_accuracy = Histogram(
    "mnemodrill_session_accuracy_percent",
    "Accuracy of completed sessions",
    ["mode"],
    buckets=[25, 50, 75, 90, 95, 100],
)

# Achievement metrics
achievements_unlocked = Counter(
    "mnemodrill_achievements_unlocked_total",
    "Total number of achievements unlocked",
    ["achievement_id"],
)

# Content service metrics
content_requests = Counter(
    "mnemodrill_content_requests_total",
    "Total number of requests sent to the content service",
    ["operation"],
)

content_fallbacks = Counter(
    "mnemodrill_content_fallbacks_total",
    "Total number of content service calls answered by a local fallback",
    ["operation"],
)

content_request_duration = Histogram(
    "mnemodrill_content_request_duration_seconds",
    "Duration of content service requests in seconds",
    ["operation"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
