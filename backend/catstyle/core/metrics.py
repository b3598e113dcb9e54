"""
Prometheus metrics configuration
"""
from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Histogram,
                               generate_latest)
from prometheus_client.registry import REGISTRY

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_errors_total = Counter(
    'http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# LLM Request Metrics
# ============================================================================

llm_requests_total = Counter(
    'llm_requests_total',
    'Total number of LLM requests',
    ['model', 'status']  # status: 'success', 'error'
)

llm_request_duration_seconds = Histogram(
    'llm_request_duration_seconds',
    'LLM request duration in seconds',
    ['model'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0)
)

llm_tokens_total = Counter(
    'llm_tokens_total',
    'Total number of tokens processed',
    ['model', 'type']  # type: 'input' or 'output'
)

# ============================================================================
# Suggestion Metrics
# ============================================================================

style_suggestions_total = Counter(
    'style_suggestions_total',
    'Total number of category style suggestions returned',
    ['source']  # source: 'gateway', 'repaired', 'local', 'fallback'
)

gateway_call_duration_seconds = Histogram(
    'gateway_call_duration_seconds',
    'Suggestion gateway call duration in seconds',
    ['outcome'],  # outcome: 'success', 'error', 'timeout'
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0)
)

feature_flag_fetches_total = Counter(
    'feature_flag_fetches_total',
    'Total number of remote feature flag fetches',
    ['status']  # status: 'success', 'error'
)


def get_metrics():
    """
    Get Prometheus metrics in text format

    Returns:
        bytes: Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_metrics_content_type():
    """
    Get content type for Prometheus metrics

    Returns:
        str: Content type for metrics endpoint
    """
    return CONTENT_TYPE_LATEST
