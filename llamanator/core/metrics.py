"""
Prometheus metrics configuration
"""
import os

from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Histogram, Info,
                               generate_latest)
from prometheus_client.multiprocess import MultiProcessCollector
from prometheus_client.registry import REGISTRY, CollectorRegistry

from llamanator import __version__

# Check if we're in multiprocess mode
if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
    _exposition_registry = CollectorRegistry()
    MultiProcessCollector(_exposition_registry)
else:
    _exposition_registry = REGISTRY

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'llamanator_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'llamanator_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)
)

http_errors_total = Counter(
    'llamanator_http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# Template Metrics
# ============================================================================

template_requests_total = Counter(
    'llamanator_template_requests_total',
    'Total number of template requests',
    ['template', 'status']  # status: 'success' or error class name
)

template_render_errors_total = Counter(
    'llamanator_template_render_errors_total',
    'Total number of template render failures',
    ['template']
)

# ============================================================================
# Backend Request Metrics
# ============================================================================

backend_requests_total = Counter(
    'llamanator_backend_requests_total',
    'Total number of backend requests',
    ['model', 'status']
)

backend_request_duration_seconds = Histogram(
    'llamanator_backend_request_duration_seconds',
    'Backend request duration in seconds',
    ['model'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0)
)

backend_errors_total = Counter(
    'llamanator_backend_errors_total',
    'Total number of backend errors',
    ['model', 'error_type']
)

# ============================================================================
# System Info
# ============================================================================

app_info = Info(
    'llamanator_app',
    'Application information'
)
app_info.info({'app_name': 'llamanator', 'version': __version__})

# ============================================================================
# Helper Functions
# ============================================================================

def get_metrics() -> bytes:
    """
    Get Prometheus metrics in text format

    Returns:
        bytes: Metrics in Prometheus text format
    """
    return generate_latest(_exposition_registry)


def get_metrics_content_type() -> str:
    """Get content type for Prometheus metrics"""
    return CONTENT_TYPE_LATEST
