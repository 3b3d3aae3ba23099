from .metrics import MetricsReporter, build_metric_payload

__all__ = [
    "MetricsReporter",
    "build_metric_payload",
]
