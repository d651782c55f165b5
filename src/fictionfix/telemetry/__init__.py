from .metrics import FixMetrics, compute_metrics

__all__ = ["FixMetrics", "compute_metrics"]
