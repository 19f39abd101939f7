from .metrics import SinkMetrics, SinkStats

__all__ = ["SinkMetrics", "SinkStats"]
