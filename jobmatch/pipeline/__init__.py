"""Reconciliation pipeline: load users and jobs, match, throttle, persist."""

from .models import RunResult, RunStatus, Selection
from .runner import ReconciliationPipeline
from .strategies import BulkStrategy, RowStrategy

__all__ = [
    "ReconciliationPipeline",
    "RowStrategy",
    "BulkStrategy",
    "RunResult",
    "RunStatus",
    "Selection",
]
