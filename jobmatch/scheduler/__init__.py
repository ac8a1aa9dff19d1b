"""Scheduling module for periodic reconciliation runs."""

from .service import SchedulerService

__all__ = [
    "SchedulerService",
]
