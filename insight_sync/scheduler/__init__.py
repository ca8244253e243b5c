"""Scheduling of source workers."""

from .apsched_adapter import APSchedulerAdapter

__all__ = ["APSchedulerAdapter"]
