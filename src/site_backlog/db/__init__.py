"""Database layer for run history and triage persistence."""

from .models import Base, RunRecord, TriageRecord
from .repositories import RunRepository, TriageRepository

__all__ = [
    "Base",
    "RunRecord",
    "TriageRecord",
    "RunRepository",
    "TriageRepository",
]
