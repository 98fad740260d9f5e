"""Job registry and pipeline orchestration."""

from .collaborators import Collaborators
from .replay import EvidenceReplay, load_evidence
from .runner import PipelineRunner, StageError, create_runner
from .store import JobStore, summarize_job

__all__ = [
    "Collaborators",
    "EvidenceReplay",
    "JobStore",
    "PipelineRunner",
    "StageError",
    "create_runner",
    "load_evidence",
    "summarize_job",
]
