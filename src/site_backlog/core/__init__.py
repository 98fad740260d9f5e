"""Core type definitions, configuration and URL helpers."""

from .config import ConfigError, load_config
from .types import (
    BacklogConfig,
    Issue,
    IssueCategory,
    Job,
    JobOptions,
    JobStatus,
    Journey,
    PageRun,
    RunDiff,
    RunMeta,
    TriageMeta,
    TriageState,
)
from .urls import normalize_url, origin_of

__all__ = [
    "BacklogConfig",
    "ConfigError",
    "Issue",
    "IssueCategory",
    "Job",
    "JobOptions",
    "JobStatus",
    "Journey",
    "PageRun",
    "RunDiff",
    "RunMeta",
    "TriageMeta",
    "TriageState",
    "load_config",
    "normalize_url",
    "origin_of",
]
