"""Issue fingerprinting, run history, diffing and triage."""

from .fingerprint import digest, digests_for
from .store import HistoryStore, build_run_meta, diff_digests

__all__ = ["HistoryStore", "build_run_meta", "diff_digests", "digest", "digests_for"]
