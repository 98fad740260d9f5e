"""Issue synthesis and scoring."""

from .engine import IssueScorer, score

__all__ = ["IssueScorer", "score"]
