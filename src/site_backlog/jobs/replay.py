"""Collaborators that replay previously captured evidence.

Lets a saved evidence file go through the same pipeline, scoring and run
history as a live analysis.
"""

import json
from pathlib import Path
from typing import Any

from ..core.types import Journey, PageRun


def load_evidence(path: Path) -> tuple[list[PageRun], list[Journey]]:
    """Load pages and journeys from a JSON evidence file.

    The file holds either ``{"pages": [...], "journeys": [...]}`` or a bare
    list of pages.

    Args:
        path: Path to evidence JSON

    Returns:
        Tuple of (pages, journeys)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the JSON is not in a supported shape
        pydantic.ValidationError: If a record is malformed
    """
    with open(path, encoding="utf-8") as f:
        data: Any = json.load(f)

    if isinstance(data, list):
        raw_pages, raw_journeys = data, []
    elif isinstance(data, dict):
        raw_pages = data.get("pages") or []
        raw_journeys = data.get("journeys") or []
    else:
        raise ValueError(f"Unsupported evidence format in {path}")

    pages = [PageRun.model_validate(p) for p in raw_pages]
    journeys = [Journey.model_validate(j) for j in raw_journeys]
    return pages, journeys


class EvidenceReplay:
    """Crawler and journey runner backed by captured evidence."""

    def __init__(self, pages: list[PageRun], journeys: list[Journey] | None = None):
        self.pages = pages
        self.journeys = journeys or []

    @classmethod
    def from_file(cls, path: Path) -> "EvidenceReplay":
        pages, journeys = load_evidence(path)
        return cls(pages, journeys)

    async def crawl(self, url: str, max_depth: int) -> list[PageRun]:
        return [page.model_copy(deep=True) for page in self.pages]

    async def run(self, base_url: str, job_id: str) -> list[Journey]:
        return list(self.journeys)
