"""Interfaces of the evidence engines the pipeline drives.

Engines live outside this package. Each one is an object with a single
async method; only the crawler is mandatory.
"""

from dataclasses import dataclass
from typing import Protocol

from ..core.types import BenchTarget, Journey, PageMeta, PageRun


class Crawler(Protocol):
    async def crawl(self, url: str, max_depth: int) -> list[PageRun]:
        """Fetch pages reachable from url within max_depth same-origin hops."""
        ...


class PerformanceAuditor(Protocol):
    async def audit(self, pages: list[PageRun]) -> None:
        """Attach ``performance_audit`` metrics to pages in place."""
        ...


class AccessibilityChecker(Protocol):
    async def check(self, pages: list[PageRun]) -> None:
        """Attach ``accessibility_violations`` to pages in place."""
        ...


class JourneyRunner(Protocol):
    async def run(self, base_url: str, job_id: str) -> list[Journey]:
        """Execute scripted user journeys against the site."""
        ...


class CompetitorBenchmark(Protocol):
    async def benchmark(self, urls: list[str]) -> list[BenchTarget]:
        """Capture competitor pages for side-by-side comparison."""
        ...


class MetaEnricher(Protocol):
    async def fetch_meta(self, url: str) -> PageMeta:
        """Read title/h1/description from a browser-rendered page."""
        ...


@dataclass
class Collaborators:
    """The set of engines available to a pipeline runner."""

    crawler: Crawler
    performance: PerformanceAuditor | None = None
    accessibility: AccessibilityChecker | None = None
    journeys: JourneyRunner | None = None
    benchmark: CompetitorBenchmark | None = None
    meta: MetaEnricher | None = None
