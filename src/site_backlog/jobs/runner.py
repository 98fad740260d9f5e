"""Pipeline orchestration for analysis jobs."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

from ..core.config import load_config
from ..core.settings import get_settings
from ..core.types import (
    BacklogConfig,
    BenchTarget,
    Job,
    JobOutputs,
    JobStatus,
    Journey,
    PageRun,
)
from ..history.store import HistoryStore
from ..scoring import score
from .collaborators import Collaborators
from .store import JobStore, summarize_job

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Progress reported once each stage has finished
PROGRESS_STARTED = 1
PROGRESS_AFTER = {
    "crawl": 25,
    "perf": 45,
    "a11y": 65,
    "bench": 70,
    "journeys": 85,
    "synthesis": 100,
}


class StageError(RuntimeError):
    """A required pipeline stage failed."""

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage


class PipelineRunner:
    """Runs analysis jobs through the crawl → audit → synthesis pipeline.

    Stages run strictly in order within a job; separate jobs run as
    independent asyncio tasks. Only the crawl can fail a job. Every other
    engine is optional and a missing, failing or timed-out engine just
    leaves its evidence empty.
    """

    def __init__(
        self,
        store: JobStore,
        collaborators: Collaborators,
        history: HistoryStore | None = None,
        config: BacklogConfig | None = None,
    ):
        """Initialize runner.

        Args:
            store: Job registry the runner reports progress through
            collaborators: Evidence engines
            history: Run history store (runs are not recorded if None)
            config: Backlog configuration (defaults if None)
        """
        self.store = store
        self.collaborators = collaborators
        self.history = history
        self.config = config or BacklogConfig()
        self._tasks: set[asyncio.Task[None]] = set()

    def start(self, job: Job) -> asyncio.Task[None]:
        """Schedule a job on the running event loop and return immediately."""
        if self.store.get_job(job.id) is None:
            self.store.add_job(job)

        task = asyncio.create_task(self.run_pipeline(job), name=f"pipeline:{job.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def join(self) -> None:
        """Wait for every job started by this runner to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run_pipeline(self, job: Job) -> None:
        """Drive one job to a terminal status.

        Progress, stage and status are published through the job store; the
        final evidence and ranked issues end up on ``job.outputs``.
        """
        job = self.store.get_job(job.id) or self.store.add_job(job)

        def update(**patch: object) -> None:
            self.store.update_job(job.id, **patch)

        outputs = JobOutputs()
        pipeline = self.config.pipeline
        collab = self.collaborators
        engines = job.options.engines

        logger.info(f"Starting pipeline for job {job.id}: {job.url}")
        update(status=JobStatus.RUNNING, stage="crawl", progress=PROGRESS_STARTED)

        try:
            pages = await self._crawl(job)
            outputs.pages = pages
            update(stage="perf", progress=PROGRESS_AFTER["crawl"])

            perf = collab.performance if engines.performance else None
            await self._optional("perf", (lambda: perf.audit(pages)) if perf else None)
            update(stage="a11y", progress=PROGRESS_AFTER["perf"])

            a11y = collab.accessibility if engines.accessibility else None
            await self._optional("a11y", (lambda: a11y.check(pages)) if a11y else None)
            update(stage="bench", progress=PROGRESS_AFTER["a11y"])

            competitors = job.options.competitors[: pipeline.max_competitors]
            bench = collab.benchmark if competitors else None
            targets: list[BenchTarget] | None = await self._optional(
                "bench", (lambda: bench.benchmark(competitors)) if bench else None
            )
            outputs.bench = list(targets or [])
            update(stage="journeys", progress=PROGRESS_AFTER["bench"])

            runner = collab.journeys if engines.journeys else None
            journeys: list[Journey] | None = await self._optional(
                "journeys", (lambda: runner.run(job.url, job.id)) if runner else None
            )
            outputs.journeys = list(journeys or [])
            update(stage="synthesis", progress=PROGRESS_AFTER["journeys"])

            await self._enrich_meta(pages)
            outputs.issues = score(pages, outputs.journeys)

        except Exception as e:
            logger.exception(f"Job {job.id} failed during {job.stage}")
            update(status=JobStatus.ERROR, error=str(e) or type(e).__name__, outputs=outputs)
            update(summary=summarize_job(job))
            return

        update(
            status=JobStatus.DONE,
            stage="done",
            progress=PROGRESS_AFTER["synthesis"],
            outputs=outputs,
        )
        update(summary=summarize_job(job))
        logger.info(f"Job {job.id} done: {job.summary}")

        await self._record(job)

    async def _crawl(self, job: Job) -> list[PageRun]:
        timeout = self.config.pipeline.crawl_timeout_s
        try:
            pages = await asyncio.wait_for(
                self.collaborators.crawler.crawl(job.url, job.options.max_depth),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise StageError("crawl", f"crawl timed out after {timeout:g}s") from e
        except Exception as e:
            raise StageError("crawl", str(e) or type(e).__name__) from e

        logger.info(f"Crawled {len(pages)} pages for job {job.id}")
        return list(pages)

    async def _optional(
        self,
        stage: str,
        call: Callable[[], Awaitable[T]] | None,
    ) -> T | None:
        """Run an optional engine call; any failure means the stage is skipped."""
        if not call:
            logger.info(f"Skipping stage {stage}: engine not available")
            return None

        timeout = self.config.pipeline.stage_timeout_s
        try:
            return await asyncio.wait_for(call(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Stage {stage} timed out after {timeout:g}s, skipping")
        except Exception as e:
            logger.warning(f"Stage {stage} failed, skipping: {e}", exc_info=True)
        return None

    async def _enrich_meta(self, pages: list[PageRun]) -> None:
        """Fill missing title/h1/description from the browser-rendered page."""
        enricher = self.collaborators.meta
        if enricher is None:
            return

        for page in pages:
            meta = page.meta
            if meta.title and meta.h1 and meta.description:
                continue
            rendered = await self._optional("meta", lambda: enricher.fetch_meta(page.url))
            if rendered is None:
                continue
            meta.title = meta.title or rendered.title
            meta.h1 = meta.h1 or rendered.h1
            meta.description = meta.description or rendered.description

    async def _record(self, job: Job) -> None:
        if self.history is None or not self.config.history.enabled:
            return
        try:
            await self.history.record_run(job)
        except Exception as e:
            logger.error(f"Run history update failed for job {job.id}: {e}", exc_info=True)


def create_runner(
    collaborators: Collaborators,
    store: JobStore | None = None,
    config_path: Path | None = None,
    database_url: str | None = None,
) -> PipelineRunner:
    """Build a runner wired to configuration and run history.

    Args:
        collaborators: Evidence engines
        store: Job registry (a new one if None)
        config_path: YAML config (default: settings, then configs/default.yaml)
        database_url: History store URL (default: settings)

    Returns:
        Configured PipelineRunner

    Raises:
        ConfigError: If configuration is invalid
    """
    settings = get_settings()
    config = load_config(config_path or settings.config_path)
    history = None
    if config.history.enabled:
        history = HistoryStore(database_url or settings.database_url)
    return PipelineRunner(store or JobStore(), collaborators, history=history, config=config)
