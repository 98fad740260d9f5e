"""Run history and triage persistence.

Every run summary and triage record lives in one SQL store. Writes are
serialized through a single in-process lock and each one commits in its own
transaction, so concurrent writers in the same process cannot lose updates.

Persistence is advisory: storage failures are logged and reported as a
``False`` return (writes) or as absent data (reads), never raised.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..core.settings import get_settings
from ..core.types import Job, JobStatus, RunCounts, RunDiff, RunMeta, TriageMeta, TriageState
from ..core.urls import origin_of
from ..db.models import Base
from ..db.repositories import RunRepository, TriageRepository, run_to_meta, triage_to_meta
from .fingerprint import digests_for

logger = logging.getLogger(__name__)

PERSISTENCE_ERRORS = (SQLAlchemyError, OSError)


def build_run_meta(job: Job) -> RunMeta:
    """Summarize a finished job for the run history.

    Args:
        job: Job with outputs attached

    Returns:
        RunMeta carrying the deduplicated digests of the job's issues
    """
    outputs = job.outputs
    issues = outputs.issues if outputs else []
    return RunMeta(
        id=job.id,
        url=job.url,
        origin=origin_of(job.url),
        created_at=job.created_at,
        status=job.status,
        summary=job.summary,
        counts=RunCounts(
            issues=len(issues),
            pages=len(outputs.pages) if outputs else 0,
            journeys=len(outputs.journeys) if outputs else 0,
        ),
        digests=digests_for(issues),
    )


def diff_digests(base: RunMeta | None, head: RunMeta | None) -> RunDiff:
    """Classify digests of two runs as added, removed or unchanged.

    Either run may be missing, in which case all three lists are empty.
    """
    if base is None or head is None:
        return RunDiff(base=base, head=head)

    base_set = set(base.digests)
    head_set = set(head.digests)
    return RunDiff(
        base=base,
        head=head,
        added=[d for d in dict.fromkeys(head.digests) if d not in base_set],
        removed=[d for d in dict.fromkeys(base.digests) if d not in head_set],
        unchanged=[d for d in dict.fromkeys(head.digests) if d in base_set],
    )


class HistoryStore:
    """Run history and triage store backed by an async SQLAlchemy engine."""

    def __init__(self, database_url: str | None = None, echo: bool = False):
        """Initialize store.

        Args:
            database_url: SQLAlchemy async URL (default: from settings)
            echo: Log SQL statements
        """
        self.database_url = database_url or get_settings().database_url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._init_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    async def __aenter__(self) -> "HistoryStore":
        await self.init()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def init(self) -> None:
        """Create the engine and tables if not done yet."""
        async with self._init_lock:
            if self._engine is not None:
                return

            self._prepare_sqlite_dir()
            engine = create_async_engine(self.database_url, echo=self.echo)
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            self._engine = engine
            self._session_factory = async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            logger.info(f"History store ready: {engine.url.render_as_string(hide_password=True)}")

    async def close(self) -> None:
        """Dispose of the engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def _prepare_sqlite_dir(self) -> None:
        url = make_url(self.database_url)
        if url.get_backend_name() != "sqlite":
            return
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        await self.init()
        assert self._session_factory is not None
        async with self._session_factory() as session:
            yield session

    @asynccontextmanager
    async def _write(self) -> AsyncIterator[AsyncSession]:
        async with self._write_lock:
            async with self._session() as session:
                async with session.begin():
                    yield session

    # Run history

    async def record_run(self, job: Job) -> bool:
        """Store the summary of a finished job, replacing any earlier record for it.

        Args:
            job: Finished job; only completed jobs with outputs are recorded

        Returns:
            True if the run was persisted
        """
        if job.status != JobStatus.DONE or job.outputs is None:
            logger.debug(f"Not recording job {job.id}: status {job.status.value}")
            return False

        meta = build_run_meta(job)
        try:
            async with self._write() as session:
                await RunRepository(session).upsert(meta)
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to record run {job.id}: {e}", exc_info=True)
            return False

        logger.info(f"Recorded run {meta.id} for {meta.origin} ({len(meta.digests)} digests)")
        return True

    async def list_runs(self, origin: str | None = None) -> list[RunMeta]:
        """List recorded runs newest first, optionally for a single origin."""
        try:
            async with self._session() as session:
                rows = await RunRepository(session).list_runs(origin)
                return [run_to_meta(row) for row in rows]
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to list runs: {e}", exc_info=True)
            return []

    async def get_run(self, run_id: str) -> RunMeta | None:
        """Look up one run by id."""
        try:
            async with self._session() as session:
                row = await RunRepository(session).get_by_id(run_id)
                return run_to_meta(row) if row else None
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to load run {run_id}: {e}", exc_info=True)
            return None

    async def diff_runs(self, base_id: str, head_id: str) -> RunDiff:
        """Compare the digest sets of two runs.

        Unknown run ids yield empty digest lists with whichever run resolved.
        """
        base = await self.get_run(base_id)
        head = await self.get_run(head_id)
        return diff_digests(base, head)

    # Triage

    async def set_triage_state(self, digest: str, state: TriageState | str | None) -> bool:
        """Set or clear the triage state of a digest.

        Clearing keeps owner, estimate and notes; a record left empty is removed.

        Raises:
            ValueError: If state is not a known triage state
        """
        new_state = TriageState(state) if state is not None else None
        if not digest:
            logger.warning("Ignoring triage update for empty digest")
            return False

        try:
            async with self._write() as session:
                repo = TriageRepository(session)
                if new_state is None:
                    await repo.clear_state(digest)
                else:
                    await repo.merge(digest, {"state": new_state.value})
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to set triage state for {digest}: {e}", exc_info=True)
            return False
        return True

    async def set_triage_meta(self, digest: str, meta: TriageMeta | dict[str, Any]) -> bool:
        """Merge a partial triage update into a digest's record.

        Only fields present in the update overwrite stored values.

        Raises:
            pydantic.ValidationError: If a dict update has invalid values
        """
        update = meta if isinstance(meta, TriageMeta) else TriageMeta.model_validate(meta)
        values = update.model_dump(mode="json", exclude_unset=True)
        if not digest:
            logger.warning("Ignoring triage update for empty digest")
            return False
        if not values:
            return True

        try:
            async with self._write() as session:
                await TriageRepository(session).merge(digest, values)
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to set triage meta for {digest}: {e}", exc_info=True)
            return False
        return True

    async def get_triage_states(self, digests: Iterable[str]) -> dict[str, TriageState]:
        """Triage states for the given digests; digests without a state are omitted."""
        records = await self.get_triage_meta(digests)
        return {d: meta.state for d, meta in records.items() if meta.state is not None}

    async def get_triage_meta(self, digests: Iterable[str]) -> dict[str, TriageMeta]:
        """Triage records for the given digests; unknown digests are omitted."""
        wanted = [d for d in digests if isinstance(d, str) and d]
        try:
            async with self._session() as session:
                rows = await TriageRepository(session).get_many(wanted)
                return {row.digest: triage_to_meta(row) for row in rows}
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to read triage records: {e}", exc_info=True)
            return {}

    async def export_index(self) -> dict[str, Any]:
        """Dump the whole store as ``{"runs": [...], "triage": {...}}``."""
        runs = await self.list_runs()
        try:
            async with self._session() as session:
                rows = await TriageRepository(session).list_all()
                triage = {row.digest: triage_to_meta(row) for row in rows}
        except PERSISTENCE_ERRORS as e:
            logger.error(f"Failed to read triage records: {e}", exc_info=True)
            triage = {}

        return {
            "runs": [run.model_dump(mode="json") for run in runs],
            "triage": {d: m.model_dump(mode="json", exclude_none=True) for d, m in triage.items()},
        }
