"""Repository classes for database operations."""

from datetime import timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.types import RunCounts, RunMeta, TriageMeta
from .models import RunRecord, TriageRecord

TRIAGE_FIELDS = ("state", "owner", "estimate_hours", "notes")


def to_iso(meta: RunMeta) -> str:
    """Serialize a run's creation time for storage."""
    created = meta.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.astimezone(timezone.utc).isoformat(timespec="microseconds")


def run_to_meta(row: RunRecord) -> RunMeta:
    """Convert a stored run row to its RunMeta model."""
    return RunMeta(
        id=row.id,
        url=row.url,
        origin=row.origin,
        created_at=row.created_at,
        status=row.status,
        summary=row.summary,
        counts=RunCounts(
            issues=row.issue_count,
            pages=row.page_count,
            journeys=row.journey_count,
        ),
        digests=list(row.digests or []),
    )


def triage_to_meta(row: TriageRecord) -> TriageMeta:
    """Convert a stored triage row to its TriageMeta model."""
    return TriageMeta(
        state=row.state,
        owner=row.owner,
        estimate_hours=row.estimate_hours,
        notes=row.notes,
    )


class RunRepository:
    """Repository for run history operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, meta: RunMeta) -> RunRecord:
        """Insert a run, replacing any existing run with the same id."""
        row = RunRecord(
            id=meta.id,
            url=meta.url,
            origin=meta.origin,
            created_at=to_iso(meta),
            status=meta.status.value,
            summary=meta.summary,
            issue_count=meta.counts.issues,
            page_count=meta.counts.pages,
            journey_count=meta.counts.journeys,
            digests=list(meta.digests),
        )
        merged = await self.session.merge(row)
        await self.session.flush()
        return merged

    async def get_by_id(self, run_id: str) -> RunRecord | None:
        """Get run by ID."""
        result = await self.session.execute(select(RunRecord).where(RunRecord.id == run_id))
        row: RunRecord | None = result.scalar_one_or_none()
        return row

    async def list_runs(self, origin: str | None = None) -> list[RunRecord]:
        """List runs newest first, optionally for one origin."""
        query = select(RunRecord)
        if origin:
            query = query.where(RunRecord.origin == origin)
        query = query.order_by(RunRecord.created_at.desc(), RunRecord.id)

        result = await self.session.execute(query)
        return list(result.scalars().all())


class TriageRepository:
    """Repository for digest-keyed triage records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, digest: str) -> TriageRecord | None:
        """Get the triage record for one digest."""
        result = await self.session.execute(
            select(TriageRecord).where(TriageRecord.digest == digest)
        )
        row: TriageRecord | None = result.scalar_one_or_none()
        return row

    async def get_many(self, digests: list[str]) -> list[TriageRecord]:
        """Get triage records for the given digests; unknown digests are skipped."""
        if not digests:
            return []
        result = await self.session.execute(
            select(TriageRecord).where(TriageRecord.digest.in_(set(digests)))
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[TriageRecord]:
        """All triage records."""
        result = await self.session.execute(select(TriageRecord).order_by(TriageRecord.digest))
        return list(result.scalars().all())

    async def merge(self, digest: str, values: dict[str, Any]) -> TriageRecord | None:
        """Overwrite only the given fields of a digest's record, creating it if needed.

        Returns:
            The stored record, or None if the update left it empty and it was removed
        """
        row = await self.get(digest)
        if row is None:
            row = TriageRecord(digest=digest)
            self.session.add(row)
        for key, value in values.items():
            if key in TRIAGE_FIELDS:
                setattr(row, key, value)
        return await self._save_or_drop(row)

    async def clear_state(self, digest: str) -> bool:
        """Clear a digest's state, deleting the record if nothing else remains.

        Returns:
            True if a record existed
        """
        row = await self.get(digest)
        if row is None:
            return False
        row.state = None
        await self._save_or_drop(row)
        return True

    async def _save_or_drop(self, row: TriageRecord) -> TriageRecord | None:
        """Flush a record, deleting it first if none of its fields are set."""
        if all(getattr(row, key) is None for key in TRIAGE_FIELDS):
            if row in self.session.new:
                self.session.expunge(row)
            else:
                await self.session.delete(row)
            await self.session.flush()
            return None
        await self.session.flush()
        return row
