"""SQLAlchemy database models."""

from sqlalchemy import JSON, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class RunRecord(Base):
    """Compact summary of one completed job."""

    __tablename__ = "runs"
    __table_args__ = (Index("ix_runs_origin_created", "origin", "created_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    origin: Mapped[str] = mapped_column(String(512), nullable=False)
    # ISO-8601 UTC with fixed precision so lexical order is chronological
    created_at: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    issue_count: Mapped[int] = mapped_column(Integer, default=0)
    page_count: Mapped[int] = mapped_column(Integer, default=0)
    journey_count: Mapped[int] = mapped_column(Integer, default=0)
    digests: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)


class TriageRecord(Base):
    """Human triage disposition for one issue digest, independent of runs."""

    __tablename__ = "triage"

    digest: Mapped[str] = mapped_column(String(64), primary_key=True)
    state: Mapped[str | None] = mapped_column(String(20), nullable=True)
    owner: Mapped[str | None] = mapped_column(String(100), nullable=True)
    estimate_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
