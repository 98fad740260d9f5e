"""Type definitions for the backlog system."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, computed_field, field_validator

from .urls import strip_fragment

# Metric names produced by the performance collaborator
LOAD_DELAY = "largest-contentful-paint"
INTERACTION_DELAY = "interactive"
LAYOUT_SHIFT = "cumulative-layout-shift"

PERFORMANCE_METRICS = (LOAD_DELAY, INTERACTION_DELAY, LAYOUT_SHIFT)


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


# Evidence models


class ImpactClass(str, Enum):
    """Severity class reported by the accessibility checker."""

    MINOR = "minor"
    MODERATE = "moderate"
    SERIOUS = "serious"
    CRITICAL = "critical"


class PageMeta(BaseModel):
    """Head/heading metadata extracted from a page."""

    title: str | None = Field(default=None, description="Document title")
    h1: str | None = Field(default=None, description="First H1 text")
    description: str | None = Field(default=None, description="Meta description")


class AccessibilityViolation(BaseModel):
    """A single accessibility rule violation on a page."""

    rule_id: str = Field(description="Checker rule identifier")
    impact: ImpactClass | None = Field(default=None, description="Reported severity class")
    description: str = Field(default="", description="Human-readable description")
    target_selector: str | None = Field(default=None, description="Selector of offending node")
    wcag_ref: str | None = Field(default=None, description="WCAG success criterion, e.g. 'WCAG 1.1.1'")


class PageRun(BaseModel):
    """One crawled page and everything measured about it."""

    url: str = Field(description="Canonical page URL (fragment stripped)")
    links: list[str] = Field(default_factory=list, description="Same-origin links discovered")
    meta: PageMeta = Field(default_factory=PageMeta)
    performance_audit: dict[str, float | None] | None = Field(
        default=None, description="Named numeric performance metrics"
    )
    accessibility_violations: list[AccessibilityViolation] = Field(default_factory=list)
    snapshot_path: str | None = Field(default=None, description="Path to saved HTML snapshot")
    screenshot_path: str | None = Field(default=None, description="Path to screenshot")

    @field_validator("url")
    @classmethod
    def _canonical_url(cls, value: str) -> str:
        return strip_fragment(value)

    @field_validator("links")
    @classmethod
    def _dedupe_links(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class JourneyStep(BaseModel):
    """A single step of a scripted user flow."""

    action: str = Field(description="Action performed, e.g. 'click' or 'fill'")
    selector: str | None = Field(default=None, description="Target selector")
    ok: bool = Field(default=True, description="Whether the step succeeded")
    elapsed_ms: float = Field(default=0, ge=0, description="Time spent on the step")
    error: str | None = Field(default=None, description="Failure reason")
    screenshot_path: str | None = Field(default=None, description="Captured evidence")


class Journey(BaseModel):
    """One scripted user-flow execution."""

    name: str
    steps: list[JourneyStep] = Field(default_factory=list)
    total_ms: float = Field(default=0, ge=0)
    failed_step_index: int | None = Field(default=None, ge=0)


class BenchTarget(BaseModel):
    """A competitor page captured for comparison."""

    url: str
    origin: str
    page: PageRun | None = None


# Issue models


class IssueCategory(str, Enum):
    """Backlog issue categories."""

    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"
    SEO = "seo"
    JOURNEY = "journey"


class SeoCheck(str, Enum):
    """SEO checks run against every page."""

    TITLE_MISSING = "title-missing"
    TITLE_LENGTH = "title-length"
    H1_MISSING = "h1-missing"
    DESCRIPTION_MISSING = "description-missing"
    DESCRIPTION_TOO_LONG = "description-too-long"
    DUPLICATE_TITLE = "duplicate-title"


class IssueBase(BaseModel):
    """Fields shared by every issue variant."""

    id: str = Field(description="Run-local identifier, not stable across runs")
    page_url: str | None = Field(default=None, description="Affected page")
    title: str
    evidence: str = ""
    severity: int = Field(ge=1, le=5)
    business_impact: int = Field(ge=1, le=5)
    effort: int = Field(ge=1, le=5)
    remediation_steps: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score(self) -> int:
        """Priority score: severity * business_impact - effort."""
        return self.severity * self.business_impact - self.effort

    @property
    def discriminator(self) -> str:
        """Category-specific part of the issue's identity."""
        return (self.title or "").lower()[:48]


class PerformanceIssue(IssueBase):
    category: Literal["performance"] = "performance"
    metric_name: str
    metric_value: float | None = None

    @property
    def discriminator(self) -> str:
        return self.metric_name


class AccessibilityIssue(IssueBase):
    category: Literal["accessibility"] = "accessibility"
    rule_id: str
    wcag_ref: str | None = None
    target_selector: str | None = None

    @property
    def discriminator(self) -> str:
        return self.rule_id


class SeoIssue(IssueBase):
    category: Literal["seo"] = "seo"
    check: SeoCheck


class JourneyIssue(IssueBase):
    category: Literal["journey"] = "journey"
    journey_name: str
    failed_step_index: int = Field(ge=0)
    evidence_path: str | None = None


Issue = Annotated[
    Union[PerformanceIssue, AccessibilityIssue, SeoIssue, JourneyIssue],
    Field(discriminator="category"),
]


# Job models


class JobStatus(str, Enum):
    """Job lifecycle status."""

    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.DONE, JobStatus.ERROR)


class EngineOptions(BaseModel):
    """Toggles for optional pipeline collaborators."""

    performance: bool = Field(default=True, description="Run the performance auditor")
    accessibility: bool = Field(default=True, description="Run the accessibility checker")
    journeys: bool = Field(default=True, description="Run scripted user journeys")


class JobOptions(BaseModel):
    """Per-request analysis options."""

    max_depth: int = Field(default=1, ge=0, le=5, description="Crawl depth")
    engines: EngineOptions = Field(default_factory=EngineOptions)
    competitors: list[str] = Field(default_factory=list, description="Competitor URLs")

    @field_validator("competitors")
    @classmethod
    def _http_competitors(cls, value: list[str]) -> list[str]:
        cleaned = [c.strip() for c in value if c and c.strip()]
        return [c for c in cleaned if c.lower().startswith(("http://", "https://"))][:3]


class JobOutputs(BaseModel):
    """Evidence and derived issues attached to a job."""

    pages: list[PageRun] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)
    journeys: list[Journey] = Field(default_factory=list)
    bench: list[BenchTarget] = Field(default_factory=list)


class Job(BaseModel):
    """Orchestration state for one analysis request."""

    id: str
    url: str
    options: JobOptions = Field(default_factory=JobOptions)
    status: JobStatus = JobStatus.QUEUED
    stage: str = "queued"
    progress: int = Field(default=0, ge=0, le=100)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    summary: str | None = None
    outputs: JobOutputs | None = None
    error: str | None = None


# History and triage models


class RunCounts(BaseModel):
    issues: int = 0
    pages: int = 0
    journeys: int = 0


class RunMeta(BaseModel):
    """Durable summary of one completed job."""

    id: str
    url: str
    origin: str
    created_at: datetime
    status: JobStatus
    summary: str | None = None
    counts: RunCounts = Field(default_factory=RunCounts)
    digests: list[str] = Field(default_factory=list)


class RunDiff(BaseModel):
    """Digest-level comparison of two runs."""

    base: RunMeta | None = None
    head: RunMeta | None = None
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)


class TriageState(str, Enum):
    """Human disposition of a backlog issue."""

    ACCEPTED = "accepted"
    WONTFIX = "wontfix"
    NEEDS_DESIGN = "needs-design"
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TriageMeta(BaseModel):
    """Cross-run triage record keyed by issue digest.

    Used both as the stored record and as a partial update: only the fields
    explicitly set on an update overwrite the stored values.
    """

    state: TriageState | None = None
    owner: str | None = Field(default=None, description="Owning team, e.g. FE, Design, SEO, QA")
    estimate_hours: float | None = Field(default=None, ge=0)
    notes: str | None = None


# Configuration models


class PipelineConfig(BaseModel):
    """Pipeline execution configuration."""

    crawl_timeout_s: float = Field(default=120.0, gt=0, description="Bound on the crawl stage")
    stage_timeout_s: float = Field(
        default=180.0, gt=0, description="Bound on each optional collaborator call"
    )
    max_competitors: int = Field(default=3, ge=0, le=10)


class HistoryConfig(BaseModel):
    """Run history configuration."""

    enabled: bool = Field(default=True, description="Record completed runs")


class BacklogConfig(BaseModel):
    """Complete backlog configuration."""

    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
