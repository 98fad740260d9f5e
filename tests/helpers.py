"""Shared test helpers."""

from typing import Any

from site_backlog.core.types import (
    AccessibilityViolation,
    Job,
    JobOutputs,
    JobStatus,
    Journey,
    JourneyStep,
    PageMeta,
    PageRun,
)

GOOD_META = PageMeta(h1="Widgets", description="Buy the best widgets online.")


def make_page(url: str = "https://example.com/", **overrides: Any) -> PageRun:
    """Create a page with complete, SEO-clean metadata.

    The default title embeds the URL so pages never share a title.

    Args:
        url: Page URL
        **overrides: PageRun field overrides. ``title``, ``h1`` and
            ``description`` are applied to the page meta.

    Returns:
        PageRun instance
    """
    meta = GOOD_META.model_copy(update={"title": f"Acme Widgets | {url}"})
    for key in ("title", "h1", "description"):
        if key in overrides:
            setattr(meta, key, overrides.pop(key))
    return PageRun(url=url, meta=meta, **overrides)


def make_violation(rule_id: str = "image-alt", **overrides: Any) -> AccessibilityViolation:
    """Create an accessibility violation."""
    defaults: dict[str, Any] = {
        "rule_id": rule_id,
        "impact": "serious",
        "description": "Images must have alternate text",
        "target_selector": "img.hero",
        "wcag_ref": "WCAG 1.1.1",
    }
    defaults.update(overrides)
    return AccessibilityViolation(**defaults)


def make_journey(name: str = "Checkout", failed_at: int | None = None) -> Journey:
    """Create a three-step journey, optionally failing at one step."""
    steps = [
        JourneyStep(action="goto", selector=None, elapsed_ms=120),
        JourneyStep(action="click", selector="#add-to-cart", elapsed_ms=80),
        JourneyStep(action="fill", selector="#email", elapsed_ms=40),
    ]
    if failed_at is not None:
        steps[failed_at].ok = False
        steps[failed_at].error = "Timeout waiting for selector"
        steps[failed_at].screenshot_path = f"runs/{name.lower()}-{failed_at}.png"
    return Journey(
        name=name,
        steps=steps,
        total_ms=sum(s.elapsed_ms for s in steps),
        failed_step_index=failed_at,
    )


def make_finished_job(
    job_id: str,
    url: str = "https://example.com",
    pages: list[PageRun] | None = None,
    journeys: list[Journey] | None = None,
    **overrides: Any,
) -> Job:
    """Create a DONE job whose outputs are the scored evidence."""
    from site_backlog.scoring import score

    pages = pages if pages is not None else [make_page(f"{url}/")]
    journeys = journeys or []
    outputs = JobOutputs(pages=pages, journeys=journeys, issues=score(pages, journeys))
    defaults: dict[str, Any] = {
        "id": job_id,
        "url": url,
        "status": JobStatus.DONE,
        "stage": "done",
        "progress": 100,
        "outputs": outputs,
        "summary": f"{len(outputs.issues)} issues",
    }
    defaults.update(overrides)
    return Job(**defaults)
