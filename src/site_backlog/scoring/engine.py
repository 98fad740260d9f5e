"""Issue synthesis and prioritization from audit evidence."""

import logging
from collections import defaultdict
from collections.abc import Iterable

from ..core.types import (
    PERFORMANCE_METRICS,
    AccessibilityIssue,
    Issue,
    Journey,
    JourneyIssue,
    PageRun,
    PerformanceIssue,
    SeoCheck,
    SeoIssue,
)
from . import rules

logger = logging.getLogger(__name__)


class IssueScorer:
    """Turns page and journey evidence into a ranked issue list.

    The scorer is stateless apart from the run-local id counter, which is
    reset on every call so identical inputs always produce identical output.
    """

    def __init__(self) -> None:
        """Initialize scorer."""
        self._counter = 0

    def score(self, pages: list[PageRun], journeys: list[Journey]) -> list[Issue]:
        """Synthesize and rank issues.

        Args:
            pages: Crawled pages with any attached audits
            journeys: Executed user journeys

        Returns:
            Issues sorted by descending score (ties keep encounter order)
        """
        self._counter = 0
        issues: list[Issue] = []

        for page in pages:
            issues.extend(self._performance_issues(page))
        for page in pages:
            issues.extend(self._accessibility_issues(page))
        issues.extend(self._seo_issues(pages))
        for journey in journeys:
            issue = self._journey_issue(journey)
            if issue is not None:
                issues.append(issue)

        issues.sort(key=lambda i: i.score, reverse=True)
        logger.debug(f"Scored {len(issues)} issues from {len(pages)} pages, {len(journeys)} journeys")
        return issues

    def _next_id(self) -> str:
        self._counter += 1
        return f"issue-{self._counter:04d}"

    def _performance_issues(self, page: PageRun) -> Iterable[PerformanceIssue]:
        audit = page.performance_audit
        if not audit:
            return
        for metric in PERFORMANCE_METRICS:
            value = audit.get(metric)
            if value is None:
                continue
            severity = rules.perf_severity(metric, value)
            if severity < rules.REPORTING_FLOOR:
                continue
            yield PerformanceIssue(
                id=self._next_id(),
                page_url=page.url,
                title=rules.PERF_TITLES[metric],
                evidence=f"{metric}={value:g}",
                metric_name=metric,
                metric_value=value,
                severity=severity,
                business_impact=rules.PERF_IMPACT[metric],
                effort=rules.PERF_EFFORT,
                remediation_steps=list(rules.PERF_REMEDIATION[metric]),
            )

    def _accessibility_issues(self, page: PageRun) -> Iterable[AccessibilityIssue]:
        for violation in page.accessibility_violations:
            target = violation.target_selector or "unknown target"
            yield AccessibilityIssue(
                id=self._next_id(),
                page_url=page.url,
                title=violation.rule_id,
                evidence=f"{violation.description} at {target}",
                rule_id=violation.rule_id,
                wcag_ref=violation.wcag_ref,
                target_selector=violation.target_selector,
                severity=rules.a11y_severity(violation.impact),
                business_impact=rules.A11Y_IMPACT,
                effort=rules.A11Y_EFFORT,
                remediation_steps=rules.a11y_remediation(violation.rule_id),
            )

    def _seo_issues(self, pages: list[PageRun]) -> list[SeoIssue]:
        titles: dict[str, list[str]] = defaultdict(list)
        for page in pages:
            title = (page.meta.title or "").strip()
            if title:
                titles[title].append(page.url)

        issues: list[SeoIssue] = []
        for page in pages:
            title = (page.meta.title or "").strip()
            h1 = (page.meta.h1 or "").strip()
            description = (page.meta.description or "").strip()

            if not title:
                issues.append(self._seo_issue(page, SeoCheck.TITLE_MISSING, "No <title> found"))
            elif not rules.TITLE_MIN_CHARS <= len(title) <= rules.TITLE_MAX_CHARS:
                issues.append(
                    self._seo_issue(
                        page,
                        SeoCheck.TITLE_LENGTH,
                        f'Title is {len(title)} chars (expected {rules.TITLE_MIN_CHARS}-'
                        f'{rules.TITLE_MAX_CHARS}): "{title}"',
                    )
                )

            if not h1:
                issues.append(self._seo_issue(page, SeoCheck.H1_MISSING, "No H1 heading found"))

            if not description:
                issues.append(
                    self._seo_issue(page, SeoCheck.DESCRIPTION_MISSING, "No meta description found")
                )
            elif len(description) > rules.DESCRIPTION_MAX_CHARS:
                issues.append(
                    self._seo_issue(
                        page,
                        SeoCheck.DESCRIPTION_TOO_LONG,
                        f"Meta description is {len(description)} chars "
                        f"(max {rules.DESCRIPTION_MAX_CHARS})",
                    )
                )

            if title and len(titles[title]) >= 2:
                others = len(titles[title]) - 1
                issues.append(
                    self._seo_issue(
                        page,
                        SeoCheck.DUPLICATE_TITLE,
                        f'Title "{title}" is shared with {others} other page(s)',
                    )
                )

        return issues

    def _seo_issue(self, page: PageRun, check: SeoCheck, evidence: str) -> SeoIssue:
        return SeoIssue(
            id=self._next_id(),
            page_url=page.url,
            title=rules.SEO_TITLES[check],
            evidence=evidence,
            check=check,
            severity=rules.SEO_SEVERITY[check],
            business_impact=rules.SEO_IMPACT,
            effort=rules.SEO_EFFORT,
            remediation_steps=list(rules.SEO_REMEDIATION[check]),
        )

    def _journey_issue(self, journey: Journey) -> JourneyIssue | None:
        index = journey.failed_step_index
        if index is None:
            return None

        step = journey.steps[index] if index < len(journey.steps) else None
        if step is not None:
            evidence = f"Failed at step #{index + 1}: {step.action} ({step.error or 'unknown'})"
        else:
            evidence = f"Failed at step #{index + 1} (step not recorded)"

        return JourneyIssue(
            id=self._next_id(),
            title=f"Journey failure: {journey.name}",
            evidence=evidence,
            journey_name=journey.name,
            failed_step_index=index,
            evidence_path=step.screenshot_path if step is not None else None,
            severity=rules.JOURNEY_SEVERITY,
            business_impact=rules.JOURNEY_IMPACT,
            effort=rules.JOURNEY_EFFORT,
            remediation_steps=list(rules.JOURNEY_REMEDIATION),
        )


def score(pages: list[PageRun], journeys: list[Journey]) -> list[Issue]:
    """Score evidence into a ranked issue list.

    Args:
        pages: Crawled pages with any attached audits
        journeys: Executed user journeys

    Returns:
        Issues sorted by descending score
    """
    return IssueScorer().score(pages, journeys)
