"""Scoring constants and severity rules.

The thresholds and fixed impact/effort values are heuristics carried over
unchanged from earlier releases so scores stay comparable between runs.
"""

from ..core.types import INTERACTION_DELAY, LAYOUT_SHIFT, LOAD_DELAY, ImpactClass, SeoCheck

# Issues below this severity are not reported
REPORTING_FLOOR = 3

# Performance: ordered (exclusive lower bound, severity) pairs per metric
PERF_THRESHOLDS: dict[str, tuple[tuple[float, int], ...]] = {
    LOAD_DELAY: ((4000, 5), (2500, 4)),
    INTERACTION_DELAY: ((400, 4), (200, 3)),
    LAYOUT_SHIFT: ((0.25, 4), (0.1, 3)),
}
PERF_BASELINE_SEVERITY: dict[str, int] = {
    LOAD_DELAY: 2,
    INTERACTION_DELAY: 2,
    LAYOUT_SHIFT: 1,
}
PERF_IMPACT: dict[str, int] = {
    LOAD_DELAY: 5,
    INTERACTION_DELAY: 4,
    LAYOUT_SHIFT: 3,
}
PERF_TITLES: dict[str, str] = {
    LOAD_DELAY: "High LCP (slow hero)",
    INTERACTION_DELAY: "High INP (slow interactions)",
    LAYOUT_SHIFT: "High CLS (layout shifts)",
}
PERF_REMEDIATION: dict[str, list[str]] = {
    LOAD_DELAY: ["Inline critical CSS", "Preload hero image & font", "Defer non-critical JS"],
    INTERACTION_DELAY: [
        "Reduce long tasks (>50ms)",
        "Defer analytics until idle",
        "Use event delegation",
    ],
    LAYOUT_SHIFT: ["Reserve image/ads slots", "Avoid injecting content above-the-fold"],
}
PERF_EFFORT = 2

# Accessibility
A11Y_SEVERITY: dict[ImpactClass, int] = {
    ImpactClass.CRITICAL: 5,
    ImpactClass.SERIOUS: 4,
}
A11Y_DEFAULT_SEVERITY = 3
A11Y_IMPACT = 4
A11Y_EFFORT = 2
A11Y_REMEDIATION: dict[str, str] = {
    "image-alt": "Add meaningful alt text to images",
    "color-contrast": "Fix contrast to meet 4.5:1",
    "label": "Associate every form control with a visible label",
    "link-name": "Give links discernible text",
    "button-name": "Give buttons an accessible name",
    "html-has-lang": "Declare the page language on <html>",
}
A11Y_GENERIC_REMEDIATION = "Fix the flagged element per the referenced WCAG criterion"
A11Y_VERIFY_STEP = "Verify with axe + screen reader"

# SEO
TITLE_MIN_CHARS = 15
TITLE_MAX_CHARS = 65
DESCRIPTION_MAX_CHARS = 180
SEO_IMPACT = 3
SEO_EFFORT = 2
SEO_SEVERITY: dict[SeoCheck, int] = {
    SeoCheck.TITLE_MISSING: 4,
    SeoCheck.TITLE_LENGTH: 3,
    SeoCheck.H1_MISSING: 3,
    SeoCheck.DESCRIPTION_MISSING: 3,
    SeoCheck.DESCRIPTION_TOO_LONG: 2,
    SeoCheck.DUPLICATE_TITLE: 3,
}
SEO_TITLES: dict[SeoCheck, str] = {
    SeoCheck.TITLE_MISSING: "Missing <title> tag",
    SeoCheck.TITLE_LENGTH: "Title length out of range",
    SeoCheck.H1_MISSING: "Missing H1 heading",
    SeoCheck.DESCRIPTION_MISSING: "Missing meta description",
    SeoCheck.DESCRIPTION_TOO_LONG: "Meta description too long",
    SeoCheck.DUPLICATE_TITLE: "Duplicate title across pages",
}
SEO_REMEDIATION: dict[SeoCheck, list[str]] = {
    SeoCheck.TITLE_MISSING: ["Add a unique, descriptive <title> (~50-60 chars)"],
    SeoCheck.TITLE_LENGTH: ["Rewrite the title to 15-65 characters", "Lead with the primary keyword"],
    SeoCheck.H1_MISSING: ["Add a single H1 describing the page's main topic"],
    SeoCheck.DESCRIPTION_MISSING: [
        "Add a 120-160 char meta description with a clear value prop and CTA"
    ],
    SeoCheck.DESCRIPTION_TOO_LONG: ["Trim the meta description to under 160 characters"],
    SeoCheck.DUPLICATE_TITLE: ["Give each page a distinct title reflecting its content"],
}

# Journeys
JOURNEY_SEVERITY = 5
JOURNEY_IMPACT = 5
JOURNEY_EFFORT = 3
JOURNEY_REMEDIATION = [
    "Reproduce failure",
    "Check client-side validation",
    "Handle server-side errors gracefully",
]


def perf_severity(metric: str, value: float) -> int:
    """Map a performance metric value to a 1-5 severity.

    Args:
        metric: Metric name (one of the known performance metrics)
        value: Measured value

    Returns:
        Severity; unknown metrics get 2, below the reporting floor
    """
    for bound, severity in PERF_THRESHOLDS.get(metric, ()):
        if value > bound:
            return severity
    return PERF_BASELINE_SEVERITY.get(metric, 2)


def a11y_severity(impact: ImpactClass | None) -> int:
    """Map an accessibility impact class to a 1-5 severity."""
    if impact is None:
        return A11Y_DEFAULT_SEVERITY
    return A11Y_SEVERITY.get(impact, A11Y_DEFAULT_SEVERITY)


def a11y_remediation(rule_id: str) -> list[str]:
    """Remediation steps for an accessibility rule."""
    first = A11Y_REMEDIATION.get(rule_id.lower(), A11Y_GENERIC_REMEDIATION)
    return [first, A11Y_VERIFY_STEP]
