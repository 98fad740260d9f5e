"""Stable issue fingerprints for cross-run identity."""

import hashlib
from collections.abc import Iterable

from ..core.types import Issue
from ..core.urls import normalize_url

DIGEST_LENGTH = 16


def digest_key(issue: Issue) -> str:
    """Identity string an issue's digest is computed from.

    Only category, normalized page URL and the category discriminator take
    part. Severity, score and evidence may change between runs without
    changing the key.
    """
    return "|".join((issue.category, normalize_url(issue.page_url), issue.discriminator))


def digest(issue: Issue) -> str:
    """Compute the stable digest of an issue."""
    raw = digest_key(issue).encode("utf-8")
    return hashlib.sha1(raw, usedforsecurity=False).hexdigest()[:DIGEST_LENGTH]


def digests_for(issues: Iterable[Issue]) -> list[str]:
    """Deduplicated digests of a set of issues, in encounter order."""
    return list(dict.fromkeys(digest(issue) for issue in issues or ()))
