"""URL helpers shared by evidence models, fingerprinting and run history."""

from urllib.parse import urlsplit, urlunsplit


def strip_fragment(url: str) -> str:
    """Drop the ``#fragment`` part of a URL, leaving everything else intact."""
    if not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))


def normalize_url(url: str | None) -> str:
    """Normalize a page URL for cross-run identity.

    Fragment and query string are removed, scheme and host are lowercased and
    an empty path becomes ``/``. Normalizing an already normalized URL returns
    it unchanged. Input that cannot be parsed as an absolute URL is returned
    as-is.

    Args:
        url: Page URL (may be None)

    Returns:
        Normalized URL, or an empty string for missing input
    """
    if not url:
        return ""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path or "/", "", ""))


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for a URL, or the input if it has no origin."""
    try:
        parts = urlsplit(url.strip())
        port = parts.port
    except ValueError:
        return url
    if not parts.scheme or not parts.hostname:
        return url
    host = parts.hostname if port is None else f"{parts.hostname}:{port}"
    return f"{parts.scheme.lower()}://{host}"
