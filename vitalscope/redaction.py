"""URL redaction for logs and rendered reports."""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit


def redact_url_brief(url: str) -> str:
    """Low-noise URL redaction (drops query+fragment; removes userinfo)."""
    if not isinstance(url, str) or not url:
        return url
    try:
        parts = urlsplit(url)
        netloc = parts.netloc.split("@", 1)[1] if "@" in parts.netloc else parts.netloc
        return urlunsplit((parts.scheme, netloc, parts.path, "", ""))
    except ValueError:
        return url


def truncate(text: str, max_len: int) -> str:
    s = str(text)
    if len(s) <= max_len:
        return s
    return s[: max(0, max_len - 1)] + "…"
