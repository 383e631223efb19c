"""Helpers for safe logging of webhook targets.

Webhook URLs frequently carry their secret in the path (``/hooks/<token>``)
or the query string (``?key=...``). Log output only ever shows the scheme,
host and a shortened path.
"""

from __future__ import annotations

from urllib.parse import urlsplit

_MAX_VISIBLE_SEGMENT = 12


def redact_url(url: str) -> str:
    """Return *url* with credentials, query, fragment and long path segments hidden."""
    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
        if parts.port is not None:
            host = f"{host}:{parts.port}"
    except ValueError:
        return "<invalid-url>"

    segments: list[str] = []
    for segment in parts.path.split("/"):
        if len(segment) > _MAX_VISIBLE_SEGMENT or any(ch.isdigit() for ch in segment):
            segments.append("<redacted>")
        else:
            segments.append(segment)
    path = "/".join(segments)

    redacted = f"{parts.scheme}://{host}{path}"
    if parts.query:
        redacted += "?<redacted>"
    return redacted
