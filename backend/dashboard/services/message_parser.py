"""Field extraction from changedetection.io notification messages.

The notification body is markdown-ish text built from the changedetection.io
notification template, e.g.::

    <del>Old price: $99.99</del>
    **New price: $79.99**
    ---
    [[Watch URL](https://shop.example/p/1)] [[Diff URL](https://cd.example/diff/<uuid>)]

Extraction is best-effort: anything that does not match is left as None.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, asdict
from urllib.parse import urlparse

_WATCH_URL_RE = re.compile(r"\[Watch URL\]\(([^)\s]+)\)", re.IGNORECASE)
_DIFF_URL_RE = re.compile(r"\[Diff URL\]\(([^)\s]+)\)", re.IGNORECASE)
_EDIT_URL_RE = re.compile(r"\[Edit(?: URL)?\]\(([^)\s]+)\)", re.IGNORECASE)
_OLD_VALUE_RE = re.compile(r"<del>(.*?)</del>", re.DOTALL)
_NEW_VALUE_RE = re.compile(r"</del>\s*\*\*(.*?)\*\*", re.DOTALL)
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


@dataclass
class ExtractedFields:
    """Structured fields pulled out of a notification message."""
    watch_url: str | None = None
    diff_url: str | None = None
    edit_url: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    watcher_uuid: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


def _first_group(pattern: re.Pattern, text: str) -> str | None:
    match = pattern.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def _uuid_from_link(url: str | None) -> str | None:
    """Last path segment of a diff/edit link, when it looks like a watch UUID."""
    if not url:
        return None
    segments = [s for s in urlparse(url).path.split("/") if s]
    if not segments:
        return None
    candidate = segments[-1]
    return candidate if _UUID_RE.match(candidate) else None


def extract_fields(message: str | None) -> ExtractedFields:
    """Extract links and old/new values from a notification message."""
    if not message:
        return ExtractedFields()

    diff_url = _first_group(_DIFF_URL_RE, message)
    edit_url = _first_group(_EDIT_URL_RE, message)

    return ExtractedFields(
        watch_url=_first_group(_WATCH_URL_RE, message),
        diff_url=diff_url,
        edit_url=edit_url,
        old_value=_first_group(_OLD_VALUE_RE, message),
        new_value=_first_group(_NEW_VALUE_RE, message),
        watcher_uuid=_uuid_from_link(diff_url) or _uuid_from_link(edit_url),
    )
