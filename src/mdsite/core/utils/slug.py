"""Slug generation for page paths and heading anchors"""

import datetime as dt
import re
from typing import Optional


POST_STEM_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})-(.+)$')


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated URL-safe slug."""
    text = text.lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    return re.sub(r'-+', '-', text).strip('-')


def unique_slug(text: str, seen: dict[str, int], fallback: str = 'section') -> str:
    """Slugify text, suffixing -1, -2, ... on repeats. `seen` is owned by the caller."""
    base = slugify(text) or fallback
    count = seen.get(base, 0)
    seen[base] = count + 1
    return base if count == 0 else f"{base}-{count}"


def split_post_stem(stem: str) -> tuple[Optional[dt.date], str]:
    """Split a `YYYY-MM-DD-title` post filename stem into (date, title); date is None if absent."""
    m = POST_STEM_RE.match(stem)
    if not m:
        return None, stem
    try:
        stamp = dt.date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None, stem
    return stamp, m.group(4)
