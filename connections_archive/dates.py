"""
Puzzle Date Inference

Finds the calendar date of an answer set from page text or structured
metadata, and falls back to inferring it from the previously archived date.
"""

import json
import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, Optional

from bs4 import BeautifulSoup

from connections_archive.text_utils import decode_entities, strip_tags

logger = logging.getLogger(__name__)

MONTHS = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11, "december": 12,
}

LONG_DATE_RE = re.compile(
    r"\b(" + "|".join(m.capitalize() for m in MONTHS) + r")\s+(\d{1,2})(?:st|nd|rd|th)?(?:,\s*|\s+)(\d{4})\b",
    re.IGNORECASE,
)
ISO_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

JSON_LD_DATE_KEYS = ("datePublished", "dateModified")
META_DATE_KEYS = (
    "article:published_time",
    "article:modified_time",
    "og:updated_time",
    "datepublished",
    "date",
    "pubdate",
)


def today_utc() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def next_day(iso_date: str) -> str:
    """Return the ISO date one day after ``iso_date``."""
    return (date.fromisoformat(iso_date) + timedelta(days=1)).isoformat()


def _to_iso(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def extract_date_from_text(text: str) -> Optional[str]:
    """
    Find the first long-form date such as "September 16, 2025".

    Args:
        text: Plain text to search

    Returns:
        ISO date string, or None if no valid date is present
    """
    if not text:
        return None
    for match in LONG_DATE_RE.finditer(text):
        month = MONTHS[match.group(1).lower()]
        iso = _to_iso(int(match.group(3)), month, int(match.group(2)))
        if iso:
            return iso
    return None


def _iso_from_timestamp(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    match = ISO_PREFIX_RE.match(value.strip())
    if not match:
        return None
    return _to_iso(int(match.group(1)), int(match.group(2)), int(match.group(3)))


def _walk_json_ld(obj: Any, depth: int = 0, max_depth: int = 10) -> Iterator[Any]:
    if depth > max_depth:
        return
    if isinstance(obj, dict):
        for key in JSON_LD_DATE_KEYS:
            if key in obj:
                yield obj[key]
        for value in obj.values():
            yield from _walk_json_ld(value, depth + 1, max_depth)
    elif isinstance(obj, list):
        for item in obj:
            yield from _walk_json_ld(item, depth + 1, max_depth)


def extract_metadata_date(markup: str) -> Optional[str]:
    """
    Find a publish/modify date in structured page metadata.

    Looks at JSON-LD blocks first, then meta tags, then <time datetime="...">.

    Args:
        markup: Full HTML document

    Returns:
        ISO date string, or None if the page carries no usable metadata
    """
    if not markup or "<" not in markup:
        return None
    soup = BeautifulSoup(markup, "html.parser")

    for script in soup.find_all("script", type="application/ld+json"):
        if not script.string:
            continue
        try:
            data = json.loads(script.string)
        except (json.JSONDecodeError, TypeError):
            logger.debug("Ignoring unparsable JSON-LD block")
            continue
        for value in _walk_json_ld(data):
            iso = _iso_from_timestamp(value)
            if iso:
                return iso

    for meta in soup.find_all("meta"):
        key = (meta.get("property") or meta.get("name") or meta.get("itemprop") or "").lower()
        if key in META_DATE_KEYS:
            iso = _iso_from_timestamp(meta.get("content"))
            if iso:
                return iso

    for tag in soup.find_all("time"):
        iso = _iso_from_timestamp(tag.get("datetime"))
        if iso:
            return iso

    return None


def infer_date(
    section_text: str,
    document: str,
    is_new: bool,
    previous_date: Optional[str],
    today: Optional[str] = None,
) -> str:
    """
    Decide the date to archive a chosen answer set under.

    Explicit dates always win: the section's own text, then the whole
    document, then structured metadata. Only without any of those is the
    date inferred, and stale content never advances the previous date.

    Args:
        section_text: Plain text of the chosen section
        document: Full source document (markup or plain text)
        is_new: Whether the words differ from the previous snapshot
        previous_date: Date of the previous snapshot, if any
        today: Override for the current UTC date (YYYY-MM-DD)

    Returns:
        ISO date string
    """
    explicit = extract_date_from_text(section_text)
    if explicit:
        return explicit

    document_text = strip_tags(document) if document and "<" in document else decode_entities(document or "")
    explicit = extract_date_from_text(document_text)
    if explicit:
        return explicit

    explicit = extract_metadata_date(document)
    if explicit:
        return explicit

    current = today or today_utc()
    if is_new:
        return next_day(previous_date) if previous_date else current
    return previous_date or current
