"""
Text Utilities for Connections Answer Pages

Entity decoding, tag stripping and word/title cleaning shared by the parsers.
"""

import html
import re
from typing import FrozenSet, Iterable, List

from bs4 import BeautifulSoup

QUOTE_CHARS = '"“”‘«»'
WORD_PATTERN = re.compile(r"^[A-Z][A-Z'-]*$")

_QUOTES_RE = re.compile(f"[{QUOTE_CHARS}]+")
_NON_WORD_RE = re.compile(r"[^A-Za-z'\-]")
_WHITESPACE_RE = re.compile(r"\s+")


def decode_entities(text: str) -> str:
    """Decode HTML entities and turn non-breaking spaces into plain spaces."""
    if not text:
        return ""
    return html.unescape(text).replace("\xa0", " ")


def strip_tags(markup: str) -> str:
    """
    Remove all tags from a markup fragment.

    Args:
        markup: HTML fragment or full document

    Returns:
        Visible text with entities decoded and whitespace collapsed
    """
    if not markup:
        return ""
    text = BeautifulSoup(markup, "html.parser").get_text(" ")
    return _WHITESPACE_RE.sub(" ", decode_entities(text)).strip()


def clean_word(raw: str) -> str:
    """
    Normalize a single answer word.

    Quote characters are dropped, curly apostrophes become straight ones and
    anything that is not a letter, apostrophe or hyphen is removed.

    Args:
        raw: Word as it appears on the page

    Returns:
        Uppercase word, possibly empty
    """
    if not raw:
        return ""
    word = raw.replace("’", "'")
    word = _QUOTES_RE.sub("", word)
    word = _NON_WORD_RE.sub("", word)
    return word.upper().strip()


def clean_title(raw: str) -> str:
    """Strip trailing colon and quotes from a category title and collapse whitespace."""
    if not raw:
        return ""
    title = _QUOTES_RE.sub("", raw.replace("’", "'"))
    title = _WHITESPACE_RE.sub(" ", title).strip()
    title = re.sub(r"[\s:]+$", "", title)
    return title.strip()


def is_word(token: str) -> bool:
    return bool(token) and WORD_PATTERN.match(token) is not None


def split_word_list(line: str) -> List[str]:
    """Split a comma separated line into cleaned, valid words."""
    words = [clean_word(part) for part in decode_entities(line).split(",")]
    return [w for w in words if is_word(w)]


def word_set(categories: Iterable) -> FrozenSet[str]:
    """
    Collect every word of a category list into a set.

    Accepts Category objects or plain dicts with a "words" key.
    """
    words = set()
    for category in categories:
        members = category["words"] if isinstance(category, dict) else category.words
        words.update(members)
    return frozenset(words)
