"""
Connections Answer Section Parser

Extracts the four answer categories from answer pages. Pages are split into
sections at each "NYT Connections Puzzle Answer" heading, and every section
is parsed with one of several strategies depending on how the source lays
out its answers.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from connections_archive.dates import extract_date_from_text
from connections_archive.models import Candidate, Category, validate_categories
from connections_archive.text_utils import (
    clean_title,
    clean_word,
    is_word,
    split_word_list,
    strip_tags,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADING = r"NYT\s+Connections\s+Puzzle\s+Answers?"
STRATEGIES = ("html", "colors", "text")
COLORS = ("Yellow", "Green", "Blue", "Purple")

HEADING_TAG_RE = re.compile(r"<h([1-4])\b[^>]*>([\s\S]*?)</h\1\s*>", re.IGNORECASE)
SEPARATOR_RE = re.compile(r"[:–—-]")
# Lines from text renderers often carry markdown emphasis around titles
MARKDOWN_EDGES = "*_#> \t"
TEXT_WORDS_WINDOW = 3
COLOR_SIBLING_WINDOW = 6
MAX_HEADER_TEXT = 200
BLOCK_TAGS = ["h1", "h2", "h3", "h4", "p", "li", "ul", "ol", "div", "section", "article"]
HEADER_TAGS = ["h1", "h2", "h3", "h4", "strong", "b", "p", "li", "div", "section", "article"]


@dataclass
class Section:
    label: str
    markup: str


def _heading_re(heading: str) -> re.Pattern:
    return re.compile(heading, re.IGNORECASE)


def _text(el: Tag) -> str:
    return " ".join(el.get_text(" ").split())


def find_answer_sections(markup: str, heading: str = DEFAULT_HEADING) -> List[Section]:
    """
    Split a page into answer sections.

    Every <h1>-<h4> whose text matches ``heading`` starts a section that ends
    at the next matching heading or at the end of the document.

    Args:
        markup: Full HTML document
        heading: Regular expression for the heading text (case-insensitive)

    Returns:
        Sections in document order; empty if no heading matched
    """
    pattern = _heading_re(heading)
    marks = []
    for match in HEADING_TAG_RE.finditer(markup or ""):
        label = strip_tags(match.group(2))
        if pattern.search(label):
            marks.append((match.start(), match.end(), label))

    sections = []
    for i, (_, end, label) in enumerate(marks):
        stop = marks[i + 1][0] if i + 1 < len(marks) else len(markup)
        sections.append(Section(label=label, markup=markup[end:stop]))
    return sections


def _finish(categories: List[Category]) -> Optional[List[Category]]:
    try:
        validate_categories(categories)
    except ValueError as e:
        logger.debug(f"Rejected section: {e}")
        return None
    return categories


def parse_answer_block(block: Tag) -> Optional[Category]:
    """
    Parse one answer block: a title paragraph followed by the words.

    The second paragraph is read as a comma list; if that does not give four
    words, the following paragraphs are read as one word per line.

    Args:
        block: Element carrying the answer-text class

    Returns:
        Category, or None if the block does not hold a title and 4 words
    """
    paragraphs = [t for t in (_text(p) for p in block.find_all("p")) if t]
    if not paragraphs:
        return None

    title = clean_title(paragraphs[0])
    words = split_word_list(paragraphs[1]) if len(paragraphs) > 1 else []
    if len(words) != 4:
        lines = []
        for paragraph in paragraphs[1:]:
            word = clean_word(paragraph)
            if word:
                lines.append(word)
            if len(lines) == 4:
                break
        if len(lines) == 4:
            words = lines

    if not title or len(words) != 4:
        return None
    try:
        return Category.create(title, words)
    except ValueError:
        return None


def _is_answer_block(tag: Tag) -> bool:
    return tag.name in ("span", "div") and "answer-text" in (tag.get("class") or [])


def extract_strict(section_markup: str) -> Optional[List[Category]]:
    """Parse the first four answer-text blocks of a section."""
    soup = BeautifulSoup(section_markup, "html.parser")
    blocks = soup.find_all(_is_answer_block, limit=4)
    if len(blocks) != 4:
        return None
    categories = [parse_answer_block(b) for b in blocks]
    if any(c is None for c in categories):
        return None
    return _finish(categories)


def extract_loose(section_markup: str) -> Optional[List[Category]]:
    """
    Parse <p><strong>Title:</strong></p><p>A, B, C, D</p> pairs.

    The first four pairs found in the section are used.
    """
    soup = BeautifulSoup(section_markup, "html.parser")
    categories = []
    for p in soup.find_all("p"):
        label = p.find(["strong", "b"])
        if label is None or _text(label) != _text(p):
            continue
        following = p.find_next_sibling()
        if following is None or following.name != "p":
            continue
        title = clean_title(_text(label))
        words = split_word_list(_text(following))
        if not title or len(words) < 4:
            continue
        try:
            categories.append(Category.create(title, words[:4]))
        except ValueError:
            continue
        if len(categories) == 4:
            break
    return _finish(categories)


def _next_words_block(start: Tag) -> List[str]:
    current = start
    for _ in range(COLOR_SIBLING_WINDOW):
        current = current.find_next_sibling()
        if current is None:
            break
        items = [clean_word(_text(li)) for li in current.find_all("li")]
        items = [w for w in items if is_word(w)]
        if len(items) >= 4:
            return items[:4]
        words = split_word_list(_text(current))
        if len(words) >= 4:
            return words[:4]
    return []


def _find_color_header(nodes: List[Tag], color: str) -> Optional[Tag]:
    lowered = color.lower()
    for node in nodes:
        text = _text(node).lower()
        if lowered in text and (
            "answer" in text or "category" in text or "group" in text or SEPARATOR_RE.search(text)
        ):
            return node
    starts = re.compile(rf"^{color}\b", re.IGNORECASE)
    for node in nodes:
        if starts.search(_text(node)):
            return node
    return None


def extract_colors(markup: str) -> Optional[List[Category]]:
    """
    Parse pages that introduce each group by its colour.

    For each of Yellow, Green, Blue and Purple a short heading-like node names
    the colour (e.g. "Yellow: Kinds of fish"), and the words follow in the
    next list or comma separated paragraph. Without a title after the colour,
    the colour name is used as the title.
    """
    soup = BeautifulSoup(markup, "html.parser")
    # Containers wrapping several groups would match every colour
    nodes = [
        n for n in soup.find_all(HEADER_TAGS)
        if len(_text(n)) <= MAX_HEADER_TEXT and n.find(BLOCK_TAGS) is None
    ]

    categories = []
    for color in COLORS:
        header = _find_color_header(nodes, color)
        if header is None:
            continue
        same_line = re.search(
            rf"{color}\s*(?:answer|category|group)?\s*[:–—-]\s*([^:–—-]{{2,100}})",
            _text(header),
            re.IGNORECASE,
        )
        title = clean_title(same_line.group(1)) if same_line else ""

        words = _next_words_block(header)
        if not words and header.name in ("strong", "b") and header.parent is not None:
            words = _next_words_block(header.parent)
        if len(words) != 4:
            continue
        try:
            categories.append(Category.create(title or color, words))
        except ValueError:
            continue
    return _finish(categories)


def _plain_line(line: str) -> str:
    return line.strip().strip(MARKDOWN_EDGES).strip()


def extract_text_lines(text: str) -> Optional[List[Category]]:
    """
    Parse pre-stripped text: a "Title:" line followed, within a few lines,
    by a comma separated list of at least four words.
    """
    lines = [_plain_line(line) for line in (text or "").splitlines()]
    lines = [line for line in lines if line]

    categories = []
    i = 0
    while i < len(lines) and len(categories) < 4:
        line = lines[i]
        if not line.endswith(":"):
            i += 1
            continue
        title = clean_title(line)
        found = None
        for j in range(i + 1, min(i + 1 + TEXT_WORDS_WINDOW, len(lines))):
            if "," not in lines[j]:
                continue
            words = split_word_list(lines[j])
            if len(words) >= 4:
                found = (j, words[:4])
                break
        if found and title:
            try:
                categories.append(Category.create(title, found[1]))
                i = found[0] + 1
                continue
            except ValueError:
                pass
        i += 1
    return _finish(categories)


def find_text_sections(text: str, heading: str = DEFAULT_HEADING) -> List[Section]:
    """Split plain text at lines matching the heading; the whole text if none do."""
    pattern = _heading_re(heading)
    sections = []
    current = None
    for line in (text or "").splitlines():
        if pattern.search(line):
            current = Section(label=_plain_line(line), markup="")
            sections.append(current)
        elif current is not None:
            current.markup += line + "\n"
    if not sections:
        return [Section(label="", markup=text or "")]
    return sections


def parse_section(section_markup: str) -> Optional[List[Category]]:
    """Strict extraction first, then the loose paragraph-pair fallback."""
    return extract_strict(section_markup) or extract_loose(section_markup)


def parse_document(content: str, strategy: str = "html", heading: str = DEFAULT_HEADING) -> List[Candidate]:
    """
    Parse a fetched document into candidate answer sections.

    Args:
        content: Page markup, or plain text for the "text" strategy
        strategy: One of "html", "colors" or "text"
        heading: Regular expression for section headings

    Returns:
        Candidates in document order (sections that failed to parse are left out)

    Raises:
        ValueError: If the strategy is unknown
    """
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown parse strategy: {strategy}")

    candidates = []
    if strategy == "colors":
        categories = extract_colors(content)
        if categories:
            text = strip_tags(content)
            candidates.append(Candidate(categories=categories, text=text, date=extract_date_from_text(text)))
        return candidates

    if strategy == "text":
        sections = find_text_sections(content, heading)
        for index, section in enumerate(sections):
            categories = extract_text_lines(section.markup)
            if categories:
                text = f"{section.label}\n{section.markup}".strip()
                candidates.append(Candidate(
                    categories=categories,
                    text=text,
                    date=extract_date_from_text(text),
                    label=section.label,
                    index=index,
                ))
        return candidates

    for index, section in enumerate(find_answer_sections(content, heading)):
        categories = parse_section(section.markup)
        if not categories:
            logger.debug(f"Section {index} ('{section.label}') did not parse")
            continue
        # Headings often carry the date ("... Answer for September 20, 2025")
        text = f"{section.label} {strip_tags(section.markup)}".strip()
        candidates.append(Candidate(
            categories=categories,
            text=text,
            date=extract_date_from_text(text),
            label=section.label,
            index=index,
        ))
    return candidates
