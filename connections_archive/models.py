"""
Connections Archive Data Model

Categories, puzzles and the intermediate results passed between the parser,
the freshness chooser and the orchestrator.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from connections_archive.text_utils import clean_title, clean_word, is_word, word_set

WORDS_PER_CATEGORY = 4
CATEGORIES_PER_PUZZLE = 4


@dataclass
class Category:
    title: str
    words: List[str]

    @classmethod
    def create(cls, title: str, words: List[str]) -> "Category":
        """
        Build a category from raw page text.

        Args:
            title: Raw group label
            words: Raw member words

        Returns:
            Category with cleaned title and words

        Raises:
            ValueError: If the title is empty or there are not exactly 4 valid words
        """
        cleaned_title = clean_title(title)
        cleaned_words = [clean_word(w) for w in words]
        if not cleaned_title:
            raise ValueError("Category title is empty")
        if len(cleaned_words) != WORDS_PER_CATEGORY or not all(is_word(w) for w in cleaned_words):
            raise ValueError(f"Expected {WORDS_PER_CATEGORY} words, got {cleaned_words}")
        return cls(title=cleaned_title, words=cleaned_words)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "words": list(self.words)}


def validate_categories(categories: List[Category]) -> None:
    """
    Check the puzzle-level invariants of a category list.

    Raises:
        ValueError: If there are not 4 categories of 4 words with 16 distinct words
    """
    if len(categories) != CATEGORIES_PER_PUZZLE:
        raise ValueError(f"Expected {CATEGORIES_PER_PUZZLE} categories, got {len(categories)}")
    for category in categories:
        if len(category.words) != WORDS_PER_CATEGORY:
            raise ValueError(f"Category '{category.title}' has {len(category.words)} words")
    expected = CATEGORIES_PER_PUZZLE * WORDS_PER_CATEGORY
    distinct = len(word_set(categories))
    if distinct != expected:
        raise ValueError(f"Expected {expected} distinct words, got {distinct}")


@dataclass
class Puzzle:
    date: str
    categories: List[Category]

    def validate(self) -> None:
        validate_categories(self.categories)

    @property
    def word_set(self) -> FrozenSet[str]:
        return word_set(self.categories)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "categories": [c.to_dict() for c in self.categories],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Puzzle":
        """
        Load a puzzle from its archive JSON form.

        Raises:
            ValueError: If required keys are missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Puzzle data is not a JSON object")
        categories = data.get("categories")
        if not isinstance(categories, list):
            raise ValueError("Puzzle data is missing 'categories'")
        parsed = []
        for item in categories:
            if not isinstance(item, dict):
                raise ValueError("Category entry is not a JSON object")
            parsed.append(Category.create(item.get("title", ""), item.get("words") or []))
        return cls(date=data.get("date") or "", categories=parsed)


@dataclass
class Candidate:
    """One parsed answer section from a source page."""

    categories: List[Category]
    text: str = ""
    date: Optional[str] = None
    label: str = ""
    index: int = 0

    @property
    def word_set(self) -> FrozenSet[str]:
        return word_set(self.categories)


@dataclass
class PreviousSnapshot:
    """What the archive knew before this run: latest date and known word sets."""

    date: Optional[str] = None
    word_set: Optional[FrozenSet[str]] = None
    known: List[FrozenSet[str]] = field(default_factory=list)

    def __post_init__(self):
        # The latest puzzle is always known
        if self.word_set and self.word_set not in self.known:
            self.known.insert(0, self.word_set)


@dataclass
class FetchResult:
    status: str
    puzzle: Optional[Puzzle] = None
    source: Optional[str] = None
    pass_index: Optional[int] = None
    reason: str = ""

    @property
    def is_fresh(self) -> bool:
        return self.status == "fresh"
