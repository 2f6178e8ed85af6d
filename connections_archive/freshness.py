"""
Freshness Chooser

Picks the one parsed section, if any, that holds an answer set the archive
has not seen yet.
"""

import logging
from typing import FrozenSet, Iterable, List, Optional

from connections_archive.models import Candidate

logger = logging.getLogger(__name__)


def same_words(words: Optional[FrozenSet[str]], known: Optional[FrozenSet[str]]) -> bool:
    """
    Order-insensitive comparison of two word sets.

    Missing sets never match, so a first run with an empty archive treats
    everything as new.
    """
    if not words or not known:
        return False
    return len(words) == len(known) and words == known


def is_duplicate(candidate: Candidate, known: Iterable[FrozenSet[str]]) -> bool:
    words = candidate.word_set
    return any(same_words(words, k) for k in known)


def choose_fresh(
    candidates: List[Candidate],
    known: Iterable[FrozenSet[str]],
    previous_date: Optional[str] = None,
) -> Optional[Candidate]:
    """
    Choose the freshest non-duplicate candidate.

    Candidates whose words match any known snapshot are discarded. So are
    dated candidates older than the archive's latest date or older than a
    dated duplicate on the same page: those are history sections. Of the
    rest, the one with the most recent explicit date wins; without dates the
    first in document order wins.

    Args:
        candidates: Parsed sections in document order
        known: Word sets already in the archive
        previous_date: Date of the latest archived puzzle, if any

    Returns:
        The chosen candidate, or None when everything is stale
    """
    known = [k for k in known if k]
    floor = previous_date
    fresh = []
    for candidate in candidates:
        if is_duplicate(candidate, known):
            logger.debug(f"Section {candidate.index} ('{candidate.label}') matches an archived puzzle")
            if candidate.date and (floor is None or candidate.date > floor):
                floor = candidate.date
            continue
        fresh.append(candidate)

    if floor:
        older = [c for c in fresh if c.date and c.date < floor]
        for candidate in older:
            logger.debug(f"Section {candidate.index} ('{candidate.label}') is dated {candidate.date}, before {floor}")
        fresh = [c for c in fresh if not (c.date and c.date < floor)]

    if not fresh:
        return None

    dated = [c for c in fresh if c.date]
    if dated:
        # ISO dates sort lexically; ties keep document order
        return max(dated, key=lambda c: (c.date, -c.index))
    return min(fresh, key=lambda c: c.index)
