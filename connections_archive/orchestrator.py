"""
Fetch Orchestrator

Walks the configured sources in priority order, up to the configured number
of passes with a delay between them, and returns the first answer set that
is not already archived.
"""

import logging
import time
from typing import Callable, Optional

import requests

from connections_archive.config import FetchConfig, Source
from connections_archive.dates import infer_date
from connections_archive.fetcher import fetch_source
from connections_archive.freshness import choose_fresh, same_words
from connections_archive.models import FetchResult, PreviousSnapshot, Puzzle
from connections_archive.parser import parse_document

logger = logging.getLogger(__name__)

STALE_REASON = "No differing section found"


class SourcesUnreachable(Exception):
    """Raised when not a single source could be fetched in any pass."""


class FetchOrchestrator:
    """
    Two-pass (by default) search for a fresh puzzle across sources.

    Args:
        config: Sources, retry policy and parsing settings
        previous: What the archive already holds
        fetch: Callable taking a Source and returning its content; defaults
            to an HTTP fetch (or a browser render for render=True sources)
        sleep: Called with the retry delay between passes
        today: Override for the current UTC date used by date inference
    """

    def __init__(
        self,
        config: FetchConfig,
        previous: Optional[PreviousSnapshot] = None,
        fetch: Optional[Callable[[Source], str]] = None,
        sleep: Callable[[float], None] = time.sleep,
        today: Optional[str] = None,
    ):
        self.config = config
        self.previous = previous or PreviousSnapshot()
        self.fetch = fetch or self._fetch_http
        self.sleep = sleep
        self.today = today
        self._session = None
        self._reached = False

    def _fetch_http(self, source: Source) -> str:
        if self._session is None:
            self._session = requests.Session()
        return fetch_source(source, session=self._session, timeout=self.config.timeout)

    def _try_source(self, source: Source, pass_index: int) -> Optional[FetchResult]:
        tag = f"{source.name} (pass {pass_index})"
        try:
            content = self.fetch(source)
        except Exception as e:
            logger.info(f"[skip] {tag}: {e}")
            return None
        self._reached = True

        try:
            candidates = parse_document(content, source.strategy, self.config.heading)
        except Exception as e:
            logger.info(f"[skip] {tag}: parse error: {e}")
            return None

        if not candidates:
            logger.info(f"[skip] {tag}: no parsable answer sections")
            return None

        chosen = choose_fresh(candidates, self.previous.known, previous_date=self.previous.date)
        if chosen is None:
            logger.info(f"[stale] {tag}: all {len(candidates)} section(s) match or predate archived puzzles")
            return None

        if same_words(chosen.word_set, self.previous.word_set):
            logger.info(f"[stale] {tag}: section {chosen.index} matches the latest archived puzzle")
            return None
        date = infer_date(chosen.text, content, True, self.previous.date, today=self.today)
        if self.previous.date and date < self.previous.date:
            logger.info(f"[stale] {tag}: section {chosen.index} is dated {date}, before {self.previous.date}")
            return None
        puzzle = Puzzle(date=date, categories=chosen.categories)
        try:
            puzzle.validate()
        except ValueError as e:
            logger.info(f"[skip] {tag}: {e}")
            return None

        logger.info(f"[fresh] {tag}: section {chosen.index} ('{chosen.label}')")
        logger.info(f"[source] {source.name}")
        logger.info(f"[date]   {puzzle.date}")
        logger.info(f"[titles] {' | '.join(c.title for c in puzzle.categories)}")
        return FetchResult(status="fresh", puzzle=puzzle, source=source.name, pass_index=pass_index)

    def run(self) -> FetchResult:
        """
        Search all sources for a fresh puzzle.

        Returns:
            FetchResult with status "fresh" and the puzzle, or status "stale"
            when every pass came up with only archived or unparsable content

        Raises:
            SourcesUnreachable: If no source could be fetched at all
        """
        self._reached = False
        retry = self.config.retry
        for pass_index in range(retry.max_passes):
            for source in self.config.sources:
                result = self._try_source(source, pass_index)
                if result is not None:
                    return result
            if pass_index + 1 < retry.max_passes:
                logger.info(f"[info] all sources looked stale; waiting {retry.delay:g}s then retrying...")
                self.sleep(retry.delay)

        if not self._reached:
            raise SourcesUnreachable(
                f"None of {len(self.config.sources)} source(s) could be fetched in {retry.max_passes} pass(es)"
            )
        return FetchResult(
            status="stale",
            reason=f"{STALE_REASON} after {retry.max_passes} pass(es) over {len(self.config.sources)} source(s)",
        )
