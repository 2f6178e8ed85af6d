import pytest
import requests

from conftest import GROUPS_A, GROUPS_B, page, snapshot, strict_section, words_of
from connections_archive.config import FetchConfig, RetryPolicy, Source
from connections_archive.models import PreviousSnapshot
from connections_archive.orchestrator import FetchOrchestrator, SourcesUnreachable


class FakeSources:
    """Serves queued responses per source name; exceptions are raised."""

    def __init__(self, responses):
        self.responses = {name: list(items) for name, items in responses.items()}
        self.calls = []

    def __call__(self, source):
        self.calls.append(source.name)
        item = self.responses[source.name].pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def make_config(names=("MAIN", "AMP"), delay=5.0, max_passes=2):
    return FetchConfig(
        sources=[Source(name, f"https://example.test/{name.lower()}/") for name in names],
        retry=RetryPolicy(max_passes=max_passes, delay=delay),
    )


def test_first_fresh_source_wins(page_b, previous_a):
    fake = FakeSources({"MAIN": [page_b], "AMP": [page_b]})
    sleeps = []
    result = FetchOrchestrator(make_config(), previous_a, fetch=fake, sleep=sleeps.append).run()

    assert result.is_fresh
    assert result.source == "MAIN"
    assert result.pass_index == 0
    assert result.puzzle.date == "2025-09-20"
    assert result.puzzle.word_set == words_of(GROUPS_B)
    assert fake.calls == ["MAIN"]
    assert sleeps == []


def test_all_duplicates_is_stale(page_a, previous_a):
    fake = FakeSources({"MAIN": [page_a, page_a], "AMP": [page_a, page_a]})
    sleeps = []
    result = FetchOrchestrator(make_config(), previous_a, fetch=fake, sleep=sleeps.append).run()

    assert result.status == "stale"
    assert result.puzzle is None
    assert "No differing section found" in result.reason
    assert fake.calls == ["MAIN", "AMP", "MAIN", "AMP"]
    assert sleeps == [5.0]


def test_second_pass_finds_fresh_on_second_source(page_a, page_b, previous_a):
    fake = FakeSources({"MAIN": [page_a, page_a], "AMP": [page_a, page_b]})
    sleeps = []
    result = FetchOrchestrator(make_config(), previous_a, fetch=fake, sleep=sleeps.append).run()

    assert result.is_fresh
    assert result.source == "AMP"
    assert result.pass_index == 1
    assert result.puzzle.word_set == words_of(GROUPS_B)
    assert sleeps == [5.0]


def test_source_errors_do_not_abort(page_b, previous_a):
    fake = FakeSources({
        "MAIN": [requests.ConnectionError("connection refused")],
        "AMP": ["<html><body>maintenance</body></html>"],
        "TEXT": [page_b],
    })
    config = make_config(names=("MAIN", "AMP", "TEXT"))
    result = FetchOrchestrator(config, previous_a, fetch=fake, sleep=lambda s: None).run()

    assert result.is_fresh
    assert result.source == "TEXT"


def test_http_error_is_skipped(page_b, previous_a):
    fake = FakeSources({"MAIN": [requests.HTTPError("503 Server Error")], "AMP": [page_b]})
    result = FetchOrchestrator(make_config(), previous_a, fetch=fake, sleep=lambda s: None).run()
    assert result.source == "AMP"


def test_unreachable_everywhere_is_fatal(previous_a):
    error = requests.ConnectionError("dns failure")
    fake = FakeSources({"MAIN": [error, error], "AMP": [error, error]})
    with pytest.raises(SourcesUnreachable):
        FetchOrchestrator(make_config(delay=0), previous_a, fetch=fake, sleep=lambda s: None).run()


def test_explicit_date_in_section_is_used(previous_a):
    markup = page(strict_section(GROUPS_B, intro="Answers for September 25, 2025"))
    fake = FakeSources({"MAIN": [markup]})
    result = FetchOrchestrator(make_config(names=("MAIN",)), previous_a, fetch=fake).run()
    assert result.puzzle.date == "2025-09-25"


def test_prefers_dated_today_section_over_history(previous_a):
    groups_c = [(t + "S", [w + "X" for w in words]) for t, words in GROUPS_B]
    markup = page(
        strict_section(groups_c, intro="From the archive"),
        strict_section(GROUPS_B, intro="Today, September 20, 2025"),
    )
    fake = FakeSources({"MAIN": [markup]})
    result = FetchOrchestrator(make_config(names=("MAIN",)), previous_a, fetch=fake).run()
    assert result.puzzle.word_set == words_of(GROUPS_B)
    assert result.puzzle.date == "2025-09-20"


def test_empty_archive_uses_today(page_b):
    fake = FakeSources({"MAIN": [page_b]})
    orchestrator = FetchOrchestrator(
        make_config(names=("MAIN",)), PreviousSnapshot(), fetch=fake, today="2025-10-01"
    )
    assert orchestrator.run().puzzle.date == "2025-10-01"


def test_history_snapshots_count_as_known(page_a, page_b):
    previous = snapshot(GROUPS_B, date="2025-09-20")
    previous.known.append(words_of(GROUPS_A))
    fake = FakeSources({"MAIN": [page_a]})
    config = make_config(names=("MAIN",), max_passes=1)
    result = FetchOrchestrator(config, previous, fetch=fake).run()
    assert result.status == "stale"


def test_snapshot_without_known_list_still_detects_duplicate(page_a):
    previous = PreviousSnapshot(date="2025-09-19", word_set=words_of(GROUPS_A))
    fake = FakeSources({"MAIN": [page_a]})
    config = make_config(names=("MAIN",), max_passes=1)
    result = FetchOrchestrator(config, previous, fetch=fake).run()
    assert result.status == "stale"


def test_yesterday_section_below_archived_today_is_stale(previous_a):
    markup = page(
        strict_section(GROUPS_A, intro="Today, September 19, 2025"),
        strict_section(GROUPS_B, intro="Yesterday, September 18, 2025"),
    )
    fake = FakeSources({"MAIN": [markup]})
    config = make_config(names=("MAIN",), max_passes=1)
    result = FetchOrchestrator(config, previous_a, fetch=fake).run()
    assert result.status == "stale"


def test_section_dated_before_latest_archive_is_stale(previous_a):
    markup = page(strict_section(GROUPS_B, intro="Answers for September 12, 2025"))
    fake = FakeSources({"MAIN": [markup]})
    config = make_config(names=("MAIN",), max_passes=1)
    result = FetchOrchestrator(config, previous_a, fetch=fake).run()
    assert result.status == "stale"


def test_each_run_starts_unreached(page_a, previous_a):
    error = requests.ConnectionError("dns failure")
    fake = FakeSources({"MAIN": [page_a, error]})
    orchestrator = FetchOrchestrator(
        make_config(names=("MAIN",), max_passes=1), previous_a, fetch=fake
    )

    assert orchestrator.run().status == "stale"
    with pytest.raises(SourcesUnreachable):
        orchestrator.run()
