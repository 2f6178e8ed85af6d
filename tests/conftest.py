import pytest

from connections_archive.models import PreviousSnapshot

GROUPS_A = [
    ("ANIMALS", ["CAT", "DOG", "BIRD", "FISH"]),
    ("COLORS", ["RED", "BLUE", "GREEN", "PINK"]),
    ("FRUIT", ["APPLE", "PEAR", "PLUM", "KIWI"]),
    ("TOOLS", ["SAW", "DRILL", "HAMMER", "LEVEL"]),
]

GROUPS_B = [
    ("PLANETS", ["MARS", "VENUS", "EARTH", "SATURN"]),
    ("METALS", ["IRON", "GOLD", "TIN", "COPPER"]),
    ("SPORTS", ["GOLF", "TENNIS", "RUGBY", "POLO"]),
    ("DANCES", ["TANGO", "SALSA", "WALTZ", "RUMBA"]),
]


def strict_section(groups, intro="", heading="NYT Connections Puzzle Answer"):
    blocks = "".join(
        f'<div class="answer-box"><span class="answer-text">'
        f'<p>{title}:</p><p>{", ".join(words)}</p></span></div>'
        for title, words in groups
    )
    return f"<h2>{heading}</h2><p>{intro}</p>{blocks}"


def loose_section(groups, intro="", heading="NYT Connections Puzzle Answers"):
    pairs = "".join(
        f"<p><strong>{title}:</strong></p><p>{', '.join(words)}</p>"
        for title, words in groups
    )
    return f"<h2>{heading}</h2><p>{intro}</p>{pairs}"


def page(*sections, head=""):
    return (
        f"<html><head><title>Connections answers</title>{head}</head>"
        f"<body><h1>Today's hints</h1>{''.join(sections)}<footer>About us</footer></body></html>"
    )


def words_of(groups):
    return frozenset(w for _, words in groups for w in words)


def snapshot(groups, date="2025-09-19"):
    words = words_of(groups)
    return PreviousSnapshot(date=date, word_set=words, known=[words])


@pytest.fixture
def page_a():
    return page(strict_section(GROUPS_A))


@pytest.fixture
def page_b():
    return page(strict_section(GROUPS_B))


@pytest.fixture
def previous_a():
    return snapshot(GROUPS_A)


@pytest.fixture
def puzzle_dict_a():
    return {
        "date": "2025-09-19",
        "categories": [{"title": t, "words": list(w)} for t, w in GROUPS_A],
    }
