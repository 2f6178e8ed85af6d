"""
Connections Archive Configuration

Sources, retry policy and archive location. Values come from defaults and
can be overridden through environment variables (a .env file is loaded by
the command line entry point).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from connections_archive.parser import DEFAULT_HEADING, STRATEGIES

MAIN_URL = "https://capitalizemytitle.com/todays-nyt-connections-answers/"
AMP_URL = "https://capitalizemytitle.com/todays-nyt-connections-answers/amp/"
TEXT_PROXY = "https://r.jina.ai/"

DEFAULT_ARCHIVE_DIR = "puzzles"
DEFAULT_RETRY_DELAY = 8.0
DEFAULT_MAX_PASSES = 2
DEFAULT_TIMEOUT = 20.0


@dataclass
class Source:
    name: str
    url: str
    strategy: str = "html"
    render: bool = False

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Source {self.name}: unknown strategy '{self.strategy}'")


@dataclass
class RetryPolicy:
    """How many passes over the sources to make and how long to wait between them."""

    max_passes: int = DEFAULT_MAX_PASSES
    delay: float = DEFAULT_RETRY_DELAY

    def __post_init__(self):
        if self.max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {self.max_passes}")
        if self.delay < 0:
            raise ValueError(f"delay must not be negative, got {self.delay}")


def default_sources() -> List[Source]:
    return [
        Source("MAIN", MAIN_URL),
        Source("AMP", AMP_URL),
        Source("TEXT", TEXT_PROXY + MAIN_URL, strategy="text"),
    ]


@dataclass
class FetchConfig:
    sources: List[Source] = field(default_factory=default_sources)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    archive_dir: Path = Path(DEFAULT_ARCHIVE_DIR)
    history: Optional[int] = None
    timeout: float = DEFAULT_TIMEOUT
    heading: str = DEFAULT_HEADING


def parse_sources(value: str) -> List[Source]:
    """
    Parse a source list such as "MAIN=https://a/,CU=https://b/|colors|render".

    Args:
        value: Comma separated name=url[|strategy[|render]] entries

    Returns:
        Sources in the given order

    Raises:
        ValueError: If an entry is malformed
    """
    sources = []
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        name, sep, rest = entry.partition("=")
        if not sep or not name.strip() or not rest.strip():
            raise ValueError(f"Invalid source entry: '{entry}' (expected name=url)")
        parts = [p.strip() for p in rest.split("|")]
        strategy = parts[1] if len(parts) > 1 and parts[1] else "html"
        render = len(parts) > 2 and parts[2].lower() in ("render", "true", "1", "yes")
        sources.append(Source(name.strip(), parts[0], strategy=strategy, render=render))
    if not sources:
        raise ValueError("No sources configured")
    return sources


def _number(env: Dict[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {key}: '{raw}'")


def load_config(env: Optional[Dict[str, str]] = None) -> FetchConfig:
    """
    Build the configuration from environment variables.

    Recognised variables: CONNECTIONS_ARCHIVE_DIR, CONNECTIONS_SOURCES,
    CONNECTIONS_RETRY_DELAY, CONNECTIONS_MAX_PASSES, CONNECTIONS_HISTORY,
    CONNECTIONS_TIMEOUT.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Returns:
        FetchConfig

    Raises:
        ValueError: If a variable holds an invalid value
    """
    env = os.environ if env is None else env

    sources_value = env.get("CONNECTIONS_SOURCES")
    sources = parse_sources(sources_value) if sources_value else default_sources()

    retry = RetryPolicy(
        max_passes=_number(env, "CONNECTIONS_MAX_PASSES", DEFAULT_MAX_PASSES, int),
        delay=_number(env, "CONNECTIONS_RETRY_DELAY", DEFAULT_RETRY_DELAY, float),
    )
    # Unset means every archived puzzle counts as known
    history = _number(env, "CONNECTIONS_HISTORY", None, int)
    if history is not None and history < 1:
        raise ValueError(f"CONNECTIONS_HISTORY must be at least 1, got {history}")

    return FetchConfig(
        sources=sources,
        retry=retry,
        archive_dir=Path(env.get("CONNECTIONS_ARCHIVE_DIR") or DEFAULT_ARCHIVE_DIR),
        history=history,
        timeout=_number(env, "CONNECTIONS_TIMEOUT", DEFAULT_TIMEOUT, float),
    )
