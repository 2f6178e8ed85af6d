"""
Puzzle Archive

Reads the previously saved puzzle(s) and writes new ones as
<date>.json, latest.json and manifest.json.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Union

from connections_archive.models import PreviousSnapshot, Puzzle
from connections_archive.text_utils import clean_word

logger = logging.getLogger(__name__)

LATEST_FILE = "latest.json"
MANIFEST_FILE = "manifest.json"

PathLike = Union[str, Path]


def _read_json(path: Path) -> Optional[Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug(f"{path} does not exist")
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not read {path}: {e}")
    return None


def _write_json(path: Path, data: Any) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")


def _words_of(data: Any) -> Optional[FrozenSet[str]]:
    # Archived files are compared as stored, only re-cleaned
    if not isinstance(data, dict) or not isinstance(data.get('categories'), list):
        return None
    words = set()
    for category in data['categories']:
        if not isinstance(category, dict):
            continue
        for word in category.get('words') or []:
            if isinstance(word, str) and clean_word(word):
                words.add(clean_word(word))
    return frozenset(words) or None


def load_manifest(directory: PathLike) -> List[str]:
    data = _read_json(Path(directory) / MANIFEST_FILE)
    if not isinstance(data, list):
        return []
    return [d for d in data if isinstance(d, str)]


def update_manifest(manifest: List[str], date: str) -> List[str]:
    """Add a date to the manifest, keeping it unique and sorted newest first."""
    return sorted(set(manifest) | {date}, reverse=True)


def load_previous(directory: PathLike, history: Optional[int] = None) -> PreviousSnapshot:
    """
    Read what the archive already holds.

    Args:
        directory: Archive directory
        history: How many archived puzzles to treat as known (latest first);
            None means every puzzle listed in the manifest

    Returns:
        PreviousSnapshot; empty when the archive does not exist yet
    """
    directory = Path(directory)
    latest = _read_json(directory / LATEST_FILE)

    snapshot = PreviousSnapshot()
    if isinstance(latest, dict):
        snapshot.date = latest.get('date') or None
        snapshot.word_set = _words_of(latest)
    if snapshot.word_set:
        snapshot.known.append(snapshot.word_set)

    for date in load_manifest(directory):
        if history is not None and len(snapshot.known) >= history:
            break
        if date == snapshot.date:
            continue
        words = _words_of(_read_json(directory / f"{date}.json"))
        if words:
            snapshot.known.append(words)

    logger.debug(f"Previous snapshot: date={snapshot.date}, known puzzles={len(snapshot.known)}")
    return snapshot


def write_puzzle(directory: PathLike, puzzle: Puzzle) -> Dict[str, Optional[Path]]:
    """
    Save a puzzle to the archive.

    latest.json is only replaced when the puzzle is at least as recent as the
    one it holds, so backfilling an older date never rolls it back.

    Args:
        directory: Archive directory (created if missing)
        puzzle: Validated puzzle to store

    Returns:
        Paths of the dated file, latest.json (None when left untouched) and
        manifest.json

    Raises:
        ValueError: If the puzzle breaks the 4x4 / 16 distinct words invariant
        OSError: If the archive cannot be written
    """
    puzzle.validate()
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    data = puzzle.to_dict()
    dated_path = directory / f"{puzzle.date}.json"
    latest_path = directory / LATEST_FILE
    manifest_path = directory / MANIFEST_FILE

    current = _read_json(latest_path)
    current_date = current.get('date') if isinstance(current, dict) else None

    _write_json(dated_path, data)
    if isinstance(current_date, str) and current_date > puzzle.date:
        logger.warning(f"Not replacing {LATEST_FILE} ({current_date}) with older puzzle {puzzle.date}")
        latest_path = None
    else:
        _write_json(latest_path, data)
    _write_json(manifest_path, update_manifest(load_manifest(directory), puzzle.date))

    return {'dated': dated_path, 'latest': latest_path, 'manifest': manifest_path}
