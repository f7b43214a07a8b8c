"""
JSON storage for the four volume verse lists.

The lists are loaded once on startup into a VerseListProvider and are
read-only afterwards. Each file under ``verses/`` holds a JSON array whose
items are either a bare reference string or ``{"reference", "text"}``.
"""

import json
import os
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import CollaboratorUnavailableError
from .references import is_valid_reference
from .selector import ROTATION, Volume, VerseEntry

VERSES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "verses")


def _read_json_list(path: str) -> Optional[list]:
    """Return the JSON array stored at *path*, or None if it can't be used."""
    if not os.path.exists(path):
        print(f"[storage] Verse list file not found: {path}")
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except Exception as e:
        print(f"[storage] Error loading {os.path.basename(path)}: {e}")
        return None

    if not isinstance(data, list):
        print(f"[storage] Invalid format: {os.path.basename(path)} is not an array")
        return None
    return data


def build_entries(raw_items: list) -> Tuple[List[VerseEntry], int]:
    """
    Convert raw list items into entries, keeping the first of any duplicates.

    Returns the entries and the number of items that were skipped.
    """
    entries: List[VerseEntry] = []
    seen = set()
    skipped = 0
    for item in raw_items:
        try:
            entry = VerseEntry.from_raw(item)
        except ValueError:
            skipped += 1
            continue
        if entry.reference in seen:
            skipped += 1
            continue
        seen.add(entry.reference)
        entries.append(entry)
    return entries, skipped


class VerseListProvider:
    """Owns the four pre-loaded verse lists, one per volume."""

    def __init__(self, verses_dir: str = VERSES_DIR) -> None:
        self.verses_dir = verses_dir
        self._lists: Optional[Mapping[Volume, Tuple[VerseEntry, ...]]] = None

    def load(self) -> None:
        """
        Read every volume file into memory.

        A missing or broken file leaves that volume empty; loading itself
        never fails.
        """
        loaded: Dict[Volume, Tuple[VerseEntry, ...]] = {}
        for volume in ROTATION:
            path = os.path.join(self.verses_dir, volume.filename)
            raw = _read_json_list(path)
            if raw is None:
                loaded[volume] = ()
                continue

            entries, skipped = build_entries(raw)
            loaded[volume] = tuple(entries)
            print(f"[storage] Loaded {len(entries)} verses from {volume.filename}")
            if skipped:
                print(f"[storage] Skipped {skipped} invalid or duplicate item(s) in {volume.filename}")

            odd = sum(1 for e in entries if not is_valid_reference(e.reference))
            if odd:
                print(f"[storage] Warning: {odd} reference(s) in {volume.filename} "
                      f"don't match '<Book> <Chapter>:<Verse>'")

        self._lists = MappingProxyType(loaded)

    @property
    def loaded(self) -> bool:
        return self._lists is not None

    @property
    def lists(self) -> Mapping[Volume, Tuple[VerseEntry, ...]]:
        """Read-only view of the loaded lists."""
        if self._lists is None:
            raise CollaboratorUnavailableError("Verse lists have not been loaded")
        return self._lists

    def counts(self) -> Dict[Volume, int]:
        """Return the number of verses loaded per volume."""
        return {volume: len(entries) for volume, entries in self.lists.items()}
