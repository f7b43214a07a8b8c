"""
Day-to-verse selection.

Every calendar day maps to exactly one verse:

    day of year (1-366)  ->  volume  (4-day cycle: Bible, Book of Mormon,
                                      Doctrine and Covenants, Pearl of Great Price)
                         ->  index into that volume's verse list

Nothing here does I/O or keeps state, so the same date and the same lists
always give the same verse.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Mapping, Sequence, Union

from .errors import EmptyVolumeError


class Volume(Enum):
    """The four standard works, in rotation order."""

    BIBLE = ("bible", "Bible", "bible.json")
    BOOK_OF_MORMON = ("bookOfMormon", "Book of Mormon", "book-of-mormon.json")
    DOCTRINE_AND_COVENANTS = (
        "doctrineAndCovenants",
        "Doctrine and Covenants",
        "doctrine-and-covenants.json",
    )
    PEARL_OF_GREAT_PRICE = (
        "pearlOfGreatPrice",
        "Pearl of Great Price",
        "pearl-of-great-price.json",
    )

    def __init__(self, key: str, display_name: str, filename: str):
        self.key = key
        self.display_name = display_name
        self.filename = filename

    @property
    def index(self) -> int:
        return ROTATION.index(self)


ROTATION = tuple(Volume)


@dataclass(frozen=True)
class VerseEntry:
    """One verse in a volume list; identified by its reference alone."""

    reference: str
    text: str = field(default="", compare=False)

    @classmethod
    def from_raw(cls, item) -> "VerseEntry":
        """
        Build an entry from a list item as stored on disk.

        Accepts a bare reference string or ``{"reference": ..., "text": ...}``.
        Raises ValueError for anything else.
        """
        if isinstance(item, str):
            reference, text = item, ""
        elif isinstance(item, dict) and isinstance(item.get("reference"), str):
            reference, text = item["reference"], item.get("text") or ""
        else:
            raise ValueError(f"Unrecognised verse entry: {item!r}")

        reference = reference.strip()
        if not reference:
            raise ValueError("Verse entry has an empty reference")
        return cls(reference=reference, text=str(text).strip())


VerseLists = Mapping[Volume, Sequence[VerseEntry]]


def day_of_year(day: Union[date, datetime]) -> int:
    """Return the 1-based day number within *day*'s own year (1-366)."""
    return day.timetuple().tm_yday


def volume_for_day(doy: int) -> Volume:
    """Day 1 is Bible, day 2 Book of Mormon, ..., day 5 Bible again."""
    return ROTATION[(doy - 1) % len(ROTATION)]


def verse_index_for_day(doy: int, length: int, volume_index: int = 0) -> int:
    """
    Index into a volume list of *length* entries for day *doy*.

    A volume comes round once every four days; each time it does, the index
    moves on by one, so back-to-back showings of a volume never repeat a verse
    unless the list has a single entry. Each volume also starts a quarter of
    the list further along than the one before it.
    """
    if length <= 0:
        raise ValueError("length must be positive")
    cycle = (doy - 1) // len(ROTATION)
    offset = (length // len(ROTATION)) * volume_index
    return (cycle + offset) % length


def select_verse(day, lists: VerseLists) -> VerseEntry:
    """
    Pick the verse for *day* from the four volume *lists*.

    Raises EmptyVolumeError if the day's volume has no entries (a volume
    missing from *lists* counts as empty).
    """
    doy = day_of_year(day)
    volume = volume_for_day(doy)
    entries = lists.get(volume) or ()
    if len(entries) == 0:
        raise EmptyVolumeError(volume)

    return entries[verse_index_for_day(doy, len(entries), volume.index)]
