"""
Parsing for verse references such as ``"1 Nephi 3:7"`` or ``"D&C 88:118-119"``.
"""
import re
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidReferenceError

# Book may contain spaces, digits and punctuation ("1 Nephi", "D&C",
# "Joseph Smith--History"); chapter and verse are plain integers.
REFERENCE_PATTERN = re.compile(r"^(.+?)\s+(\d+):(\d+)(?:-(\d+))?$")


@dataclass(frozen=True)
class VerseReference:
    book: str
    chapter: int
    verse: int
    end_verse: Optional[int] = None

    def __str__(self) -> str:
        text = f"{self.book} {self.chapter}:{self.verse}"
        if self.end_verse is not None:
            text += f"-{self.end_verse}"
        return text


def parse_verse_reference(reference: str) -> VerseReference:
    """Split a reference string into book, chapter, verse and optional end verse."""
    match = REFERENCE_PATTERN.match(reference.strip()) if reference else None
    if not match:
        raise InvalidReferenceError(f"Invalid verse reference format: {reference!r}")

    return VerseReference(
        book=match.group(1).strip(),
        chapter=int(match.group(2)),
        verse=int(match.group(3)),
        end_verse=int(match.group(4)) if match.group(4) else None,
    )


def is_valid_reference(reference: str) -> bool:
    """Return True if *reference* follows the shared reference format."""
    try:
        parse_verse_reference(reference)
        return True
    except InvalidReferenceError:
        return False
