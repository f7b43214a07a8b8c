"""
Display state for the verse widget.

Exactly one of three modes is shown: loading, error, or the loaded verse.
An error does not clear the last verse text; only a new success replaces it.
"""
import threading
from datetime import datetime
from typing import Callable, Dict, Optional

from .channel import VerseEvent, VerseFailed, VerseReady

LOADING_MESSAGE = "Loading verse..."
ERROR_MESSAGE = "Unable to load scripture verse"


class DisplayState:
    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._clock = clock or datetime.now
        self.is_loading = True
        self.has_error = False
        self.verse_text: Optional[str] = None
        self.verse_reference: Optional[str] = None
        self.last_update: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self._lock = threading.Lock()

    def apply(self, event: VerseEvent, now: Optional[datetime] = None) -> None:
        """Update from a ResultChannel event."""
        with self._lock:
            if isinstance(event, VerseReady):
                self.verse_text = event.text
                self.verse_reference = event.reference
                self.is_loading = False
                self.has_error = False
                self.last_error = None
                self.last_update = now or self._clock()
                print(f"[display] Verse loaded: {event.reference}")
            elif isinstance(event, VerseFailed):
                self.is_loading = False
                self.has_error = True
                self.last_error = event.message or "Unknown error"
                print(f"[display] Error loading verse: {self.last_error}")
            else:
                raise TypeError(f"Unknown verse event: {event!r}")

    def is_new_day(self, now: Optional[datetime] = None) -> bool:
        """True if the calendar day has changed since the last successful update."""
        if self.last_update is None:
            return True
        now = now or self._clock()
        return now.date() != self.last_update.date()

    def render(self) -> str:
        """Text shown on the widget for the current mode."""
        with self._lock:
            if self.is_loading:
                return LOADING_MESSAGE
            if self.has_error:
                return ERROR_MESSAGE
            if self.verse_text and self.verse_reference:
                return f"{self.verse_text}\n{self.verse_reference}"
            return LOADING_MESSAGE

    def to_dict(self) -> Dict:
        with self._lock:
            return {
                "isLoading": self.is_loading,
                "hasError": self.has_error,
                "verseText": self.verse_text,
                "verseReference": self.verse_reference,
                "lastUpdate": self.last_update.isoformat() if self.last_update else None,
            }

    def needs_refresh(self, now: Optional[datetime] = None) -> bool:
        """
        True when a verse from an earlier day is on screen.

        Loading and error states are left to the scheduler, which retries on
        its own timetable.
        """
        return not self.is_loading and not self.has_error and self.is_new_day(now)
