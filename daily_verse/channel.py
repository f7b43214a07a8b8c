"""
Request/response boundary between the verse backend and its display.

Every request_verse() call produces exactly one event: VerseReady on success
or VerseFailed on any error. Errors never reach the caller as exceptions.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from .errors import CollaboratorUnavailableError
from .selector import day_of_year, select_verse


@dataclass(frozen=True)
class VerseReady:
    text: str
    reference: str


@dataclass(frozen=True)
class VerseFailed:
    message: str


VerseEvent = Union[VerseReady, VerseFailed]


class ResultChannel:
    """
    Selects today's verse and reports the outcome to a single consumer.

    Parameters
    ----------
    provider:
        Anything with a ``lists`` mapping of Volume to verse entries
        (normally a VerseListProvider).
    on_result:
        Called with one VerseReady or VerseFailed per request.
    text_client:
        Optional ScriptureTextClient used for entries stored without text.
    clock:
        Returns "now"; defaults to local time.
    """

    def __init__(
        self,
        provider,
        on_result: Callable[[VerseEvent], None],
        text_client=None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._provider = provider
        self._on_result = on_result
        self._text_client = text_client
        self._clock = clock or datetime.now

    def _resolve(self, now: datetime) -> VerseReady:
        entry = select_verse(now, self._provider.lists)
        print(f"[channel] Day {day_of_year(now)}: selected {entry.reference}")

        text = entry.text
        if not text:
            if self._text_client is None:
                raise CollaboratorUnavailableError(
                    f"No text stored for {entry.reference} and no scripture API configured"
                )
            text = self._text_client.fetch_text(entry.reference)

        return VerseReady(text=text, reference=entry.reference)

    def request_verse(self, now: Optional[datetime] = None) -> VerseEvent:
        """Select the verse for *now* (default: the clock) and emit the outcome."""
        now = now or self._clock()
        try:
            event: VerseEvent = self._resolve(now)
        except Exception as e:
            print(f"[channel] Error getting verse: {e}")
            event = VerseFailed(message=str(e) or type(e).__name__)

        self._on_result(event)
        return event
