"""
API client for fetching verse text from an Open Scripture style API.

Only used for list entries stored without text. Each fetch is bounded by a
request timeout and a fixed number of attempts; when they run out the caller
gets a single CollaboratorUnavailableError.
"""
import time
from typing import Callable, Dict, Optional
from urllib.parse import quote

import requests

from .errors import CollaboratorUnavailableError
from .references import parse_verse_reference

DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 5.0  # seconds between attempts


def parse_api_response(payload, reference: str) -> Dict[str, str]:
    """
    Pull verse text (and reference, if given) out of an API response.

    Handles ``{"text"}``, ``{"verse": {"text"}}``, ``{"data": {"text"}}``,
    ``{"content"}`` and a bare string. Raises ValueError if no text is found.
    """
    text = None
    if isinstance(payload, str):
        text = payload
    elif isinstance(payload, dict):
        verse = payload.get("verse") if isinstance(payload.get("verse"), dict) else {}
        data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        text = payload.get("text") or verse.get("text") or data.get("text") or payload.get("content")
        reference = payload.get("reference") or verse.get("reference") or reference

    if not text or not isinstance(text, str):
        raise ValueError("Could not extract verse text from API response")

    return {"text": text.strip(), "reference": reference}


class ScriptureTextClient:
    """Fetches the text of a single verse reference."""

    def __init__(
        self,
        base_url: str,
        endpoint_pattern: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.endpoint_pattern = endpoint_pattern
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self._session = session or requests.Session()
        self._sleep = sleep

    def build_url(self, reference: str) -> str:
        """Build the request URL for *reference*; raises InvalidReferenceError."""
        parsed = parse_verse_reference(reference)
        book = quote(parsed.book, safe="")

        if self.endpoint_pattern:
            url = (
                self.endpoint_pattern
                .replace("{book}", book)
                .replace("{chapter}", str(parsed.chapter))
                .replace("{verse}", str(parsed.verse))
            )
            return url if url.startswith("http") else f"{self.base_url}/{url.lstrip('/')}"

        return f"{self.base_url}/verses/{book}/{parsed.chapter}/{parsed.verse}"

    def _fetch_once(self, url: str, reference: str) -> Dict[str, str]:
        response = self._session.get(url, timeout=self.timeout)
        if response.status_code != 200:
            raise requests.HTTPError(
                f"API returned status {response.status_code}: {response.text[:100]}"
            )
        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        return parse_api_response(payload, reference)

    def fetch_verse(self, reference: str) -> Dict[str, str]:
        """
        Return ``{"text", "reference"}`` for *reference*.

        Retries network errors, timeouts, bad statuses and unreadable bodies
        up to ``max_attempts`` times, waiting ``retry_delay`` seconds between
        attempts.
        """
        url = self.build_url(reference)
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                print(f"[scripture_api] Fetching verse (attempt {attempt}/{self.max_attempts}): {reference}")
                return self._fetch_once(url, reference)
            except (requests.RequestException, ValueError) as e:
                last_error = e
                print(f"[scripture_api] Attempt {attempt} failed: {e}")
                if attempt < self.max_attempts:
                    self._sleep(self.retry_delay)

        raise CollaboratorUnavailableError(
            f"Could not fetch {reference} after {self.max_attempts} attempts: {last_error}"
        )

    def fetch_text(self, reference: str) -> str:
        return self.fetch_verse(reference)["text"]
