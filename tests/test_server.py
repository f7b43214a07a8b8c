from datetime import datetime
from unittest.mock import MagicMock

from daily_verse.channel import VerseFailed, VerseReady
from daily_verse.display import DisplayState
from daily_verse.server import create_app


def _client(display, refresh=None):
    app = create_app(display, refresh)
    app.config["TESTING"] = True
    return app.test_client()


def test_keep_alive():
    response = _client(DisplayState()).get("/")
    assert response.status_code == 200
    assert b"alive" in response.data


def test_verse_endpoint_reports_loaded_state():
    display = DisplayState()
    display.apply(VerseReady(text="Hear Him!", reference="Joseph Smith--History 1:17"),
                  now=datetime(2025, 1, 4, 0, 0))

    data = _client(display).get("/verse").get_json()

    assert data["verseText"] == "Hear Him!"
    assert data["verseReference"] == "Joseph Smith--History 1:17"
    assert data["lastUpdate"] == "2025-01-04T00:00:00"
    assert data["rendered"] == "Hear Him!\nJoseph Smith--History 1:17"


def test_verse_endpoint_reports_error_state():
    display = DisplayState()
    display.apply(VerseFailed(message="offline"))

    data = _client(display).get("/verse").get_json()

    assert data["hasError"] is True
    assert data["rendered"] == "Unable to load scripture verse"


def test_verse_endpoint_refreshes_a_stale_verse():
    now = [datetime(2025, 1, 4, 0, 0)]
    display = DisplayState(clock=lambda: now[0])
    display.apply(VerseReady(text="Hear Him!", reference="Joseph Smith--History 1:17"))

    def refresh():
        display.apply(VerseReady(text="Be still", reference="Psalms 46:10"))

    client = _client(display, refresh)
    assert client.get("/verse").get_json()["verseReference"] == "Joseph Smith--History 1:17"

    now[0] = datetime(2025, 1, 5, 7, 30)
    data = client.get("/verse").get_json()
    assert data["verseReference"] == "Psalms 46:10"
    assert data["lastUpdate"] == "2025-01-05T07:30:00"


def test_verse_endpoint_leaves_error_state_to_the_scheduler():
    display = DisplayState()
    display.apply(VerseFailed(message="offline"))
    refresh = MagicMock()

    _client(display, refresh).get("/verse")

    refresh.assert_not_called()
