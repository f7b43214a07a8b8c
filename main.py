"""
Daily LDS Verse - Main Application Entry Point
Shows one scripture verse per day, rotating through the four standard works
"""
import asyncio

from dotenv import load_dotenv

# Load environment variables
load_dotenv('.env.local')

from daily_verse.channel import ResultChannel
from daily_verse.config import load_settings
from daily_verse.display import DisplayState
from daily_verse.errors import ConfigError
from daily_verse.scheduler import DailyScheduler
from daily_verse.scripture_api import ScriptureTextClient
from daily_verse.server import start_server
from daily_verse.storage import VerseListProvider


async def run(settings):
    """Request today's verse, then keep re-requesting on schedule until cancelled."""
    provider = VerseListProvider(settings.verses_dir)
    provider.load()
    for volume, count in provider.counts().items():
        print(f"  {volume.display_name}: {count} verse(s)")

    text_client = None
    if settings.api_base_url:
        text_client = ScriptureTextClient(settings.api_base_url, settings.api_endpoint_pattern)
    else:
        print("Scripture API not configured; only verses stored with text can be shown")

    # Selection, display and scheduling all read the configured zone's clock.
    display = DisplayState(clock=settings.now)
    channel = ResultChannel(provider, display.apply, text_client=text_client, clock=settings.now)

    print("\n[1/2] Starting Flask server...")
    start_server(display, settings.port, refresh=channel.request_verse)

    print("[2/2] Starting daily scheduler...")
    print("=" * 50 + "\n")

    scheduler = DailyScheduler()
    channel.request_verse()
    scheduler.start(channel.request_verse, settings.policy)

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown()


def main():
    """Main application entry point."""
    print("=" * 50)
    print("Daily LDS Verse Starting...")
    print("=" * 50)

    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"ERROR: {e}")
        return

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        print("\nDaily LDS Verse stopped")

if __name__ == "__main__":
    main()
