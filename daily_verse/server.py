"""
Flask server exposing the verse widget state.
"""
import threading

from flask import Flask, jsonify


def create_app(display, refresh=None) -> Flask:
    """
    Build the app around *display*.

    *refresh* (usually ResultChannel.request_verse) is called before serving
    ``/verse`` when the verse on screen is from an earlier day.
    """
    app = Flask(__name__)

    @app.route('/')
    def home():
        """Root endpoint for keep-alive pings."""
        return "Daily verse is alive", 200

    @app.route('/verse')
    def verse():
        """Current display state as JSON, plus the rendered widget text."""
        if refresh is not None and display.needs_refresh():
            print("[server] Verse on screen is from an earlier day; refreshing")
            refresh()
        state = display.to_dict()
        state["rendered"] = display.render()
        return jsonify(state), 200

    return app


def run_server(app: Flask, port: int):
    """Run Flask server in background thread."""
    app.run(host='0.0.0.0', port=port, debug=False, use_reloader=False)


def start_server(display, port: int = 8080, refresh=None):
    """Start Flask server in a separate thread."""
    app = create_app(display, refresh)
    server_thread = threading.Thread(target=run_server, args=(app, port), daemon=True)
    server_thread.start()
    print(f"[server] Flask server started on port {port}")
    return app
