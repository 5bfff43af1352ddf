"""WSGI entry point for the KebunPintar backend application.

Used both in development (``python smart_agriculture_app.py``) and by the
``kebunpintar-backend`` console script. Configuration comes from the
environment (see ``app/config.py``).
"""
from __future__ import annotations

import logging
import os

from app import create_app, socketio

app = create_app(start_scheduler=True)


def _env_flag_true(name: str) -> bool:
    v = os.getenv(name)
    return bool(v and v.lower() in ("1", "true", "yes", "on"))


def main() -> int:
    host = os.getenv("KEBUN_HOST", "0.0.0.0")
    port = int(os.getenv("KEBUN_PORT", "8000"))
    debug = _env_flag_true("KEBUN_DEBUG")

    logging.info("Starting server on %s:%s", host, port)
    logging.info("SocketIO async_mode: %s", socketio.async_mode)

    try:
        socketio.run(
            app,
            host=host,
            port=port,
            debug=debug,
            use_reloader=False,
            allow_unsafe_werkzeug=True,
        )
        logging.info("Server stopped.")
        return 0
    except KeyboardInterrupt:
        logging.info("Server stopped by user.")
        return 0
    except Exception as exc:  # pragma: no cover - top-level runtime errors
        logging.exception("ERROR: Failed to start server: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
