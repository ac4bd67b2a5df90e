from __future__ import annotations

import atexit
import contextlib
import logging
import signal
import threading

from flask import Flask, request
from werkzeug.exceptions import HTTPException

from plantcare.config import ServerConfig, load_config, setup_logging

__version__ = "1.0.0"


def create_app(
    config: ServerConfig | None = None,
    *,
    container=None,
    bootstrap_runtime: bool = False,
) -> Flask:
    """Build the Flask app around a station service container.

    Args:
        config: Server configuration, read from ``PLANTCARE_CONFIG`` when omitted.
        container: Pre-built service container (tests); built from *config* otherwise.
        bootstrap_runtime: Start the clock scheduler and uploader and install
            SIGINT/SIGTERM handlers that persist state before exiting.
    """
    if config is None:
        config = load_config()

    # Configure logging early so hardware bootstrap is visible in plantcare.log
    setup_logging(debug=config.debug, log_dir=config.log_dir)

    flask_app = Flask(__name__)
    flask_app.config["LOGIN"] = config.login
    flask_app.config["MAX_CONTENT_LENGTH"] = 64 * 1024

    if container is None:
        from plantcare.services.container import ServiceContainer

        container = ServiceContainer.build(config, start_workers=bootstrap_runtime)
    flask_app.config["CONTAINER"] = container

    if bootstrap_runtime:
        _install_shutdown_handlers(container)

    @flask_app.errorhandler(Exception)
    def _handle_unhandled(exc):
        from plantcare.domain.exceptions import PlantCareError
        from plantcare.utils.http import error_response, safe_error

        if isinstance(exc, HTTPException):
            status = int(exc.code or 500)
            if status >= 500:
                return safe_error(exc, status, context="http-exception")
            return error_response(exc.description or "Request failed", status)

        if isinstance(exc, PlantCareError):
            status = exc.http_status
            if status >= 500:
                return safe_error(exc, status, context=type(exc).__name__)
            return error_response(str(exc) or "Request failed", status)

        return safe_error(exc, 500, context=f"unhandled {request.path}")

    from plantcare.blueprints.api import station_api
    from plantcare.blueprints.ui import ui_bp

    flask_app.register_blueprint(station_api)
    flask_app.register_blueprint(ui_bp)

    logging.getLogger(__name__).info("PlantCare application initialized.")
    return flask_app


def _install_shutdown_handlers(container) -> None:
    shutdown_lock = threading.Lock()
    shutdown_done = False

    def _graceful_shutdown(reason: str = "unknown") -> bool:
        nonlocal shutdown_done
        with shutdown_lock:
            if shutdown_done:
                return True
            shutdown_done = True
        logging.info("Graceful shutdown initiated (%s)", reason)
        try:
            container.shutdown()
        except Exception as exc:
            logging.critical("Failed to persist station state during shutdown: %s", exc, exc_info=True)
            return False
        return True

    def _signal_handler(signum: int, _frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logging.info("Received %s, shutting down", sig_name)
        raise SystemExit(0 if _graceful_shutdown(sig_name) else 1)

    atexit.register(_graceful_shutdown, "atexit")

    # SIGINT=Ctrl-C, SIGTERM=systemd stop
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(OSError, ValueError):
            signal.signal(sig, _signal_handler)


__all__ = ["create_app"]
