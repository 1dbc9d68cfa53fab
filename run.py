#!/usr/bin/env python3
"""
TennisShop Assistant Entry Point
- Works under both Gunicorn (WSGI import) and python CLI.
- Ensures smart logging is initialized exactly once per process.
- Aligns Flask app logger with root logger for consistent output.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Tuple

from dotenv import load_dotenv
from flask import request

# Load env before any other imports that might read it
load_dotenv()

from tennis_assistant import create_app  # noqa: E402
from tennis_assistant.utils.smart_logger import LogLevel, configure_logging  # noqa: E402

# --------------------------------------------------------------------------------------
# Logging initialization (one-time, safe under multiprocess servers like Gunicorn)
# --------------------------------------------------------------------------------------

_LOGGING_INITIALIZED = False  # process-level guard


def _to_python_level(level: LogLevel) -> int:
    mapping = {
        "MINIMAL": logging.WARNING,
        "STANDARD": logging.INFO,
        "DETAILED": logging.INFO,
        "DEBUG": logging.DEBUG,
    }
    return mapping.get(level.name, logging.INFO)


def setup_smart_logging() -> LogLevel:
    """
    Configure the smart logging system from BOT_LOG_LEVEL.
    Idempotent: won't add duplicate handlers if called multiple times.
    """
    global _LOGGING_INITIALIZED

    desired = os.getenv("BOT_LOG_LEVEL", "STANDARD").upper()
    valid = {lvl.name for lvl in LogLevel}
    if desired not in valid:
        print(f"Warning: Invalid BOT_LOG_LEVEL '{desired}'. Valid options: {', '.join(sorted(valid))}")
        log_level = LogLevel.STANDARD
    else:
        log_level = LogLevel[desired]

    if not _LOGGING_INITIALIZED:
        root = logging.getLogger()
        if not root.handlers:
            configure_logging(
                level=log_level,
                format_string="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                silence_external=True,
            )
        _LOGGING_INITIALIZED = True

    return log_level


# --------------------------------------------------------------------------------------
# Environment validation
# --------------------------------------------------------------------------------------

def validate_environment() -> None:
    """Warn about missing optional settings; the assistant degrades instead of failing."""
    optional = {
        "ANTHROPIC_API_KEY": "free-form AI replies (guided flows work without it)",
    }
    missing = [f"{k} (used for {v})" for k, v in optional.items() if not os.getenv(k)]
    if missing:
        logging.getLogger(__name__).warning("Missing environment variables: " + ", ".join(missing))


# --------------------------------------------------------------------------------------
# Flask application creation and alignment with logging
# --------------------------------------------------------------------------------------

def _wire_app_logger(app, log_level: LogLevel) -> None:
    """Make Flask's app.logger flow into the root logger configured by smart logging."""
    if app.logger.handlers:
        app.logger.handlers.clear()
    app.logger.propagate = True
    app.logger.setLevel(_to_python_level(log_level))


def create_application():
    log_level = setup_smart_logging()
    validate_environment()

    app = create_app()
    _wire_app_logger(app, log_level)

    @app.before_request
    def _log_request():
        app.logger.info("→ %s %s", request.method, request.path)

    return app


# --------------------------------------------------------------------------------------
# Local dev server (python run.py)
# --------------------------------------------------------------------------------------

def _resolve_server_config() -> Tuple[str, int, bool]:
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "3000"))

    flask_debug = os.getenv("FLASK_DEBUG", "").lower()
    if flask_debug in ("1", "true", "yes", "on"):
        debug = True
    elif flask_debug in ("0", "false", "no", "off"):
        debug = False
    else:
        debug = os.getenv("APP_ENV", "development").lower() == "development"

    return host, port, debug


def _print_startup_info(app, host: str, port: int, debug: bool, log_level: LogLevel) -> None:
    cfg = app.extensions["config"]
    catalog = app.extensions["catalog"]
    assistant = app.extensions["assistant"]
    print("🎾 TennisShop Pro - Assistente Digitale")
    print("=" * 60)
    print(f"Server:       http://{host}:{port}")
    print(f"Health check: http://{host}:{port}/api/health")
    print(f"Environment:  {os.getenv('APP_ENV', 'development')}")
    print(f"Debug mode:   {debug}")
    print(f"Log level:    {log_level.name}")
    print(f"Process ID:   {os.getpid()}")
    print("-" * 60)
    print(f"Model:        {cfg.LLM_MODEL} ({'configured' if assistant.llm_service.is_configured else 'NOT configured'})")
    print(f"Tokens/session: {cfg.MAX_TOKENS_PER_SESSION} | Chats/session: {cfg.MAX_CHATS_PER_SESSION}")
    print(f"Budget/chat:  €{cfg.MAX_COST_PER_CHAT * cfg.USD_TO_EUR_RATE:.3f}")
    print(f"Catalog:      {len(catalog.products)} products{' (fallback)' if catalog.from_fallback else ''}")
    print("Flows:        product consultation, size guide, order support")
    print("=" * 60)


def main() -> None:
    log_level = setup_smart_logging()

    host, port, debug = _resolve_server_config()
    _print_startup_info(app, host, port, debug, log_level)

    try:
        app.run(
            host=host,
            port=port,
            debug=debug,
            use_reloader=False,  # Avoid double init of the sweeper thread
            threaded=True,
        )
    except KeyboardInterrupt:
        print("\nShutting down gracefully...")
    except Exception as e:
        print(f"Server error: {e}")
        sys.exit(1)
    finally:
        app.extensions["sweeper"].stop()


# --------------------------------------------------------------------------------------
# WSGI entrypoint for Gunicorn: `gunicorn run:app`
# --------------------------------------------------------------------------------------
app = create_application()

if __name__ == "__main__":
    main()
