"""
Print4me server - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env + environment)
2. Creates the upload store, mailer and notification service
3. Builds the print request pipeline
4. Registers route blueprints
5. Sets up CORS, error handlers and shutdown cleanup

ARCHITECTURE:
    Request Thread (Flask)
    ├── Store uploads in the upload folder
    ├── Validate, count pages, price
    └── Respond with the acknowledgement

    Mail Threads (one per accepted order)
    └── Render + send the admin email, then delete the order's uploads

A missing mail configuration does not stop the server; it fails the
notification of each order, which is logged.
"""

from __future__ import annotations

import atexit
import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from logging_config import setup_logging, get_logger
from modules.mailer import Mailer, MailSettings
from modules.page_counter import PageCounter
from modules.pricing import PriceCalculator
from modules.validator import OrderValidator
from routes import register_blueprints
from services.notification_service import NotificationService
from services.order_pipeline import PrintRequestPipeline
from services.upload_store import UploadStore


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In a frozen bundle: the directory containing the executable
    In development: the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent


def _allowed_origins(value: str) -> list[str]:
    return [origin.strip() for origin in (value or "").split(",") if origin.strip()]


def create_app(
    config_object: str = "config.Config",
    config_overrides: Optional[Mapping[str, Any]] = None,
) -> Flask:
    """
    Application factory - creates and configures the Flask app.

    Args:
        config_object: Import path of the configuration class
        config_overrides: Extra config values applied last (tests)

    Returns:
        Configured Flask application
    """
    # .env next to the executable takes precedence over the shell environment
    env_file = _get_base_path() / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)
    if config_overrides:
        app.config.update(config_overrides)

    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting Print4me in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    upload_store = UploadStore(app.config["UPLOAD_FOLDER"])
    app.config["UPLOAD_STORE"] = upload_store

    mail_settings = MailSettings.from_config(app.config)
    if not (mail_settings.uses_smtp or mail_settings.uses_gmail):
        logger.warning("Email transport is not configured; order notifications will fail")
    if not mail_settings.admin_email:
        logger.warning("ADMIN_EMAIL is not set; order notifications will fail")

    notification_service = NotificationService(Mailer(mail_settings), upload_store)
    app.config["NOTIFICATION_SERVICE"] = notification_service

    page_counter = PageCounter()
    app.config["PIPELINE"] = PrintRequestPipeline(
        upload_store=upload_store,
        notification_service=notification_service,
        page_counter=page_counter,
        validator=OrderValidator(page_counter),
        price_calculator=PriceCalculator(
            delivery_fee=app.config.get("DELIVERY_FEE", PriceCalculator.DELIVERY_FEE),
            currency=app.config.get("CURRENCY", "EGP"),
        ),
    )
    logger.info("Print request pipeline initialized")

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Let pending notifications finish on shutdown."""
        logger.info("Shutting down...")
        notification_service.shutdown()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # CORS
    # =========================================================================

    allowed_origins = _allowed_origins(app.config.get("ALLOWED_ORIGINS", ""))

    @app.after_request
    def apply_cors(response):
        origin = request.headers.get("Origin")
        if not allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = "*"
        elif origin and origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers.add("Vary", "Origin")
        # Requests without an Origin (mobile apps, CLI tools) need no CORS headers
        if request.method == "OPTIONS":
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = request.headers.get(
                "Access-Control-Request-Headers", "Content-Type"
            )
        return response

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 0) / (1024 * 1024)
        return {"ok": False, "error": f"Upload too large. Maximum request size is {max_mb:.0f} MB."}, 413

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"ok": False, "error": "Not found"}, 404

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {"ok": False, "error": e.description}, e.code

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"ok": False, "error": "An unexpected error occurred"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=app.config["PORT"], debug=app.config.get("DEBUG", False))
