"""
Configuration for the Print4me server.

All values come from the environment (a .env file is loaded first).
Mail transport credentials are optional at startup: a missing transport only
fails the notification of the order that needs it.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env early so environment variables are available for the Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent

MAX_FILE_SIZE = 25 * 1024 * 1024  # 25 MB per uploaded file
MAX_FILES = 5


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    UPLOAD_FOLDER = os.environ.get(
        "UPLOAD_FOLDER", str(BASE_DIR / "uploads")
    )
    # Whole request: five files at the per-file limit plus form fields
    MAX_CONTENT_LENGTH = MAX_FILES * MAX_FILE_SIZE + 1024 * 1024
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    PORT = int(os.environ.get("PORT", "4000"))

    # Comma-separated list; empty means any origin
    ALLOWED_ORIGINS = os.environ.get("ALLOWED_ORIGINS", "")

    # ==========================================================================
    # Notification email
    # ==========================================================================
    # Preferred transport is SMTP_*; GMAIL_USER + GMAIL_APP_PASSWORD is the
    # fallback. With neither configured, orders are still acknowledged but
    # their notification fails and is logged.
    # ==========================================================================
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL")
    FROM_EMAIL = os.environ.get("FROM_EMAIL")
    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = os.environ.get("SMTP_PORT")
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASS = os.environ.get("SMTP_PASS")
    SMTP_SECURE = _env_bool("SMTP_SECURE", "true")
    GMAIL_USER = os.environ.get("GMAIL_USER")
    GMAIL_APP_PASSWORD = os.environ.get("GMAIL_APP_PASSWORD")

    # Combined upload size above which files are not attached to the email
    ATTACHMENT_LIMIT_BYTES = int(
        os.environ.get("ATTACHMENT_LIMIT_BYTES", str(20 * 1024 * 1024))
    )

    # ==========================================================================
    # Pricing
    # ==========================================================================
    DELIVERY_FEE = float(os.environ.get("DELIVERY_FEE", "25"))
    CURRENCY = os.environ.get("CURRENCY", "EGP")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    ENVIRONMENT = "production"


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    ENVIRONMENT = "testing"
    ADMIN_EMAIL = None
    FROM_EMAIL = None
    SMTP_HOST = None
    SMTP_PORT = None
    SMTP_USER = None
    SMTP_PASS = None
    GMAIL_USER = None
    GMAIL_APP_PASSWORD = None
    ALLOWED_ORIGINS = ""
