"""
Main routes: service banner and health check.
"""

from flask import Blueprint


main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Plain-text pointer for people who open the server URL in a browser."""
    return (
        "Print4me server is running. Use GET /health or POST /api/print-request",
        200,
        {"Content-Type": "text/plain; charset=utf-8"},
    )


@main_bp.route("/health", methods=["GET"])
def health():
    """Liveness probe."""
    return {"status": "ok", "service": "print4me-server"}
