"""CORS middleware configuration"""
from fastapi.middleware.cors import CORSMiddleware
from contact_widget.config import get_settings

ALLOWED_METHODS = ["POST", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]
PREFLIGHT_MAX_AGE = 86400


def cors_headers() -> dict:
    """Headers returned on the explicit preflight route"""
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Max-Age": str(PREFLIGHT_MAX_AGE),
    }


def setup_cors(app):
    """
    Configure CORS middleware for the application

    Args:
        app: FastAPI application instance
    """
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=ALLOWED_METHODS + ["GET"],
        allow_headers=ALLOWED_HEADERS,
        max_age=PREFLIGHT_MAX_AGE,
    )
