"""CORS for the packing-station dashboard."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings

# Dashboard dev servers
DEV_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")

# Headers the dashboard sends: tenant scope, operator id, correlation id
DASHBOARD_HEADERS = ["Content-Type", "Authorization", "X-Tenant-ID", "X-Actor-ID", "X-Request-ID"]


def get_cors_origins() -> list[str]:
    """Origins from ALLOWED_ORIGINS (comma-separated), else the dev servers outside production."""
    configured = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]
    if configured or settings.environment == "production":
        return configured
    return list(DEV_ORIGINS)


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=DASHBOARD_HEADERS,
        expose_headers=["X-Request-ID"],
    )
