"""
api/app.py - FastAPI application factory
==========================================
Creates and configures the FastAPI instance.  All configuration is
centralised here so that `main.py` stays minimal.

The measurement service lives on `app.state.service`; each call to
`create_app()` gets its own controller and history.

CORS
----
We allow all origins by default (suitable for local development and
demos).  In a production deployment restrict `allow_origins` to your
frontend domain.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from api.session import MeasurementService
from config import API_TITLE, API_VERSION
from measurement.settings import MeasurementConfig


def create_app(config: MeasurementConfig | None = None) -> FastAPI:
    """
    Construct and return the configured FastAPI application.

    This is a *factory function* (rather than a module-level singleton)
    so that tests can create isolated app instances.

    Parameters
    ----------
    config : MeasurementConfig | None   Server-wide measurement defaults.
    """
    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=(
            "Camera photoplethysmography (PPG) vital-signs measurement API. "
            "⚠️ WELLNESS TOOL ONLY - not a medical device."
        ),
    )
    app.state.service = MeasurementService(config)

    # ── CORS ────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],           # Restrict in production!
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Mount routes ────────────────────────────────────────────────────
    app.include_router(router)

    return app
