"""
FastAPI application for the deal intake service.

Serves the intake form, the submission endpoint and a health check.
Production deployment configuration via environment variables.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.submission import (
    MAX_FILE_SIZE_BYTES,
    OPTIONAL_CATEGORIES,
    REQUIRED_CATEGORIES,
    DealIntakeService,
    PropertyType,
    RateLimiter,
)
from core.submission.relay import format_timestamp
from utils.config import Config
from utils.formatting import format_file_size
from web.cors import public_cors_headers
from web.intake_routes import method_not_allowed_handler
from web.intake_routes import router as intake_router


logger = logging.getLogger(__name__)


# =============================================================================
# Environment Configuration
# =============================================================================

IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

APP_VERSION = "1.0.0"

# Paths
BASE_DIR = Path(__file__).parent
TEMPLATES_DIR = BASE_DIR / "templates"


# =============================================================================
# API Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Liveness probe body."""

    status: str
    timestamp: str
    version: str


def create_app(
    config: Optional[Config] = None,
    rate_limiter: Optional[RateLimiter] = None,
    service_factory: Optional[Callable[[Config], DealIntakeService]] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings; loaded from the environment when omitted.
        rate_limiter: Shared limiter for the intake endpoint.
        service_factory: Builds a DealIntakeService per request.
    """
    config = config or Config.load()

    app = FastAPI(
        title="Deal Intake",
        description="Deal submission form and intake endpoint",
        version=APP_VERSION,
        # Production settings: disable docs/redoc for public deployment
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )

    app.state.config = config
    app.state.rate_limiter = rate_limiter or RateLimiter(
        max_requests=config.rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
    )
    app.state.service_factory = service_factory or DealIntakeService.from_config

    if not config.webhook_configured:
        logger.warning("WEBHOOK_URL not configured; submissions will be refused")
    if not config.storage_configured:
        logger.warning("Supabase storage not configured; submissions will be refused")

    templates = Jinja2Templates(directory=TEMPLATES_DIR)

    @app.api_route("/api/health", methods=["GET", "OPTIONS"], include_in_schema=False)
    def health(request: Request):
        """Health check endpoint. No dependencies, no IO."""
        headers = public_cors_headers()
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers)

        body = HealthResponse(
            status="ok",
            timestamp=format_timestamp(datetime.now(timezone.utc)),
            version=APP_VERSION,
        )
        return JSONResponse(body.model_dump(), headers=headers)

    @app.get("/", response_class=HTMLResponse)
    async def deal_form(request: Request):
        """Render the deal intake form."""
        return templates.TemplateResponse(
            request,
            "deal_form.html",
            {
                "title": "Submit a Deal",
                "property_types": [pt.value for pt in PropertyType],
                "required_files": [
                    {"field": c.value, "label": c.label} for c in REQUIRED_CATEGORIES
                ],
                "optional_files": [
                    {"field": c.value, "label": c.label} for c in OPTIONAL_CATEGORIES
                ],
                "max_file_size": format_file_size(MAX_FILE_SIZE_BYTES),
            },
        )

    app.add_exception_handler(StarletteHTTPException, method_not_allowed_handler)
    app.include_router(intake_router)

    return app


# Create app instance for uvicorn
app = create_app()
