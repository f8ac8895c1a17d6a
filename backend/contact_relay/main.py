"""
Contact Relay API
FastAPI application that relays website contact-form submissions to a
mailbox through Microsoft Graph.
"""

import logging
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contact_relay.config import Settings, get_settings
from contact_relay.routers import contact

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Contact Relay API",
    description="Relays website contact-form submissions via Microsoft Graph",
    version="0.1.0",
)

# CORS origins are resolved at startup from CORS_ORIGINS.
# The form posts cross-origin from the static site, so only POST is needed.
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=False,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(contact.router, prefix="/api/contact", tags=["contact"])


@app.on_event("startup")
async def log_startup_config() -> None:
    """
    Log whether the Graph credentials are present so a misconfigured
    deployment is obvious from the first log lines.  Secrets are never
    printed; the mailbox is masked.
    """
    settings = get_settings()
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info(
        "Contact Relay API running at http://localhost:%s (config: %s)",
        host_port,
        settings.presence_flags(),
    )
    if not settings.is_complete:
        logger.warning(
            "Graph configuration incomplete; every submission will be answered with 500"
        )


@app.get("/")
async def root():
    return {"message": "Contact Relay API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/config")
async def health_config(settings: Settings = Depends(get_settings)):
    """
    Report which Graph credentials are configured.

    Returns 503 when any of TENANT_ID, CLIENT_ID, CLIENT_SECRET or
    MAILBOX_ADDRESS is missing.  Values are never echoed back.
    """
    flags = settings.presence_flags()
    if not settings.is_complete:
        return JSONResponse(
            status_code=503,
            content={"status": "incomplete", "config": flags},
        )
    return {"status": "ok", "config": flags}
