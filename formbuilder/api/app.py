"""
FastAPI application factory for the form builder backend.

Creates and configures the FastAPI app, the form store, the session
store, and routes.

Run with:
    uvicorn formbuilder.api.app:app --reload
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formbuilder.api.routes import configure_routes, router
from formbuilder.core.session import SessionStore
from formbuilder.core.storage import FormStore

# Load environment variables from .env
load_dotenv()

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_FORMS_DIR = "data/forms"


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    application = FastAPI(
        title="Form Builder",
        description="Questionnaire builder with conditional visibility and validation",
        version="0.1.0",
    )

    # CORS: every origin is allowed unless CORS_ALLOWED_ORIGINS is set
    allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    forms_dir = os.getenv("FORMS_DIR", DEFAULT_FORMS_DIR)
    form_store = FormStore(forms_dir)

    admin_secret = os.getenv("ADMIN_SECRET") or None
    if admin_secret is None:
        logger.warning(
            "ADMIN_SECRET is not set. Admin endpoints are open to every request."
        )

    # Initialize session store
    session_timeout = int(os.getenv("SESSION_TIMEOUT_SECONDS", "1800"))
    session_store = SessionStore(timeout_seconds=session_timeout)

    # Configure routes with dependencies
    configure_routes(form_store, session_store, admin_secret)
    application.include_router(router, prefix="/api")

    @application.on_event("startup")
    async def on_startup():
        logger.info("Form builder backend starting up")
        logger.info("Forms directory: %s", forms_dir)
        logger.info("Session timeout: %d seconds", session_timeout)

    return application


# Create the app instance (used by uvicorn)
app = create_app()
