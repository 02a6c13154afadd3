"""
Main application entry point for the Address Book API.

This module initializes the FastAPI application, configures logging and
CORS, registers the envelope producing exception handlers and includes
the contact and phone routers under the configured API prefix.

Modules:
- FastAPI: Web framework
- CORSMiddleware: Middleware for handling CORS
- addressbook.database: Database engine
- addressbook.models: SQLAlchemy models
- addressbook.contacts: Contacts router
- addressbook.phones: Phones router
- addressbook.errors: Exception handlers
- addressbook.core: Application settings
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from addressbook.core import get_settings
from addressbook.database import engine
from addressbook.errors import register_exception_handlers
from addressbook.logging_config import setup_logging
from addressbook import models, contacts, phones

settings = get_settings()
setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(title="Address Book API")

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
def startup_event():
    """
    FastAPI startup event handler.

    Creates missing tables when ``CREATE_SCHEMA`` is enabled. Production
    deployments are expected to provide the schema themselves.
    """
    if settings.CREATE_SCHEMA:
        models.Base.metadata.create_all(bind=engine)
        logger.info("Database schema ensured on %s", engine.url.render_as_string())


# Include routers for application areas
app.include_router(contacts.router, prefix=settings.API_PREFIX)
app.include_router(phones.router, prefix=settings.API_PREFIX)


@app.get("/", include_in_schema=False)
@app.get("/api/", include_in_schema=False)
@app.get(f"{settings.API_PREFIX}/", include_in_schema=False)
def root():
    """
    Root endpoints of the API.

    Redirect to the contact index.

    Returns:
        RedirectResponse: Temporary redirect to ``{API_PREFIX}/index``.
    """
    return RedirectResponse(url=f"{settings.API_PREFIX}/index")
