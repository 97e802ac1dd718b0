import logging
from fastapi import FastAPI, responses
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from fastapi import exceptions as exc
from sqlalchemy.exc import IntegrityError, DBAPIError
from api.v1.router import (
    study_plans,
    documents,
    files,
    ai,
    preferences,
)
from core.setup import Base, database
import handler as hlp
from config.setting import settings
from error import ServerError
import model.study_plans  # noqa: F401
import model.documents  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create database tables and indexes
Base.metadata.create_all(bind=database.get_engine)

app = FastAPI(
    title="Aprova.AI API",
    version="1.0.0",
    description="Study planning and material summaries for public exam candidates",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add GZip compression for better performance
app.add_middleware(GZipMiddleware, minimum_size=1000)


app.add_exception_handler(ValueError, hlp.value_error_handler)
app.add_exception_handler(ValidationError, hlp.validation_error_handler)
app.add_exception_handler(RequestValidationError, hlp.validation_error_handler)
app.add_exception_handler(exc.HTTPException, hlp.validation_http_exceptions_handler)
app.add_exception_handler(IntegrityError, hlp.db_error_handler)
app.add_exception_handler(DBAPIError, hlp.db_error_handler)
app.add_exception_handler(ServerError, hlp.server_error_handler)


app.include_router(study_plans, prefix=settings.API_PREFIX)
app.include_router(documents, prefix=settings.API_PREFIX)
app.include_router(files, prefix=settings.API_PREFIX)
app.include_router(ai, prefix=settings.API_PREFIX)
app.include_router(preferences, prefix=settings.API_PREFIX)


@app.get("/", include_in_schema=False)
def redirect_to_docs():
    return responses.RedirectResponse("/docs")
