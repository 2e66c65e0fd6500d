"""
UNDO Coach FastAPI Application

Main entry point for the UNDO AI recovery coach API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Common library imports
from common.database import MongoDB
from common.utils import success_response, error_response

# App-specific imports
from coach_app.config import settings
from coach_app.routers import coach_router
from coach_app.dependencies import init_all_services

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# =============================================================================
# Database Instance
# =============================================================================
main_db = MongoDB()


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Validates configuration, connects to MongoDB and builds the services.
    """
    logger.info("Starting UNDO Coach API...")

    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
    )
    logger.info(f"Connected to database: {settings.MONGODB_DATABASE}")

    init_all_services(db=main_db.db, settings=settings)
    logger.info(f"Coach services initialized (model: {settings.OPENROUTER_MODEL})")

    yield

    logger.info("Shutting down UNDO Coach API...")
    await main_db.disconnect()
    logger.info("UNDO Coach API shut down complete.")


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="UNDO Coach API",
    description="AI recovery coaching with crisis support",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

# =============================================================================
# CORS Middleware
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors (including APIException) in the standard envelope."""
    detail = exc.detail
    if isinstance(detail, dict):
        content = error_response(
            message=detail.get("message", "Request failed"),
            code=detail.get("code"),
            details=detail.get("details"),
        )
    else:
        content = error_response(message=str(detail))
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation failures are 400s with field errors."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=400,
        content=error_response("Validation failed", code="VALIDATION_ERROR", errors=errors),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    message = str(exc) if settings.DEBUG else "Internal server error"
    return JSONResponse(
        status_code=500,
        content=error_response(message, code="INTERNAL_ERROR"),
    )


# =============================================================================
# Include Routers (all under /api/v1 prefix)
# =============================================================================
API_PREFIX = "/api/v1"

app.include_router(coach_router, prefix=API_PREFIX, tags=["Coach"])


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    """
    Health check endpoint.

    Returns the status of the API and database connection.
    """
    return success_response({
        "status": "ok",
        "version": VERSION,
        "environment": settings.ENVIRONMENT,
        "database": main_db.is_connected,
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
