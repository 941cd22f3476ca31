# /managea/main.py

# --- Core FastAPI Imports ---
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

# --- Application-specific Imports ---
from .config import CORS_ORIGINS, configure_logging
from .db.database import init_db
from .routers import (
    classes_router,
    students_router,
    violations_router,
    dashboard_router,
    reports_router,
    live_router,
)
from .services.exceptions import StoreError

logger = logging.getLogger(__name__)


# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # This code runs ONCE when the application starts up.
    configure_logging()
    init_db()
    logger.info("Managea backend started")
    yield


# --- FastAPI Application Instance Creation ---
app = FastAPI(
    title="Managea Backend API",
    description="Prayer and attendance violation tracking with automatic fines for a hostel.",
    version="1.0.0",
    lifespan=lifespan
)

# --- Middleware Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Store Failures ---
# Storage failures are never retried; the client gets one 503 with the reason.
@app.exception_handler(StoreError)
@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: Exception):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": f"The database could not complete the request: {exc}"},
    )


# --- API Router Inclusion ---
app.include_router(dashboard_router.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(classes_router.router, prefix="/api/classes", tags=["Classes"])
app.include_router(students_router.router, prefix="/api/students", tags=["Students"])
app.include_router(violations_router.router, prefix="/api/violations", tags=["Violations"])
app.include_router(reports_router.router, prefix="/api/reports", tags=["Reports"])
app.include_router(live_router.router, prefix="/api/live", tags=["Live Updates"])


# --- Root / Health Check Endpoint ---
@app.get("/", tags=["Health Check"])
async def read_root():
    """A simple health check endpoint to confirm the API is online."""
    return {"status": "Managea Backend is running!", "version": app.version}
