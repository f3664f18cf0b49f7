"""
Student Attendance Tracker - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Renders every error into the {success, message, ...} envelope
5. Registers all API route handlers and the health check

The application follows a modular architecture:
- routes/: API endpoint handlers (students, classes, attendance)
- models/: SQLAlchemy ORM models
- services/: Attendance statistics
- errors.py: API error types
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import os
import time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from app.errors import error_envelope
from app.routes import students, classes, attendance
from app.database import DATABASE_URL, create_tables

# Import all models so they are registered with Base.metadata
from app.models import Student, SchoolClass, Attendance  # noqa: F401

# Initialize structured logging before anything else
setup_logging()
logger = get_logger("http")

# Auto-create tables for SQLite local development
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app = FastAPI(
    title="Student Attendance Tracker",
    description=(
        "Manage students and classes, mark daily attendance, and view "
        "per-student and per-class attendance statistics."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Allows the React frontend (port 3000) to call the backend (port 8000).
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Generate a unique request ID for every HTTP request.

    The ID is stored in a context variable (picked up by every log entry),
    returned in the X-Request-ID response header, and logged together
    with the request latency.
    """
    req_id = generate_request_id()
    request_id_var.set(req_id)

    start_time = time.time()

    log_with_context(logger, "INFO",
        f"Request started: {request.method} {request.url.path}",
        context={"request_id": req_id},
        extra_data={
            "ip": request.client.host if request.client else "unknown",
            "user_agent": request.headers.get("user-agent", ""),
            "query_params": dict(request.query_params)
        })

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000

    response.headers["X-Request-ID"] = req_id

    log_with_context(logger, "INFO",
        f"Request completed: {request.method} {request.url.path} → {response.status_code}",
        context={"request_id": req_id},
        extra_data={
            "duration_ms": round(duration_ms, 2),
            "status_code": response.status_code
        })

    return response


# ──────────────────────────────────────────────────────────────
# Error envelope
#
# 400 validation / conflict, 404 not found, 500 anything else.
# ──────────────────────────────────────────────────────────────
def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    log_with_context(logger, "WARNING",
        f"Validation failed: {request.method} {request.url.path}",
        extra_data={"errors": errors})
    return JSONResponse(status_code=400, content=error_envelope("Validation errors", errors=errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_envelope(str(exc.detail)))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log_with_context(logger, "ERROR",
        f"Unhandled error: {request.method} {request.url.path}: {exc}",
        extra_data={"error_type": type(exc).__name__},
        exc_info=True)
    return JSONResponse(status_code=500, content=error_envelope("Internal server error", error=str(exc)))


app.include_router(students.router, tags=["Students"])
app.include_router(classes.router, tags=["Classes"])
app.include_router(attendance.router, tags=["Attendance"])


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint for Docker health checks and monitoring.
    """
    return {"status": "healthy", "service": "attendance-tracker-backend", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Student Attendance Tracker",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "students": "GET/POST /api/students",
            "student": "GET/PUT/DELETE /api/students/{id}",
            "student_attendance": "GET /api/students/{id}/attendance",
            "classes": "GET/POST /api/classes",
            "class": "GET/PUT/DELETE /api/classes/{id}",
            "class_summary": "GET /api/classes/{id}/attendance-summary",
            "attendance": "GET/POST /api/attendance",
            "attendance_bulk": "POST /api/attendance/bulk",
            "attendance_stats": "GET /api/attendance/stats",
            "attendance_record": "GET/PUT/DELETE /api/attendance/{id}"
        }
    }
