"""
Rollbook - School Attendance Tracker - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Maps service errors to JSON responses
5. Registers all API route handlers and the live update WebSocket
6. Creates tables and demo data on startup (SQLite / SEED_DEMO_DATA)

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: Business logic (aggregation, upsert, access, broadcast)
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rollbook.config import settings
from rollbook.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from rollbook.errors import RollbookError
from rollbook.routes import auth, teacher, student, live
from rollbook.database import DATABASE_URL, SessionLocal, create_tables
from rollbook.services.broadcast import LiveUpdateBroadcaster
from rollbook.services.seed import seed_demo_data

# Import all models so they are registered with Base.metadata
from rollbook.models import User, Grade, Section, Student, TeacherAllocation, Attendance  # noqa: F401

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables for SQLite local development
    if DATABASE_URL.startswith("sqlite"):
        logger.info("Using SQLite, creating tables directly")
        create_tables()

    if settings.SEED_DEMO_DATA:
        db = SessionLocal()
        try:
            seed_demo_data(db)
        finally:
            db.close()
    yield


# ──────────────────────────────────────────────────────────────
# Create FastAPI application
# ──────────────────────────────────────────────────────────────
app = FastAPI(
    title="Rollbook",
    description=(
        "School attendance tracker: teachers mark daily attendance per section, "
        "students view their own history and statistics, and every change is "
        "pushed to connected viewers over a WebSocket."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# One broadcaster per application; routes reach it through get_broadcaster
app.state.broadcaster = LiveUpdateBroadcaster()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


# ──────────────────────────────────────────────────────────────
# Request ID Middleware
#
# Generates a unique UUID per incoming request and:
# 1. Stores it in a context variable (available to all log entries)
# 2. Returns it in the X-Request-ID response header
# 3. Logs request start/end with latency measurement
# ──────────────────────────────────────────────────────────────
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
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
# Error handlers
#
# Service errors and request validation failures share one body shape:
# {"message": ..., "field": ...}. Authorization failures render exactly
# like authentication failures.
# ──────────────────────────────────────────────────────────────
@app.exception_handler(RollbookError)
async def rollbook_error_handler(request: Request, exc: RollbookError):
    level = "ERROR" if exc.status_code >= 500 else "WARNING"
    log_with_context(logger, level,
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
        extra_data={"status_code": exc.status_code, "reason": getattr(exc, "reason", "")})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {"loc": (), "msg": "Invalid request"}
    field = ".".join(str(part) for part in first["loc"] if part not in ("body", "query", "path"))
    log_with_context(logger, "WARNING",
        f"Validation failed on {request.method} {request.url.path}: {first['msg']}",
        extra_data={"field": field, "errors": len(errors)})
    body = {"message": first["msg"]}
    if field:
        body["field"] = field
    return JSONResponse(status_code=422, content=body)


# ──────────────────────────────────────────────────────────────
# Register API routes
# ──────────────────────────────────────────────────────────────
app.include_router(auth.router, tags=["Auth"])
app.include_router(teacher.router, tags=["Teacher"])
app.include_router(student.router, tags=["Student"])
app.include_router(live.router, tags=["Live"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for container health checks and monitoring."""
    return {"status": "healthy", "service": "rollbook-backend", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Rollbook",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "login": "POST /api/auth/login",
            "logout": "POST /api/auth/logout",
            "me": "GET /api/auth/me",
            "allocations": "GET /api/teacher/allocations",
            "class_data": "GET /api/teacher/class/{sectionId}?month=YYYY-MM",
            "mark_attendance": "POST /api/teacher/attendance",
            "own_attendance": "GET /api/student/attendance?month=YYYY-MM",
            "live_updates": "WS /ws"
        }
    }
