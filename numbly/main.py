"""
Main FastAPI application
Numbly arithmetic learning backend: question bank, quiz attempts,
performance statistics and AI quiz generation
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import re
import time

from numbly.config import settings
from numbly.database import init_db
from numbly.errors import NumblyError, RateLimitedError
from numbly.api import achievements, lessons, quiz, quiz_attempts, quiz_questions, user_progress
from numbly.utils.rate_limiter import rate_limiter

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

RATE_LIMIT_EXEMPT_PATHS = ["/health", "/docs", "/redoc", "/openapi.json"]

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Backend for learning arithmetic with lessons and AI-generated quizzes",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Rate limiting middleware
@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Apply rate limiting to all requests"""

    if not settings.RATE_LIMIT_ENABLED or request.url.path in RATE_LIMIT_EXEMPT_PATHS:
        return await call_next(request)

    try:
        await rate_limiter.check_rate_limit(request)
    except RateLimitedError as e:
        retry_after = getattr(e, "retry_after", 60)
        return JSONResponse(
            status_code=e.status_code,
            content={**e.to_dict(), "retryAfter": retry_after},
            headers={"Retry-After": str(retry_after)}
        )

    return await call_next(request)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""

    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Duration: {duration:.3f}s"
    )

    return response


def _validation_code(errors) -> str:
    """MISSING_<FIELD> / INVALID_<FIELD> from the first validation error"""
    if not errors:
        return "VALIDATION_ERROR"

    first = errors[0]
    fields = [part for part in first.get("loc", ()) if isinstance(part, str) and part not in ("body", "query")]
    if not fields:
        return "VALIDATION_ERROR"

    field = re.sub(r"(?<!^)(?=[A-Z])", "_", fields[0]).upper()
    prefix = "MISSING" if first.get("type") == "missing" else "INVALID"
    return f"{prefix}_{field}"


def _validation_message(errors) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    return f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")


# Application error handler
@app.exception_handler(NumblyError)
async def numbly_error_handler(request: Request, exc: NumblyError):
    """Render taxonomy errors as {error, code}"""

    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Validation error handlers
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed input as 400 with a machine-readable code"""

    errors = exc.errors()
    return JSONResponse(
        status_code=400,
        content={"error": _validation_message(errors), "code": _validation_code(errors)}
    )


@app.exception_handler(PydanticValidationError)
async def model_validation_handler(request: Request, exc: PydanticValidationError):
    """Body validation done inside a handler"""

    errors = exc.errors()
    return JSONResponse(
        status_code=400,
        content={"error": _validation_message(errors), "code": _validation_code(errors)}
    )


# HTTP exception handler
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Format HTTP exceptions consistently"""

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "code": "HTTP_ERROR"}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors gracefully"""

    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    message = f"Internal server error: {str(exc)}" if settings.DEBUG else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": message, "code": "INTERNAL_ERROR"}
    )


# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "quizProvider": settings.QUIZ_PROVIDER,
        "timestamp": time.time()
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "Numbly API",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }


# Include routers
app.include_router(quiz_questions.router)
app.include_router(quiz_attempts.router)
app.include_router(quiz.router)
app.include_router(lessons.router)
app.include_router(user_progress.router)
app.include_router(achievements.router)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database on startup"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    try:
        init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise

    logger.info("Application startup complete")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down application")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "numbly.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
