# app/main.py
"""
FastAPI application entry point.
Includes API-key middleware, domain and global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import vehicles, stats, health
from app.database import create_tables
from app.config import settings
from app.services.errors import ParkingError, ValidationError
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Parking Front Desk API",
    description="Vehicle check-in / checkout, live charges, history and revenue.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (front-desk UI is served from a different origin) ──────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the desk UI origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    open_paths = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.open_paths or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Domain Error Handler ─────────────────────────────────────────────────────
@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    logger.info(f"{request.method} {request.url.path} refused: {exc.error}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Same shape as ValidationError: first offending field, by its wire name
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    error = ValidationError(".".join(loc) or "body", first.get("msg", "invalid request"))
    return await parking_error_handler(request, error)


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(vehicles.router, prefix="/api/v1", tags=["🚗 Vehicles"])
app.include_router(stats.router,    prefix="/api/v1", tags=["📊 Stats"])
app.include_router(health.router,   prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Parking front desk starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🕒 Day boundaries in {settings.TIMEZONE}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Parking front desk shutting down...")
