"""
MotoPay Vehicle Licensing — FastAPI Application Entry Point

Aggregates all routers, configures middleware, maps domain errors to
JSON responses, and initializes the database on startup.
"""
import logging
import time
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from motopay.config import get_settings
from motopay.database import init_db
from motopay.dependencies import build_services
from motopay.exceptions import MotoPayError
from motopay.logging_config import configure_logging
from motopay.routes import payment_router, compliance_router, vehicle_router, agent_router, admin_router

settings = get_settings()
logger = logging.getLogger("motopay.api")

# ─── Application Instance ───────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "Vehicle licensing and payment API. Covers vehicle lookup, compliance "
        "requirement checks, online renewal payments with gateway verification "
        "and webhooks, receipts, agent commissions, and admin reporting."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# Process-wide service objects; tests replace this with fakes
app.state.services = build_services(settings)

# ─── Startup ─────────────────────────────────────────────────────────
BOOT_TIME = time.time()


@app.on_event("startup")
def on_startup():
    """Initialize logging and database tables, log boot info."""
    configure_logging(settings)
    init_db()

    logger.info(
        "%s v%s started at %s | gateway key: %s | database: %s | debug: %s",
        settings.APP_NAME,
        settings.APP_VERSION,
        datetime.now().isoformat(),
        "[OK] Loaded" if settings.PAYSTACK_SECRET_KEY else "[!] Missing",
        settings.DATABASE_URL.split("@")[-1],
        settings.DEBUG,
    )


@app.on_event("shutdown")
async def on_shutdown():
    gateway = app.state.services.gateway
    if hasattr(gateway, "close"):
        await gateway.close()


# ─── Middleware ──────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with timing."""
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 1)

    if request.url.path.startswith("/api"):
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, duration)

    return response


# ─── Error Mapping ───────────────────────────────────────────────────
@app.exception_handler(MotoPayError)
async def motopay_error_handler(request: Request, exc: MotoPayError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ─── API Routers ─────────────────────────────────────────────────────
app.include_router(payment_router)
app.include_router(compliance_router)
app.include_router(vehicle_router)
app.include_router(agent_router)
app.include_router(admin_router)


@app.get("/health", tags=["Health"])
def deep_health():
    """Detailed health check including dependency statuses."""
    from motopay.database import SessionLocal
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        logger.exception("Health check: database unreachable")
    finally:
        db.close()

    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "payment_gateway": "configured" if settings.PAYSTACK_SECRET_KEY else "unconfigured",
        "uptime_seconds": round(time.time() - BOOT_TIME, 1),
        "version": settings.APP_VERSION,
    }
