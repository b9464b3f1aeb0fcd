"""
main.py — MedLedger Entry Point
================================
This is the file you run to start the service.
It does 4 things in order:
    1. Creates the FastAPI app
    2. Connects the audit trail database
    3. Maps ledger errors to HTTP responses
    4. Registers all API route modules

Run with:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000

Or simply:
    python main.py
"""

import logging
import uvicorn
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from config import settings

# ── Database ──────────────────────────────────────────────────────────────────
from db.archive import archive_pending
from db.session import AsyncSessionLocal, init_db

# ── Ledger ────────────────────────────────────────────────────────────────────
from core.errors import LedgerError
from modules.health import AccessController, controller
from api.deps import get_controller

# ── API Routers (one per module) ──────────────────────────────────────────────
from api.routes_identity import router as identity_router
from api.routes_health import router as health_router
from api.routes_consent import router as consent_router


# ── Logging setup ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    handlers=[
        logging.StreamHandler(),                          # print to terminal
        logging.FileHandler(settings.LOG_FILE),           # also save to file
    ],
)
logger = logging.getLogger("medledger.main")


# ── Lifespan: runs on startup and shutdown ────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):

    # ── STARTUP ──────────────────────────────────────────────────────────
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    logger.info("Connecting to database...")
    await init_db()
    logger.info("✓ Database ready")

    logger.info(f"✓ Ledger ready — administrator: {controller.admin}")

    logger.info("=" * 50)
    logger.info(f"  {settings.APP_NAME} is LIVE on port {settings.PORT}")
    logger.info("=" * 50)

    yield   # ← App runs here (handles all requests)

    # ── SHUTDOWN ──────────────────────────────────────────────────────────
    logger.info("Shutting down — archiving remaining audit events...")
    async with AsyncSessionLocal() as db:
        await archive_pending(db, controller.audit_log)
    logger.info("✓ Shutdown complete")


# ── Create the FastAPI app ────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Patient health records under an ownership and consent ledger",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# ── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.ENVIRONMENT == "production":
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=["medledger.example.org", "*.medledger.example.org"],
    )


# ── Ledger errors → HTTP ──────────────────────────────────────────────────────
ERROR_STATUS = {
    "AlreadyRegistered": 409,
    "EmptyField": 422,
    "NotRegistered": 404,
    "NotFound": 404,
    "WrongRole": 403,
    "CallerIsProvider": 403,
    "CallerNotProvider": 403,
    "NoPermission": 403,
    "Unauthorized": 403,
}


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=ERROR_STATUS.get(exc.kind, 400), content=exc.to_dict())


# ── Register all routers ──────────────────────────────────────────────────────
app.include_router(identity_router, prefix="/identity", tags=["Identity"])
app.include_router(health_router,   prefix="/health",   tags=["Health Records"])
app.include_router(consent_router,  prefix="/consent",  tags=["Consent"])


# ── Root endpoint ─────────────────────────────────────────────────────────────
@app.get("/", tags=["Status"])
async def root():
    """Health check — confirms the API is running."""
    return {
        "system": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "operational",
        "docs": "/docs",
    }


@app.get("/health-check", tags=["Status"])
async def health_check(ledger: AccessController = Depends(get_controller)):
    """Deep health check — ledger counters and audit chain integrity."""
    return {
        "api": "ok",
        "total_records": ledger.get_total_records(),
        "audit_events": len(ledger.audit_log),
        "audit_chain": "ok" if ledger.audit_log.verify() else "broken",
    }


# ── Run directly ──────────────────────────────────────────────────────────────
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
