# vdc/main.py
"""
FastAPI application entry point.
Builds the per-process handles (database, audit log, sync engine, scheduler),
registers error handlers and routers.
"""

import time
from typing import Optional

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from vdc.config import settings
from vdc.database import Database
from vdc.exceptions import AuthenticationError
from vdc.routers import auth, vehicles, sync, monitor, health
from vdc.services.audit_service import AuditLog
from vdc.services.export_client import ExportClient
from vdc.services.sync_scheduler import SyncScheduler
from vdc.services.sync_service import SyncEngine
from vdc.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(database: Optional[Database] = None,
               export_transport: Optional[httpx.AsyncBaseTransport] = None,
               scheduler_enabled: Optional[bool] = None) -> FastAPI:
    app = FastAPI(
        title="Vehicle Data Center API",
        description="GA-off → PDI-in → delivery tracking and logistics platform sync.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # ── Process handles ──────────────────────────────────────────────────────
    db = database or Database(settings.DATABASE_URL)
    audit = AuditLog(db.SessionLocal)
    engine = SyncEngine(
        db.SessionLocal,
        audit,
        ExportClient.from_settings(transport=export_transport),
        mark_failed_as_synced=settings.SYNC_MARK_FAILED_AS_SYNCED,
    )
    app.state.db = db
    app.state.audit = audit
    app.state.sync_engine = engine
    app.state.scheduler = SyncScheduler(engine, settings.SYNC_INTERVAL_SECONDS)
    app.state.scheduler_enabled = (
        settings.SYNC_SCHEDULER_ENABLED if scheduler_enabled is None else scheduler_enabled
    )

    # ── CORS (dashboard is served from another host) ─────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Request Timing Middleware ────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 2)
        logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
        return response

    # ── Exception Handlers ───────────────────────────────────────────────────
    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error", "message": str(exc)},
        )

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(auth.router,     prefix="/api", tags=["🔑 Auth"])
    app.include_router(vehicles.router, prefix="/api", tags=["🚗 Vehicles"])
    app.include_router(sync.router,     prefix="/api", tags=["🔄 Sync"])
    app.include_router(monitor.router,  prefix="/api", tags=["📊 Monitor"])
    app.include_router(health.router,   prefix="/api", tags=["💚 Health"])

    # ── Startup / Shutdown ───────────────────────────────────────────────────
    @app.on_event("startup")
    async def startup():
        logger.info("🚀 VDC Backend starting up...")
        # Refuses to start when the store is unreachable
        app.state.db.connect()
        logger.info("✅ Database connection successful")
        app.state.db.create_tables()
        logger.info("✅ Database tables ready")
        if app.state.scheduler_enabled:
            app.state.scheduler.start()
        else:
            logger.info("Sync scheduler disabled on this worker")
        logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")

    @app.on_event("shutdown")
    async def shutdown():
        logger.info("🛑 VDC Backend shutting down...")
        await app.state.scheduler.stop()
        app.state.db.dispose()

    return app


app = create_app()
