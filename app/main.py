import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .database import build_engine, build_session_factory, create_tables
from .errors import register_exception_handlers
from .mailer import Mailer
from .routers import auth, dashboard, family, tasks
from .utils import utcnow

logger = logging.getLogger("taskflow")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its own engine, session factory and mailer."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    engine = build_engine(settings.database_url)

    # Create tables on startup
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_tables(engine)
        logger.info("TaskFlow API ready")
        yield
        engine.dispose()

    app = FastAPI(
        title="TaskFlow API",
        description="Personal and family task management API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.mailer = Mailer(settings)
    app.state.started_at = time.monotonic()

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
    app.include_router(family.router, prefix="/api/family", tags=["family"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])

    @app.get("/")
    def read_root():
        return {
            "message": "TaskFlow API Server",
            "version": "1.0.0",
            "endpoints": {
                "health": "/api/health",
                "auth": "/api/auth/*",
                "tasks": "/api/tasks/*",
                "family": "/api/family/*",
                "dashboard": "/api/dashboard/*",
            },
        }

    @app.get("/api/health")
    def health_check(request: Request):
        return {
            "status": "OK",
            "message": "TaskFlow Server is running",
            "timestamp": utcnow().isoformat(),
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        }

    return app
