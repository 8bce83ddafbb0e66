"""FastAPI application for ScrumBoard"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import make_url

from .api.comments import router as comments_router
from .api.issues import router as issues_router
from .api.logs import router as logs_router
from .api.projects import router as projects_router
from .api.sprints import router as sprints_router
from .api.users import router as users_router
from .config import Settings, get_settings
from .errors import ScrumBoardError
from .logging import get_logger, set_correlation_id, setup_logging
from .storage import build_services
from .storage.migrations import initialize_database

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application; services are created when the lifespan starts"""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.logging)
        if settings.run_migrations_on_startup:
            initialize_database(settings.database)
        app.state.services = build_services(settings.database)
        logger.info("app_started", database=make_url(settings.database.url).render_as_string(hide_password=True))
        try:
            yield
        finally:
            app.state.services.dispose()
            logger.info("app_stopped")

    app = FastAPI(
        title="ScrumBoard API",
        description="Scrum and Kanban project tracker",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    if settings.web.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.web.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        correlation_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
        set_correlation_id(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            set_correlation_id(None)
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
            correlation_id=correlation_id,
        )
        response.headers["X-Request-Id"] = correlation_id
        return response

    @app.exception_handler(ScrumBoardError)
    async def scrumboard_error_handler(request: Request, exc: ScrumBoardError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", method=request.method, path=request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # Include API routers
    app.include_router(projects_router, prefix="/api/projects", tags=["projects"])
    app.include_router(issues_router, prefix="/api/issues", tags=["issues"])
    app.include_router(sprints_router, prefix="/api/sprints", tags=["sprints"])
    app.include_router(comments_router, prefix="/api/comments", tags=["comments"])
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(logs_router, prefix="/api/logs", tags=["logs"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "scrumboard-api"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=get_settings().web.host, port=get_settings().web.port)
