# =======================================================================================
# lockmaster/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .config import config
from .api.routes.access import router as access_router
from .api.routes.buildings import router as buildings_router
from .api.routes.credentials import router as credentials_router
from .api.routes.dashboard import router as dashboard_router
from .api.routes.locks import router as locks_router
from .api.routes.reports import router as reports_router
from .api.routes.schedules import router as schedules_router
from .api.routes.ttlock import router as ttlock_router
from .api.routes.users import router as users_router
from .database import db_manager
from .models.schemas import HealthResponse
from .utils.exceptions import LockmasterError

logger = logging.getLogger(__name__)

# (router, tag) pairs, all mounted under /api
ROUTES = [
    (dashboard_router, "dashboard"),
    (users_router, "users"),
    (buildings_router, "buildings"),
    (locks_router, "locks"),
    (credentials_router, "credentials"),
    (schedules_router, "schedules"),
    (reports_router, "reports"),
    (access_router, "access"),
    (ttlock_router, "ttlock"),
]


def configure_logging():
    level = logging.DEBUG if config.API_DEBUG else getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="LockMaster Property Access API",
        version="1.0.0",
        description="Smart-lock access control for residential properties",
        debug=config.API_DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    for router, tag in ROUTES:
        app.include_router(router, prefix="/api", tags=[tag])

    @app.exception_handler(LockmasterError)
    async def lockmaster_error_handler(request: Request, exc: LockmasterError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def api_health():
        try:
            db_manager.fetch_one("SELECT 1")
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except Exception as e:
            return HealthResponse(
                status="error", dataAvailable=False, message=str(e)
            )

    # to keep old /health for backwards compatibility
    @app.get("/health")
    def legacy_health():
        return {"status": "ok", "dataAvailable": True}

    @app.on_event("startup")
    async def startup_event():
        db_manager.create_all()
        logger.info("LockMaster API started (database: %s)", db_manager.engine.url.render_as_string())

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("lockmaster.main:app", host=config.API_HOST, port=config.API_PORT, reload=config.API_DEBUG)
