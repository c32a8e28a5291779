import os

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .db import Base, engine, get_db
from .errors import error_body, register_error_handlers
from .logging import RequestIdMiddleware, setup_logging
from .routes.companies import router as companies_router
from .routes.drivers import router as drivers_router
from .routes.employees import router as employees_router
from .routes.fleet import alerts_router, passengers_router, router as fleet_tasks_router
from .routes.inventory import materials_router, tools_router
from .routes.projects import router as projects_router
from .routes.tasks import router as tasks_router
from .routes.users import router as users_router
from .routes.vehicles import router as vehicles_router
from .services.envelope import utc_timestamp


logger = structlog.get_logger(__name__)

ENDPOINTS = {
    "health": "/api/health",
    "users": "/api/users",
    "companies": "/api/companies",
    "employees": "/api/employees",
    "projects": "/api/projects",
    "tasks": "/api/tasks",
    "fleetVehicles": "/api/fleet-vehicles",
    "drivers": "/api/drivers",
    "fleetTasks": "/api/fleet-tasks",
    "fleetTaskPassengers": "/api/fleet-task-passengers",
    "fleetAlerts": "/api/fleet-alerts",
    "materials": "/api/materials",
    "tools": "/api/tools",
}


def _rate_limited(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content=error_body(f"Rate limit exceeded: {exc.detail}"))


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limited)
    app.add_middleware(SlowAPIMiddleware)

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.max_body_bytes:
            return JSONResponse(status_code=413, content=error_body("Request body too large"))
        return await call_next(request)

    register_error_handlers(app)

    # Routers
    app.include_router(users_router)
    app.include_router(companies_router)
    app.include_router(employees_router)
    app.include_router(projects_router)
    app.include_router(tasks_router)
    app.include_router(vehicles_router)
    app.include_router(drivers_router)
    app.include_router(fleet_tasks_router)
    app.include_router(passengers_router)
    app.include_router(alerts_router)
    app.include_router(materials_router)
    app.include_router(tools_router)

    @app.get("/")
    def index():
        return {"message": f"{settings.app_name} is running", "endpoints": ENDPOINTS}

    @app.get("/api/health")
    def health(db: Session = Depends(get_db)):
        try:
            db.execute(text("SELECT 1"))
            database = "Connected"
        except SQLAlchemyError as e:
            logger.warning("health_check_failed", error=str(e))
            database = "Disconnected"
        return {"status": "OK", "timestamp": utc_timestamp(), "database": database}

    # Metrics
    Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        logger.info("startup", environment=settings.environment)
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
            logger.info("tables_verified", count=len(Base.metadata.tables))

    return app


app = create_app()
