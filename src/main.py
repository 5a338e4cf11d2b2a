import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.core.database import connect_db, disconnect_db
from src.core.logging_config import configure_logging
from src.core.settings import settings
from src.domains.admin.routes import router as admin_router
from src.domains.alerts.routes import router as alerts_router
from src.domains.auth.routes import router as auth_router
from src.domains.health.routes import SERVICE_VERSION
from src.domains.health.routes import router as health_router
from src.domains.inventory.routes import item_types_router
from src.domains.inventory.routes import router as inventory_router
from src.domains.locations.routes import admin_router as admin_locations_router
from src.domains.locations.routes import router as locations_router
from src.domains.relief_groups.routes import router as relief_groups_router
from src.domains.service_requests.routes import router as service_requests_router
from src.domains.services.routes import admin_router as admin_services_router
from src.domains.services.routes import router as services_router
from src.domains.uploads.routes import router as uploads_router

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await connect_db()
    yield
    # Shutdown
    await disconnect_db()


app = FastAPI(
    title="Punjab Flood Relief API",
    description="Coordination API for citizen service requests, relief groups and inventory",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Include routers
app.include_router(health_router)
app.include_router(health_router, prefix="/api/v1")
app.include_router(auth_router, prefix="/api/v1")
app.include_router(relief_groups_router, prefix="/api/v1")
app.include_router(uploads_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(locations_router, prefix="/api/v1")
app.include_router(admin_locations_router, prefix="/api/v1")
app.include_router(services_router, prefix="/api/v1")
app.include_router(admin_services_router, prefix="/api/v1")
app.include_router(alerts_router, prefix="/api/v1")
app.include_router(item_types_router, prefix="/api/v1")
app.include_router(inventory_router, prefix="/api/v1")
app.include_router(service_requests_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Punjab Flood Relief API is running"}
