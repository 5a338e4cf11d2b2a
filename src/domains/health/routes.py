from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

SERVICE_NAME = "flood-relief-api"
SERVICE_VERSION = "0.1.0"

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    service: str
    version: str


@router.get("/health", response_model=HealthResponse, operation_id="healthCheck")
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc),
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
    )
