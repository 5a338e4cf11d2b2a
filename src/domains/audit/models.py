from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    id: str
    actor_user_id: Optional[str] = Field(default=None, alias="actorUserId")
    action: str
    target_type: str = Field(alias="targetType")
    target_id: Optional[str] = Field(default=None, alias="targetId")
    metadata: Optional[Any] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
