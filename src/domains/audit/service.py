import logging
from typing import Any, List, Optional

from prisma import Json, Prisma
from src.domains.audit.models import AuditLogResponse

logger = logging.getLogger(__name__)


async def log_event(
    db: Prisma,
    action: str,
    target_type: str,
    actor_user_id: Optional[str] = None,
    target_id: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> None:
    """
    Record a business event in the audit log.

    A failed audit write is logged and does not fail the calling request.
    """
    data: dict[str, Any] = {
        "action": action,
        "targetType": target_type,
    }
    if actor_user_id:
        data["actorUserId"] = actor_user_id
    if target_id:
        data["targetId"] = target_id
    if metadata is not None:
        data["metadata"] = Json(metadata)

    try:
        await db.auditlog.create(data=data)  # type: ignore[arg-type]
    except Exception as e:
        logger.error(f"Failed to write audit event {action} ({target_type}): {e}")


async def get_audit_trail(
    db: Prisma, target_type: str, target_id: str, limit: int = 100
) -> List[AuditLogResponse]:
    """Audit entries for one target, newest first."""
    entries = await db.auditlog.find_many(
        where={"targetType": target_type, "targetId": target_id},
        order={"createdAt": "desc"},
        take=limit,
    )
    return [AuditLogResponse.model_validate(entry) for entry in entries]
