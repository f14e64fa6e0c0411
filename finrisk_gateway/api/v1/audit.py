"""GET /v1/audit-logs - Fetch the audit trail"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finrisk_gateway.api.v1.schemas import AuditLogResponse, AuditLogEntrySchema
from finrisk_gateway.infrastructure.database.session import get_db
from finrisk_gateway.infrastructure.database.repositories import AuditLogRepository

router = APIRouter()


@router.get("/audit-logs", response_model=AuditLogResponse)
def get_audit_logs(
    application_id: Optional[str] = Query(None, description="Restrict to one application"),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    Retrieve audit entries, newest first.

    Returns:
        Entries in reverse creation order
    """
    audit_repo = AuditLogRepository(db)
    entries = audit_repo.list_entries(application_id=application_id, limit=limit)

    return AuditLogResponse(
        application_id=application_id,
        entries=[AuditLogEntrySchema.model_validate(e) for e in entries],
    )
