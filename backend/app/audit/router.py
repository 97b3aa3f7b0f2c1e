# backend/app/audit/router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from ..deps import get_db
from ..auth.models import UserRole
from ..auth.utils import require_roles
from .models import AuditAction, AuditLog, AuditSection
from .schemas import AuditPageOut

router = APIRouter(prefix="/api/admin/audit", tags=["audit"])


@router.get("", response_model=AuditPageOut)
def list_audit(
    section: AuditSection | None = Query(None),
    action: AuditAction | None = Query(None),
    target_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _=Depends(require_roles(UserRole.admin)),
):
    q = select(AuditLog)
    if section:
        q = q.where(AuditLog.section == section)
    if action:
        q = q.where(AuditLog.action == action)
    if target_id:
        q = q.where(AuditLog.target_id == target_id)

    total = db.scalar(select(func.count()).select_from(q.subquery())) or 0
    rows = db.scalars(
        q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).offset(offset)
    ).all()
    return {"total": int(total), "items": rows}
