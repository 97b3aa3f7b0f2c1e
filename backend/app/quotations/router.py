# backend/app/quotations/router.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from ..deps import get_db
from ..auth.models import EDIT_ROLES, User
from ..auth.utils import current_user, require_roles
from ..audit.models import AuditAction, AuditSection
from ..audit.utils import diff_summary, log_audit
from ..locks.models import QuotationLock
from ..shared.logging import get_logger
from . import models as m
from . import schemas as s
from .utils import snapshot, unique_quote_id

log = get_logger(__name__)

router = APIRouter(prefix="/api/quotations", tags=["quotations"])


def _get_or_404(db: Session, qid: int) -> m.Quotation:
    q = db.get(m.Quotation, qid)
    if not q:
        raise HTTPException(404, "Quotation not found")
    return q


@router.get("", response_model=list[s.QuotationOut])
def list_quotations(
    mine: bool = Query(False, description="only quotations I created"),
    db: Session = Depends(get_db),
    user: User = Depends(current_user),
):
    q = select(m.Quotation).order_by(m.Quotation.id.desc())
    if mine:
        q = q.where(m.Quotation.user_id == user.id)
    return db.scalars(q).all()


@router.get("/{qid}", response_model=s.QuotationOut)
def get_quotation(qid: int, db: Session = Depends(get_db), _: User = Depends(current_user)):
    return _get_or_404(db, qid)


@router.post("", response_model=s.QuotationOut, status_code=201)
def create_quotation(
    payload: s.QuotationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*EDIT_ROLES)),
):
    q = m.Quotation(user_id=user.id, quote_id=unique_quote_id(db), **payload.model_dump())
    db.add(q)
    db.flush()  # q.id
    db.refresh(q)
    log_audit(
        db, user, AuditSection.QUOTES, AuditAction.CREATE, q.id,
        f'Created quotation {q.quote_id} "{q.project_name}"',
        after=snapshot(q),
    )
    db.commit()
    db.refresh(q)
    log.info("quotation %s created by %s", q.quote_id, user.id)
    return q


# edits are not gated on the edit lock: last write wins
@router.patch("/{qid}", response_model=s.QuotationOut)
def update_quotation(
    qid: int,
    payload: s.QuotationUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*EDIT_ROLES)),
):
    q = _get_or_404(db, qid)
    before = snapshot(q)
    for k, v in payload.model_dump(exclude_unset=True).items():
        if v is None and k in ("project_name", "client_name", "build_type", "status",
                               "discount_type", "discount_value"):
            raise HTTPException(400, f"{k} cannot be null")
        setattr(q, k, v)
    db.flush()
    db.refresh(q)
    after = snapshot(q)
    if after != before:
        log_audit(
            db, user, AuditSection.QUOTES, AuditAction.UPDATE, q.id,
            diff_summary(f"quotation {q.quote_id}", before, after),
            before=before, after=after,
        )
    db.commit()
    db.refresh(q)
    return q


@router.delete("/{qid}", status_code=204)
def delete_quotation(
    qid: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(*EDIT_ROLES)),
):
    q = _get_or_404(db, qid)
    before = snapshot(q)
    # SQLite leaves FK cascades off unless asked; drop the lock row explicitly
    db.execute(delete(QuotationLock).where(QuotationLock.quotation_id == qid))
    db.delete(q)
    log_audit(
        db, user, AuditSection.QUOTES, AuditAction.DELETE, qid,
        f'Deleted quotation {before["quote_id"]} "{before["project_name"]}"',
        before=before,
    )
    db.commit()
    log.info("quotation %s deleted by %s", before["quote_id"], user.id)
    return
