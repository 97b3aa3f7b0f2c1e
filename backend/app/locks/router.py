# backend/app/locks/router.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from ..deps import get_db
from ..auth.utils import current_user, require_roles
from ..auth.models import EDIT_ROLES, User, UserRole
from ..audit.models import AuditAction, AuditSection
from ..audit.utils import log_audit
from ..quotations.models import Quotation
from ..shared.logging import get_logger
from .schemas import LockOut, LockReleaseOut
from .service import LockConflict, LockLost, LockView, QuotationLockManager

log = get_logger(__name__)

router = APIRouter(prefix="/api/quotations", tags=["locks"])


def get_lock_manager(db: Session = Depends(get_db)) -> QuotationLockManager:
    return QuotationLockManager(db)


def _ensure_quotation(db: Session, qid: int) -> None:
    if db.get(Quotation, qid) is None:
        raise HTTPException(404, "Quotation not found")


def _to_out(mgr: QuotationLockManager, view: LockView | None) -> LockOut:
    if view is None:
        return LockOut(is_locked=False)
    return LockOut(
        is_locked=True,
        locked_by=view.holder_id,
        locked_by_name=view.holder_name,
        locked_at=view.acquired_at,
        renewed_at=view.renewed_at,
        expires_at=view.expires_at,
        expires_in_sec=view.remaining_sec(mgr.clock()),
    )


def _store_down(mgr: QuotationLockManager, qid: int, op: str) -> None:
    mgr.db.rollback()
    log.exception("lock %s failed for quotation %s", op, qid)


@router.get("/{qid}/lock", response_model=LockOut)
def lock_status(
    qid: int,
    mgr: QuotationLockManager = Depends(get_lock_manager),
    _: User = Depends(current_user),
):
    try:
        _ensure_quotation(mgr.db, qid)
        return _to_out(mgr, mgr.status(qid))
    except SQLAlchemyError:
        _store_down(mgr, qid, "status")
        return LockOut(is_locked=False, available=False)


@router.post("/{qid}/lock", response_model=LockOut)
def acquire_lock(
    qid: int,
    mgr: QuotationLockManager = Depends(get_lock_manager),
    user: User = Depends(require_roles(*EDIT_ROLES)),
):
    try:
        _ensure_quotation(mgr.db, qid)
        view = mgr.acquire(qid, str(user.id), user.name)
    except LockConflict as e:
        log.info("lock conflict on quotation %s: %s holds it, %s refused", qid, e.holder_id, user.id)
        raise HTTPException(
            status_code=409,
            detail={
                "code": "lock_conflict",
                "message": f"Quotation is being edited by {e.holder_name}",
                "lockedBy": e.holder_id,
                "lockedByName": e.holder_name,
            },
        )
    except SQLAlchemyError:
        _store_down(mgr, qid, "acquire")
        raise HTTPException(503, {"code": "lock_unavailable", "message": "Lock store unavailable"})
    return _to_out(mgr, view)


@router.patch("/{qid}/lock", response_model=LockOut)
def heartbeat(
    qid: int,
    mgr: QuotationLockManager = Depends(get_lock_manager),
    user: User = Depends(require_roles(*EDIT_ROLES)),
):
    try:
        view = mgr.heartbeat(qid, str(user.id))
    except LockLost:
        log.warning("heartbeat from %s on quotation %s: lock lost", user.id, qid)
        raise HTTPException(
            status_code=409,
            detail={"code": "lock_lost", "message": "Lock expired or held by another user"},
        )
    except SQLAlchemyError:
        _store_down(mgr, qid, "heartbeat")
        raise HTTPException(503, {"code": "lock_unavailable", "message": "Lock store unavailable"})
    return _to_out(mgr, view)


@router.delete("/{qid}/lock", response_model=LockReleaseOut)
def release_lock(
    qid: int,
    mgr: QuotationLockManager = Depends(get_lock_manager),
    user: User = Depends(current_user),
):
    try:
        released = mgr.release(qid, str(user.id))
    except SQLAlchemyError:
        # best effort; the lease runs out on its own
        _store_down(mgr, qid, "release")
        return {"released": False}
    return {"released": released}


@router.delete("/{qid}/lock/force", response_model=LockReleaseOut)
def force_release(
    qid: int,
    mgr: QuotationLockManager = Depends(get_lock_manager),
    admin: User = Depends(require_roles(UserRole.admin)),
):
    view = mgr.force_release(qid)
    if view is None:
        return {"released": False}
    log_audit(
        mgr.db,
        admin,
        AuditSection.LOCKS,
        AuditAction.DELETE,
        qid,
        f"Force-released lock held by {view.holder_name}",
        before={"holder_id": view.holder_id, "holder_name": view.holder_name,
                "acquired_at": view.acquired_at, "expires_at": view.expires_at},
    )
    mgr.db.commit()
    log.info("admin %s force-released lock on quotation %s (holder %s)", admin.id, qid, view.holder_id)
    return {"released": True}
