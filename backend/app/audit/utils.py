# backend/app/audit/utils.py
import json
from typing import Any
from sqlalchemy.orm import Session
from ..auth.models import User
from .models import AuditAction, AuditLog, AuditSection

SUMMARY_MAX = 500


def _dump(snapshot: Any) -> str | None:
    if snapshot is None:
        return None
    return json.dumps(snapshot, default=str, ensure_ascii=False, sort_keys=True)


def log_audit(
    db: Session,
    user: User | None,
    section: AuditSection,
    action: AuditAction,
    target_id: Any,
    summary: str,
    before: Any = None,
    after: Any = None,
) -> AuditLog:
    """Add an audit row to the caller's transaction. The caller commits."""
    entry = AuditLog(
        user_id=str(user.id) if user else "system",
        user_email=user.email if user else None,
        section=section,
        action=action,
        target_id=str(target_id),
        summary=summary[:SUMMARY_MAX],
        before_json=_dump(before),
        after_json=_dump(after),
    )
    db.add(entry)
    return entry


def diff_summary(label: str, before: dict, after: dict) -> str:
    """'Updated X: status: "draft" → "sent", ...' over the keys that changed."""
    changes = [
        f'{k}: "{before.get(k)}" → "{after.get(k)}"'
        for k in sorted(after)
        if k in before and before.get(k) != after.get(k)
    ]
    if not changes:
        return f"Updated {label} (no changes)"
    return f"Updated {label}: " + ", ".join(changes)
