from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, field_validator
import json
from .models import AuditAction, AuditSection


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    user_id: str
    user_email: Optional[str] = None
    section: AuditSection
    action: AuditAction
    target_id: str
    summary: str
    before_json: Optional[Any] = None
    after_json: Optional[Any] = None
    created_at: Optional[datetime] = None

    # stored as text; hand the snapshot back as JSON
    @field_validator("before_json", "after_json", mode="before")
    @classmethod
    def _load_json(cls, v):
        if isinstance(v, str):
            return json.loads(v)
        return v


class AuditPageOut(BaseModel):
    total: int
    items: list[AuditLogOut]
