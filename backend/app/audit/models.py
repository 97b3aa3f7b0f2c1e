from __future__ import annotations
import enum
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Text, DateTime, Enum as SAEnum, Index, func
from ..shared.db import Base


class AuditSection(str, enum.Enum):
    QUOTES = "Quotes"
    LOCKS = "Locks"


class AuditAction(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditLog(Base):
    __tablename__ = "audit_log"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    section: Mapped[AuditSection] = mapped_column(
        SAEnum(AuditSection, name="audit_section_enum"), nullable=False
    )
    action: Mapped[AuditAction] = mapped_column(
        SAEnum(AuditAction, name="audit_action_enum"), nullable=False
    )
    target_id: Mapped[str] = mapped_column(String(64), nullable=False)
    summary: Mapped[str] = mapped_column(String(500), nullable=False)
    before_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    after_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_audit_log_section_created", "section", "created_at"),
        Index("ix_audit_log_target", "target_id"),
    )
