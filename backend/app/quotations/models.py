from __future__ import annotations
import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Integer,
    Text,
    Numeric,
    ForeignKey,
    DateTime,
    Enum as SAEnum,
    func,
)
from ..shared.db import Base


class BuildType(str, enum.Enum):
    handmade = "handmade"
    factory = "factory"


class QuotationStatus(str, enum.Enum):
    draft = "draft"
    sent = "sent"
    accepted = "accepted"
    rejected = "rejected"
    approved = "approved"
    cancelled = "cancelled"


class DiscountType(str, enum.Enum):
    percent = "percent"
    amount = "amount"


class Quotation(Base):
    __tablename__ = "quotations"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    quote_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)  # TRE_QT_250113_A1B2
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_type: Mapped[str | None] = mapped_column(String(64), nullable=True)  # 2 BHK, Villa, ...
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    client_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    project_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    build_type: Mapped[BuildType] = mapped_column(
        SAEnum(BuildType, name="build_type_enum"), nullable=False, default=BuildType.handmade
    )
    status: Mapped[QuotationStatus] = mapped_column(
        SAEnum(QuotationStatus, name="quotation_status_enum"),
        nullable=False,
        default=QuotationStatus.draft,
    )
    discount_type: Mapped[DiscountType] = mapped_column(
        SAEnum(DiscountType, name="discount_type_enum"),
        nullable=False,
        default=DiscountType.percent,
    )
    discount_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
