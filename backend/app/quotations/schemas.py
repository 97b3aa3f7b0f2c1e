from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from .models import BuildType, DiscountType, QuotationStatus


class QuotationCreate(BaseModel):
    project_name: str = Field(min_length=1, max_length=255)
    project_type: Optional[str] = Field(None, max_length=64)
    client_name: str = Field(min_length=1, max_length=255)
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = Field(None, max_length=64)
    project_address: Optional[str] = None
    build_type: BuildType = BuildType.handmade


class QuotationUpdate(BaseModel):
    project_name: Optional[str] = Field(None, min_length=1, max_length=255)
    project_type: Optional[str] = Field(None, max_length=64)
    client_name: Optional[str] = Field(None, min_length=1, max_length=255)
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = Field(None, max_length=64)
    project_address: Optional[str] = None
    build_type: Optional[BuildType] = None
    status: Optional[QuotationStatus] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


class QuotationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    quote_id: str
    user_id: int
    project_name: str
    project_type: Optional[str] = None
    client_name: str
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    project_address: Optional[str] = None
    build_type: BuildType
    status: QuotationStatus
    discount_type: DiscountType
    discount_value: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
