from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=30)
    company: Optional[str] = Field(None, max_length=120)

    @field_validator("name", "phone")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        return _strip_required(value)


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=1, max_length=30)
    company: Optional[str] = Field(None, max_length=120)

    @field_validator("name", "phone")
    @classmethod
    def _reject_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _strip_required(value)


class CustomerRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    company: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CustomerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str


class CustomerEnvelope(BaseModel):
    message: str
    customer: CustomerRead


class CustomerPage(BaseModel):
    page: int
    limit: int
    totalRecords: int
    totalPages: int
    data: list[CustomerRead]
