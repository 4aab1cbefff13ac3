from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.task import TaskStatus
from app.schemas.customer import CustomerSummary
from app.schemas.user import UserSummary


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to: UUID
    customer_id: UUID
    status: TaskStatus = TaskStatus.PENDING

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus
    assigned_to: str
    customer_id: str
    created_at: datetime
    updated_at: datetime
    user: UserSummary
    customer: CustomerSummary


class TaskEnvelope(BaseModel):
    message: str
    task: TaskRead
