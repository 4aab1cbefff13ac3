from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import require_permission
from app.schemas.task import TaskCreate, TaskEnvelope, TaskRead, TaskStatusUpdate
from app.services.authorization_service import Principal
from app.services.tasks import TaskService, serialize_task

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskEnvelope, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    _principal: Principal = Depends(require_permission("tasks:create")),
    db: Session = Depends(get_db),
):
    task = TaskService.create(
        db,
        title=payload.title,
        description=payload.description,
        assigned_to=str(payload.assigned_to),
        customer_id=str(payload.customer_id),
        status_value=payload.status,
    )
    return {"message": "Task created successfully", "task": serialize_task(task)}


@router.get("", response_model=List[TaskRead])
def list_tasks(
    principal: Principal = Depends(require_permission("tasks:list")),
    db: Session = Depends(get_db),
):
    tasks = TaskService.list(db, current_user_id=principal.user_id, current_role=principal.role)
    return [serialize_task(task) for task in tasks]


@router.patch("/{task_id}/status", response_model=TaskEnvelope)
def update_task_status(
    task_id: str,
    payload: TaskStatusUpdate,
    request: Request,
    principal: Principal = Depends(require_permission("tasks:update_status")),
    db: Session = Depends(get_db),
):
    task = TaskService.update_status(
        db,
        task_id=task_id,
        new_status=payload.status,
        principal=principal,
        request=request,
    )
    return {"message": "Task status updated successfully", "task": serialize_task(task)}
