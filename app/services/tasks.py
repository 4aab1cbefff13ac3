from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session

from app.models.customer import Customer
from app.models.task import Task, TaskStatus
from app.models.user import Role, User
from app.services.authorization_service import AuthorizationService, Principal

logger = logging.getLogger(__name__)


def serialize_task(task: Task) -> dict:
    """Task payload with the assignee and customer summaries embedded."""
    user = task.user
    customer = task.customer
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "assigned_to": task.assigned_to,
        "customer_id": task.customer_id,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role,
        },
        "customer": {
            "id": customer.id,
            "name": customer.name,
            "email": customer.email,
            "phone": customer.phone,
        },
    }


class TaskService:
    @staticmethod
    def create(
        db: Session,
        *,
        title: str,
        assigned_to: str,
        customer_id: str,
        description: str | None = None,
        status_value: TaskStatus = TaskStatus.PENDING,
    ) -> Task:
        assignee = db.query(User).filter(User.id == assigned_to).first()
        if assignee is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"User with ID {assigned_to} not found",
            )
        if assignee.role != Role.EMPLOYEE.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Tasks can only be assigned to users with EMPLOYEE role",
            )

        customer = db.query(Customer).filter(Customer.id == customer_id).first()
        if customer is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Customer with ID {customer_id} not found",
            )

        task = Task(
            title=title.strip(),
            description=description,
            assigned_to=assignee.id,
            customer_id=customer.id,
            status=TaskStatus(status_value or TaskStatus.PENDING).value,
        )
        db.add(task)
        db.commit()
        db.refresh(task)

        logger.info(
            "Task created task_id=%s assigned_to=%s customer_id=%s",
            task.id,
            task.assigned_to,
            task.customer_id,
        )
        return task

    @staticmethod
    def list(db: Session, *, current_user_id: str, current_role: Role) -> list[Task]:
        query = db.query(Task)
        if Role(current_role) != Role.ADMIN:
            query = query.filter(Task.assigned_to == current_user_id)
        return query.order_by(Task.created_at.desc()).all()

    @staticmethod
    def update_status(
        db: Session,
        *,
        task_id: str,
        new_status: TaskStatus,
        principal: Principal,
        request: Request | None = None,
    ) -> Task:
        task = db.query(Task).filter(Task.id == task_id).first()
        if task is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Task with ID {task_id} not found",
            )

        AuthorizationService.ensure_can_mutate(
            principal=principal,
            owner_id=task.assigned_to,
            operation="tasks:update_status",
            detail="You can only update tasks assigned to you",
            request=request,
        )

        previous_status = task.status
        task.status = TaskStatus(new_status).value
        db.commit()
        db.refresh(task)

        logger.info(
            "Task status changed task_id=%s from=%s to=%s by=%s",
            task.id,
            previous_status,
            task.status,
            principal.user_id,
        )
        return task
