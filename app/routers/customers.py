from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.core.database import get_db
from app.deps import require_permission
from app.schemas.customer import (
    CustomerCreate,
    CustomerEnvelope,
    CustomerPage,
    CustomerRead,
    CustomerUpdate,
)
from app.services.authorization_service import Principal
from app.services.customers import CustomerService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("", response_model=CustomerEnvelope, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    _principal: Principal = Depends(require_permission("customers:create")),
    db: Session = Depends(get_db),
):
    customer = CustomerService.create(
        db,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        company=payload.company,
    )
    return {"message": "Customer created successfully", "customer": customer}


@router.get("", response_model=CustomerPage)
def list_customers(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None),
    _principal: Principal = Depends(require_permission("customers:list")),
    db: Session = Depends(get_db),
):
    return CustomerService.list(db, page=page, limit=limit, search=search)


@router.get("/{customer_id}", response_model=CustomerRead)
def get_customer(
    customer_id: str,
    _principal: Principal = Depends(require_permission("customers:read")),
    db: Session = Depends(get_db),
):
    return CustomerService.get(db, customer_id)


@router.patch("/{customer_id}", response_model=CustomerEnvelope)
def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    _principal: Principal = Depends(require_permission("customers:update")),
    db: Session = Depends(get_db),
):
    customer = CustomerService.update(db, customer_id, payload.model_dump(exclude_unset=True))
    return {"message": "Customer updated successfully", "customer": customer}


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: str,
    _principal: Principal = Depends(require_permission("customers:delete")),
    db: Session = Depends(get_db),
):
    CustomerService.delete(db, customer_id)
    return {"message": "Customer deleted successfully"}
