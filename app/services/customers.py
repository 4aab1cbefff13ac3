from __future__ import annotations

import logging
import math
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import DEFAULT_PAGE_SIZE
from app.models.customer import Customer
from app.services.auth_service import normalize_email

logger = logging.getLogger(__name__)

EMAIL_CONFLICT = "Email already exists"
PHONE_CONFLICT = "Phone number already exists"


def _normalize_phone(phone: str) -> str:
    return (phone or "").strip()


def _clean_company(company: str | None) -> str | None:
    if company is None:
        return None
    company = company.strip()
    return company or None


# SQLite names the column ("customers.phone"); PostgreSQL names the index and the key
_PHONE_CONSTRAINT_MARKERS = ("customers.phone", "ix_customers_phone", "key (phone)")


def conflict_detail(exc: IntegrityError) -> str:
    message = str(getattr(exc, "orig", exc)).lower()
    if any(marker in message for marker in _PHONE_CONSTRAINT_MARKERS):
        return PHONE_CONFLICT
    return EMAIL_CONFLICT


class CustomerService:
    """Customer directory with unique email and unique phone."""

    @staticmethod
    def _ensure_unique(db: Session, *, email: str | None, phone: str | None, exclude_id: str | None = None) -> None:
        # email is checked before phone
        if email is not None:
            query = db.query(Customer.id).filter(Customer.email == email)
            if exclude_id is not None:
                query = query.filter(Customer.id != exclude_id)
            if query.first():
                logger.info("Customer conflict on email=%s", email)
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_CONFLICT)

        if phone is not None:
            query = db.query(Customer.id).filter(Customer.phone == phone)
            if exclude_id is not None:
                query = query.filter(Customer.id != exclude_id)
            if query.first():
                logger.info("Customer conflict on phone=%s", phone)
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=PHONE_CONFLICT)

    @staticmethod
    def _commit_or_conflict(db: Session, customer: Customer) -> None:
        """Commit; a unique constraint hit by a concurrent writer becomes a 409."""
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=conflict_detail(exc)) from exc
        db.refresh(customer)

    @classmethod
    def create(cls, db: Session, *, name: str, email: str, phone: str, company: str | None = None) -> Customer:
        email = normalize_email(email)
        phone = _normalize_phone(phone)
        cls._ensure_unique(db, email=email, phone=phone)

        customer = Customer(
            name=name.strip(),
            email=email,
            phone=phone,
            company=_clean_company(company),
        )
        db.add(customer)
        cls._commit_or_conflict(db, customer)

        logger.info("Customer created customer_id=%s", customer.id)
        return customer

    @staticmethod
    def list(
        db: Session,
        *,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        search: str | None = None,
    ) -> dict[str, Any]:
        query = db.query(Customer)
        clean_search = (search or "").strip()
        if clean_search:
            query = query.filter(
                or_(
                    Customer.name.icontains(clean_search, autoescape=True),
                    Customer.email.icontains(clean_search, autoescape=True),
                    Customer.company.icontains(clean_search, autoescape=True),
                )
            )

        total_records = query.count()
        offset = (page - 1) * limit
        customers = query.order_by(Customer.created_at.desc()).offset(offset).limit(limit).all()

        return {
            "page": page,
            "limit": limit,
            "totalRecords": total_records,
            "totalPages": math.ceil(total_records / limit),
            "data": customers,
        }

    @staticmethod
    def get(db: Session, customer_id: str) -> Customer:
        customer = db.query(Customer).filter(Customer.id == customer_id).first()
        if customer is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Customer with ID {customer_id} not found",
            )
        return customer

    @classmethod
    def update(cls, db: Session, customer_id: str, changes: dict[str, Any]) -> Customer:
        customer = cls.get(db, customer_id)

        email = changes.get("email")
        if email is not None:
            email = normalize_email(email)
        phone = changes.get("phone")
        if phone is not None:
            phone = _normalize_phone(phone)

        cls._ensure_unique(
            db,
            email=email if email is not None and email != customer.email else None,
            phone=phone if phone is not None and phone != customer.phone else None,
            exclude_id=customer.id,
        )

        if changes.get("name") is not None:
            customer.name = changes["name"].strip()
        if email is not None:
            customer.email = email
        if phone is not None:
            customer.phone = phone
        if "company" in changes:
            customer.company = _clean_company(changes["company"])

        cls._commit_or_conflict(db, customer)

        logger.info("Customer updated customer_id=%s fields=%s", customer.id, sorted(changes))
        return customer

    @classmethod
    def delete(cls, db: Session, customer_id: str) -> None:
        customer = cls.get(db, customer_id)
        db.delete(customer)
        db.commit()
        logger.info("Customer deleted customer_id=%s", customer_id)
