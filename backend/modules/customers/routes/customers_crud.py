"""ShopDesk — Customers and Vehicles CRUD."""

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from core.db import get_db
from core.errors import NotFoundError
from core.rbac import require_role
from modules.customers.models import Customer, Vehicle
from modules.customers.schemas import (
    CustomerCreate, CustomerUpdate, CustomerResponse,
    VehicleCreate, VehicleResponse,
)

log = logging.getLogger("shop.api")

router = APIRouter(prefix="/customers", tags=["Customers"])


def _get_customer_or_404(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError("Customer", customer_id)
    return customer


# -------------- Customers CRUD --------------

@router.get("", response_model=List[CustomerResponse])
def list_customers(
    search: Optional[str] = None,
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    """List customers, optionally filtered by name, email or phone."""
    query = db.query(Customer)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Customer.first_name.ilike(pattern),
            Customer.last_name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))
    return query.order_by(Customer.last_name, Customer.first_name).all()


@router.post("", response_model=CustomerResponse, status_code=201)
def create_customer(
    data: CustomerCreate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    """Create a customer with optional vehicles."""
    customer = Customer(**data.model_dump(exclude={"vehicles"}))
    for vehicle_data in data.vehicles or []:
        customer.vehicles.append(Vehicle(**vehicle_data.model_dump()))
    db.add(customer)
    db.commit()
    db.refresh(customer)
    log.info(f"Created customer {customer.id}")
    return customer


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: int,
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    return _get_customer_or_404(db, customer_id)


@router.patch("/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    updates: CustomerUpdate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    """Update a customer."""
    customer = _get_customer_or_404(db, customer_id)
    for key, value in updates.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)
    return customer


@router.delete("/{customer_id}", status_code=204)
def delete_customer(
    customer_id: int,
    current_user: dict = Depends(require_role("admin")),
    db: Session = Depends(get_db),
):
    """Delete a customer and their vehicles."""
    customer = _get_customer_or_404(db, customer_id)
    db.delete(customer)
    db.commit()


# -------------- Vehicles --------------

@router.post("/{customer_id}/vehicles", response_model=VehicleResponse, status_code=201)
def add_vehicle(
    customer_id: int,
    data: VehicleCreate,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    """Attach a vehicle to a customer."""
    customer = _get_customer_or_404(db, customer_id)
    vehicle = Vehicle(customer_id=customer.id, **data.model_dump())
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    return vehicle


@router.delete("/{customer_id}/vehicles/{vehicle_id}", status_code=204)
def delete_vehicle(
    customer_id: int,
    vehicle_id: int,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    vehicle = db.query(Vehicle).filter(
        Vehicle.id == vehicle_id, Vehicle.customer_id == customer_id
    ).first()
    if not vehicle:
        raise NotFoundError("Vehicle", vehicle_id)
    db.delete(vehicle)
    db.commit()
