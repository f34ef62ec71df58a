from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.auth.dependencies import get_current_user
from salon.database import get_db
from salon.models.service import Service
from salon.models.user import User
from salon.routes.common import database_unavailable, ensure_database_ready, get_owned_or_404

router = APIRouter(tags=['services'])


class ServiceRequest(BaseModel):
    name: str
    duration: int = Field(gt=0)
    price: Decimal = Field(default=Decimal('0'), ge=0)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized


class ServiceResponse(BaseModel):
    id: int
    name: str
    duration: int
    price: Decimal

    class Config:
        from_attributes = True


@router.get('', response_model=list[ServiceResponse])
def list_services(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return db.query(Service).filter(Service.user_id == current_user.id).order_by(Service.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        service = Service(user_id=current_user.id, **data.model_dump())
        db.add(service)
        db.commit()
        db.refresh(service)

        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{service_id}', response_model=ServiceResponse)
def update_service(
    service_id: int,
    data: ServiceRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        service = get_owned_or_404(db, Service, service_id, current_user.id, 'Service not found.')
        for field, value in data.model_dump().items():
            setattr(service, field, value)
        db.commit()
        db.refresh(service)

        return service
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{service_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_service(
    service_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        service = get_owned_or_404(db, Service, service_id, current_user.id, 'Service not found.')
        db.delete(service)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
