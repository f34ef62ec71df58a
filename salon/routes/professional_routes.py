from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.auth.dependencies import get_current_user
from salon.database import get_db
from salon.models.professional import Professional
from salon.models.user import User
from salon.routes.common import database_unavailable, ensure_database_ready, get_owned_or_404
from salon.scheduling.working_hours import dump_working_hours, parse_working_hours

router = APIRouter(tags=['professionals'])


class ProfessionalRequest(BaseModel):
    name: str
    specialty: str = ''
    color: str | None = None
    working_hours: dict[str, Any] | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('specialty')
    @classmethod
    def normalize_specialty(cls, value: str) -> str:
        return value.strip()

    @field_validator('working_hours')
    @classmethod
    def validate_working_hours(cls, value: dict[str, Any] | None) -> dict[str, Any] | None:
        if value is None:
            return None
        return dump_working_hours(parse_working_hours(value))


class ProfessionalResponse(BaseModel):
    id: int
    name: str
    specialty: str
    color: str | None = None
    working_hours: dict[str, Any] | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[ProfessionalResponse])
def list_professionals(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return db.query(Professional).filter(
            Professional.user_id == current_user.id,
        ).order_by(Professional.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=ProfessionalResponse, status_code=status.HTTP_201_CREATED)
def create_professional(
    data: ProfessionalRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        professional = Professional(user_id=current_user.id, **data.model_dump())
        db.add(professional)
        db.commit()
        db.refresh(professional)

        return professional
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{professional_id}', response_model=ProfessionalResponse)
def update_professional(
    professional_id: int,
    data: ProfessionalRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        professional = get_owned_or_404(db, Professional, professional_id, current_user.id, 'Professional not found.')
        for field, value in data.model_dump().items():
            setattr(professional, field, value)
        db.commit()
        db.refresh(professional)

        return professional
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{professional_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_professional(
    professional_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        professional = get_owned_or_404(db, Professional, professional_id, current_user.id, 'Professional not found.')
        db.delete(professional)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
