from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon.auth.dependencies import get_current_user
from salon.database import get_db
from salon.models.client import Client
from salon.models.user import User
from salon.routes.common import database_unavailable, ensure_database_ready, get_owned_or_404

router = APIRouter(tags=['clients'])


class ClientRequest(BaseModel):
    name: str
    phone: str | None = None
    email: str | None = None
    notes: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip().lower()


class ClientResponse(BaseModel):
    id: int
    name: str
    phone: str | None = None
    email: str | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


@router.get('', response_model=list[ClientResponse])
def list_clients(
    search: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        query = db.query(Client).filter(Client.user_id == current_user.id)

        term = (search or '').strip()
        if term:
            pattern = f'%{term}%'
            query = query.filter(
                or_(Client.name.ilike(pattern), Client.phone.ilike(pattern), Client.email.ilike(pattern))
            )

        return query.order_by(Client.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.post('', response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    data: ClientRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        client = Client(user_id=current_user.id, **data.model_dump())
        db.add(client)
        db.commit()
        db.refresh(client)

        return client
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.put('/{client_id}', response_model=ClientResponse)
def update_client(
    client_id: int,
    data: ClientRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        client = get_owned_or_404(db, Client, client_id, current_user.id, 'Client not found.')
        for field, value in data.model_dump().items():
            setattr(client, field, value)
        db.commit()
        db.refresh(client)

        return client
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.delete('/{client_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        client = get_owned_or_404(db, Client, client_id, current_user.id, 'Client not found.')
        db.delete(client)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
