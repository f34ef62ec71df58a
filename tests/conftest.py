import os
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from salon.database import (  # noqa: E402
    Base,
    create_store_engine,
    ensure_appointment_schema,
    ensure_professional_schema,
)
from salon.models.appointment import Appointment  # noqa: E402,F401
from salon.models.client import Client  # noqa: E402
from salon.models.professional import Professional  # noqa: E402
from salon.models.service import Service  # noqa: E402
from salon.models.user import User  # noqa: E402

WEEKDAY_HOURS = {
    '0': None,
    '1': {'start': '09:00', 'end': '18:00'},
    '2': {'start': '09:00', 'end': '18:00'},
    '3': {'start': '09:00', 'end': '18:00'},
    '4': {'start': '09:00', 'end': '18:00'},
    '5': {'start': '10:00', 'end': '14:00'},
}


@pytest.fixture
def store_engine(tmp_path):
    engine = create_store_engine(f'sqlite:///{tmp_path / "salon-test.db"}')
    Base.metadata.create_all(bind=engine)
    ensure_professional_schema(engine)
    ensure_appointment_schema(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(store_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=store_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db):
    user = User(email='owner@salon.test', business_name='Salon Test', role='owner')
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def professional(db, owner):
    record = Professional(
        user_id=owner.id,
        name='Lucia',
        specialty='Hair',
        color='#d4a5a5',
        working_hours=WEEKDAY_HOURS,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def service(db, owner):
    record = Service(user_id=owner.id, name='Haircut', duration=30, price=Decimal('25.00'))
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def salon_client(db, owner):
    record = Client(user_id=owner.id, name='Marta Gil', phone='600123123', email='marta@example.com')
    db.add(record)
    db.commit()
    db.refresh(record)
    return record
