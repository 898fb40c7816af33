"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from duty_rotation.auth.security import create_access_token
from duty_rotation.database import Base, create_db_engine, get_db
from duty_rotation.models import Person, PersonRole, Sector, Service, Site
from duty_rotation.services.authorization import Caller
from duty_rotation.services.scope import Scope


@pytest.fixture
def db():
    """Isolated in-memory database per test."""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def _person(person_id, first_name, role, site_id=1, sector_id=None, service_id=None):
    return Person(
        id=person_id,
        first_name=first_name,
        last_name="Test",
        email=f"{first_name.lower()}@example.com",
        role=role,
        site_id=site_id,
        sector_id=sector_id,
        service_id=service_id,
        active=True,
    )


@pytest.fixture
def org(db):
    """
    Two sites. Site 1 has sector 1 (services 1 and 2) and sector 2,
    site 2 has sector 3.
    """
    db.add_all([
        Site(id=1, name="Casablanca"),
        Site(id=2, name="Rabat"),
    ])
    db.commit()
    db.add_all([
        Sector(id=1, site_id=1, name="Maintenance"),
        Sector(id=2, site_id=1, name="Production"),
        Sector(id=3, site_id=2, name="Logistique"),
    ])
    db.commit()
    db.add_all([
        Service(id=1, sector_id=1, name="Electricite"),
        Service(id=2, sector_id=1, name="Mecanique"),
    ])
    db.commit()
    db.add_all([
        _person(1, "Admin", PersonRole.ADMIN),
        _person(2, "Chief", PersonRole.SECTOR_CHIEF, sector_id=1),
        _person(3, "Amine", PersonRole.SECTOR_ENGINEER, sector_id=1),
        _person(4, "Badr", PersonRole.SECTOR_ENGINEER, sector_id=1),
        _person(5, "Chaimae", PersonRole.SECTOR_ENGINEER, sector_id=1),
        _person(6, "Driss", PersonRole.SECTOR_ENGINEER, sector_id=1),
        _person(7, "Hafsa", PersonRole.SERVICE_CHIEF, sector_id=1, service_id=1),
        _person(8, "Imane", PersonRole.SERVICE_COLLABORATOR, sector_id=1, service_id=1),
        _person(9, "Jalal", PersonRole.SERVICE_COLLABORATOR, sector_id=1, service_id=1),
        _person(10, "Karim", PersonRole.SERVICE_COLLABORATOR, sector_id=1, service_id=1),
        _person(11, "Leila", PersonRole.SERVICE_CHIEF, sector_id=1, service_id=2),
        _person(12, "Mehdi", PersonRole.SERVICE_COLLABORATOR, sector_id=1, service_id=2),
        _person(13, "Nadia", PersonRole.SECTOR_CHIEF, sector_id=2),
        _person(14, "Omar", PersonRole.SECTOR_CHIEF, site_id=2, sector_id=3),
        _person(15, "Rachid", PersonRole.SECTOR_ENGINEER, sector_id=2),
    ])
    db.commit()
    
    return SimpleNamespace(
        sector_scope=Scope(site_id=1, sector_id=1),
        service_scope=Scope(site_id=1, sector_id=1, service_id=1),
        sibling_service_scope=Scope(site_id=1, sector_id=1, service_id=2),
        sibling_sector_scope=Scope(site_id=1, sector_id=2),
        remote_scope=Scope(site_id=2, sector_id=3),
        admin_id=1,
        sector_chief_id=2,
        engineers=[3, 4, 5, 6],
        service_chief_id=7,
        collaborators=[8, 9, 10],
        sibling_service_chief_id=11,
        sibling_collaborator_id=12,
        sibling_sector_engineer_id=15,
    )


@pytest.fixture
def caller_for(db):
    """Build a Caller from a seeded person id."""
    def build(person_id):
        return Caller.from_person(db.get(Person, person_id))
    return build


@pytest.fixture
def auth_headers():
    def build(person_id):
        token = create_access_token({"sub": str(person_id)})
        return {"Authorization": f"Bearer {token}"}
    return build


@pytest.fixture
def client(db, org):
    from duty_rotation.main import app
    
    def override_get_db():
        yield db
    
    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
