import os

# Must be set before config/database are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["INITIAL_PARENT_PASSWORD"] = "123456"

import pytest
from fastapi.testclient import TestClient

import main
from database import Base, SessionLocal, engine
from seed import seed_data


@pytest.fixture()
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_data(session)
    yield session
    session.close()


@pytest.fixture()
def client(db):
    with TestClient(main.app) as c:
        yield c


def login(client, username, password):
    return client.post("/api/v1/auth/login", json={"phone_or_username": username, "password": password})


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    response = login(client, "admin", "admin123")
    assert response.status_code == 200
    return bearer(response.json()["access_token"])


def session_row(code, name, parent_phone, **extra):
    row = {"id": code, "name": name, "parent_phone": parent_phone}
    row.update(extra)
    return row
