import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app


@pytest.fixture()
def db():
    return mongomock.MongoClient()["climate_telemetry_test"]


@pytest.fixture()
def settings():
    return Settings(database_name="climate_telemetry_test")


@pytest.fixture()
def app(db, settings):
    return create_app(settings=settings, database=db)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
