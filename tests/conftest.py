import os

import httpx
import pytest

from support import ADMIN_TOKEN, SERVICE_ROLE, SITE_PASSWORD, SUPABASE_URL, FakeStorage

os.environ["SUPABASE_URL"] = SUPABASE_URL
os.environ["SUPABASE_SERVICE_ROLE"] = SERVICE_ROLE
os.environ["ADMIN_TOKEN"] = ADMIN_TOKEN
os.environ["SITE_PASSWORD"] = SITE_PASSWORD
os.environ["INCIDENT_STORE"] = "sql"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("BASIC_AUTH_USER", None)
os.environ.pop("BASIC_AUTH_PASS", None)

from fastapi.testclient import TestClient

from app.core.config import Settings, build_intake_config
from app.core.container import build_container, get_container
from app.db.init_db import init_db
from app.db.session import build_engine
from app.main import app
from app.services.incident_gateway import SqlIncidentGateway


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def intake_config():
    return build_intake_config(Settings(_env_file=None))


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(drop_all=True, bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def make_container(intake_config, storage, engine):
    built = []

    def _make(**overrides):
        config = intake_config.model_copy(update=overrides) if overrides else intake_config
        client = httpx.Client(transport=httpx.MockTransport(storage.handler))
        container = build_container(config, http_client=client, incidents=SqlIncidentGateway(engine))
        built.append(container)
        return container

    yield _make
    for container in built:
        container.close()


@pytest.fixture
def container(make_container):
    return make_container()


@pytest.fixture
def client(container):
    app.dependency_overrides[get_container] = lambda: container
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def use_container(client):
    def _use(container):
        app.dependency_overrides[get_container] = lambda: container

    return _use
