import pytest
from fastapi.testclient import TestClient

from lastmile_server.config import Settings
from lastmile_server.database.memory_store import InMemoryStore
from lastmile_server.main import create_app
from lastmile_server.modules.deployments.service import DeploymentRegistry

API_KEY = "demo_api_key_12345"


@pytest.fixture
def test_settings():
    """Settings isolated from .env and the process environment defaults that matter in tests."""
    return Settings(
        _env_file=None,
        stage_delay_seconds=0.01,
        rate_limit="10000/minute",
        demo_rate_limit=10000,
        environment="test",
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def registry(store):
    """Registry driven manually through step()."""
    return DeploymentRegistry(store, platform_domain="lastmile.app", stage_delay=0.01, auto_advance=False)


@pytest.fixture
def app(test_settings, store):
    return create_app(test_settings, store=store, auto_advance=False)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"X-API-Key": API_KEY}
