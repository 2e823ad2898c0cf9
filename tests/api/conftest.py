"""Test client wired to the per-test database."""
import pytest
from fastapi.testclient import TestClient

from tourify.api.deps import get_display_cache, get_event_bus
from tourify.database import get_db
from tourify.main import app


@pytest.fixture
def test_client(session_factory, event_bus, display_cache) -> TestClient:
    """Create a test client."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    app.dependency_overrides[get_display_cache] = lambda: display_cache
    yield TestClient(app)
    app.dependency_overrides.clear()
