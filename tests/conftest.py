"""Test configuration and fixtures."""

import os

# Test settings must be in place before tourify reads its configuration
os.environ["JWT_SECRET_KEY"] = "test-secret-key-0123456789abcdef0123"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["ACCESS_TOKEN_EXPIRE_MINUTES"] = "30"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)

import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tourify.auth import create_access_token
from tourify.database import Base
from tourify.models import (
    Account, ArtistProfile, GeneralProfile, OrganizerProfile, Post, VenueProfile
)
from tourify.services.account_store import AccountStore
from tourify.services.attribution import AttributionResolver
from tourify.services.content_service import ContentService
from tourify.services.display_cache import DisplayInfoCache
from tourify.services.display_projector import DisplayProjector
from tourify.services.event_bus import InMemoryEventBus
from tourify.services.route_sync import RouteAccountSynchronizer
from tourify.services.session_tracker import ActiveAccountTracker


@pytest.fixture
def engine():
    """In-memory database shared by every session of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def test_db(session_factory):
    """Create test database session."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def test_user_id():
    """Get test user ID."""
    return "test-user-123"


@pytest.fixture
def other_user_id():
    return "other-user-456"


@pytest.fixture
def test_access_token(test_user_id):
    """Create test JWT access token."""
    return create_access_token(test_user_id)


@pytest.fixture
def auth_headers(test_access_token):
    """Get auth headers with test token."""
    return {"Authorization": f"Bearer {test_access_token}"}


@pytest.fixture
def event_bus():
    return InMemoryEventBus()


@pytest.fixture
def display_cache():
    return DisplayInfoCache()


@pytest.fixture
def store(test_db, event_bus, display_cache):
    return AccountStore(test_db, event_bus=event_bus, cache=display_cache)


@pytest.fixture
def projector(test_db, display_cache, event_bus):
    return DisplayProjector(test_db, cache=display_cache, event_bus=event_bus)


@pytest.fixture
def resolver(test_db, store, projector):
    return AttributionResolver(test_db, store, projector)


@pytest.fixture
def tracker(test_db, store, event_bus):
    return ActiveAccountTracker(test_db, store, event_bus=event_bus)


@pytest.fixture
def synchronizer(store, tracker):
    return RouteAccountSynchronizer(store, tracker, onboarding_path="/create")


@pytest.fixture
def content_service(test_db, resolver, store, event_bus):
    return ContentService(test_db, resolver, store, event_bus=event_bus)


@pytest.fixture
def general_profile(test_db, test_user_id):
    """Personal profile for the test user."""
    profile = GeneralProfile(
        id=test_user_id,
        full_name="Jordan Rivers",
        username="jrivers",
        avatar_url="https://cdn.example.com/jordan.png"
    )
    test_db.add(profile)
    test_db.commit()
    return profile


@pytest.fixture
def artist_profile(test_db, test_user_id):
    """Artist profile with an empty stage name."""
    profile = ArtistProfile(
        user_id=test_user_id,
        artist_name="Midnight Collective",
        stage_name="",
        avatar_url="https://cdn.example.com/midnight.png",
        verification_status="verified"
    )
    test_db.add(profile)
    test_db.commit()
    return profile


@pytest.fixture
def venue_profile(test_db, test_user_id):
    profile = VenueProfile(
        user_id=test_user_id,
        venue_name="The Blue Room",
        avatar_url="https://cdn.example.com/blue-room.png"
    )
    test_db.add(profile)
    test_db.commit()
    return profile


@pytest.fixture
def organizer_profile(test_db, test_user_id):
    profile = OrganizerProfile(
        user_id=test_user_id,
        organization_name="Northside Live",
    )
    test_db.add(profile)
    test_db.commit()
    return profile


@pytest.fixture
def make_post(test_db):
    """Insert a post directly, bypassing attribution resolution."""
    def _make_post(account: Account, like_count: int = 0, comment_count: int = 0,
                   created_at: datetime = None) -> Post:
        post = Post(
            owner_user_id=account.owner_user_id,
            account_id=account.id,
            account_type=account.account_type,
            author_display_name=account.display_name,
            author_username=account.username,
            author_avatar_url=account.avatar_url,
            content="Tonight at nine",
            like_count=like_count,
            comment_count=comment_count,
            created_at=created_at or datetime.utcnow()
        )
        test_db.add(post)
        test_db.commit()
        return post
    return _make_post


@pytest.fixture
def timestamps():
    """Distinct, increasing creation times."""
    base = datetime(2024, 5, 1, 12, 0, 0)
    return [base + timedelta(minutes=i) for i in range(10)]
