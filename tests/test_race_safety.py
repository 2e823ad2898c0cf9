"""Concurrent find-or-create against a shared file database."""
import threading

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from tourify.database import Base, get_engine
from tourify.models import Account, ArtistProfile
from tourify.services.account_store import AccountStore
from tourify.services.attribution import AttributionResolver
from tourify.services.display_cache import DisplayInfoCache
from tourify.services.display_projector import DisplayProjector

WORKERS = 8


@pytest.fixture
def file_sessions(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False)
    engine.dispose()


@pytest.fixture
def shared_profile(file_sessions, test_user_id):
    session = file_sessions()
    profile = ArtistProfile(user_id=test_user_id, artist_name="Midnight Collective")
    session.add(profile)
    session.commit()
    profile_id = profile.id
    session.close()
    return profile_id


def run_concurrently(target):
    barrier = threading.Barrier(WORKERS)
    results, errors = [], []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        try:
            value = target()
        except Exception as e:
            with lock:
                errors.append(e)
            return
        with lock:
            results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(WORKERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results, errors


def test_concurrent_find_or_create_yields_one_account(file_sessions, shared_profile, test_user_id):
    def create():
        session = file_sessions()
        try:
            return AccountStore(session).find_or_create_account(
                test_user_id, "artist", "artist_profiles", shared_profile
            )
        finally:
            session.close()

    results, errors = run_concurrently(create)

    assert errors == []
    assert len(results) == WORKERS
    assert len(set(results)) == 1

    session = file_sessions()
    try:
        assert session.scalar(select(func.count(Account.id))) == 1
    finally:
        session.close()


def test_concurrent_resolution_yields_one_identity(file_sessions, shared_profile, test_user_id):
    cache = DisplayInfoCache()

    def resolve():
        session = file_sessions()
        try:
            store = AccountStore(session)
            resolver = AttributionResolver(session, store, DisplayProjector(session, cache=cache))
            return resolver.resolve_posting_identity(test_user_id, "artist")
        finally:
            session.close()

    results, errors = run_concurrently(resolve)

    assert errors == []
    assert len({identity.account_id for identity in results}) == 1
    assert {identity.display_info.display_name for identity in results} == {"Midnight Collective"}
