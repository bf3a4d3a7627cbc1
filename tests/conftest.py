"""Common test fixtures for the Nootverse client."""

import pytest

from nootverse_client.models.schema import Scope, Session
from nootverse_client.observability import metrics
from nootverse_client.remote.memory_actor import InMemoryActor
from nootverse_client.store import NoteStore, UniverseStore
from nootverse_client.sync import SyncEngine
from tests.fakes import FakeClock, ScriptedChannel


@pytest.fixture(params=["asyncio"])
def anyio_backend(request):
    """Restrict anyio tests to asyncio only (trio is not installed)."""
    return request.param


@pytest.fixture(autouse=True)
def _reset_metrics():
    """Keep the global metrics collector isolated between tests."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def actor(clock):
    """A fresh in-process actor."""
    return InMemoryActor(clock_ns=clock)


@pytest.fixture
def alice():
    return Session.signed_in("alice", principal="alice")


@pytest.fixture
def channel(actor):
    """Scripted channel calling the actor as alice."""
    return ScriptedChannel(actor.channel("alice"))


@pytest.fixture
def note_store(channel):
    return NoteStore(channel)


@pytest.fixture
def universe_store(channel, clock):
    return UniverseStore(channel, clock_ms=clock.ms)


@pytest.fixture
def note_engine(note_store, alice):
    """Notes engine for alice's owned list (local search)."""
    return SyncEngine(note_store, Scope.OWNED, session=alice)


@pytest.fixture
def universe_engine(universe_store, alice):
    """Alice's own universes."""
    return SyncEngine(universe_store, Scope.OWNED, session=alice)


@pytest.fixture
def public_engine(universe_store, alice):
    """Public universes (remote search)."""
    return SyncEngine(universe_store, Scope.PUBLIC, session=alice)
