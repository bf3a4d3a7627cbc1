"""Tests for the client facade wiring sessions to engines."""
import pytest

from nootverse_client.client import NootverseClient
from nootverse_client.exceptions import TransportError
from nootverse_client.models.schema import NoteInput, Session, UniverseInput
from tests.fakes import ScriptedChannel


@pytest.fixture
def scripted(actor):
    """Channels handed out by the client, most recent last."""
    channels = []

    def factory(credential):
        channel = ScriptedChannel(actor.channel(credential))
        channels.append(channel)
        return channel

    factory.channels = channels
    return factory


@pytest.fixture
def client(scripted):
    return NootverseClient(channel_factory=scripted)


async def _publish(actor, principal, title):
    await actor.channel(principal).call(
        "createUniverse",
        {"title": title, "description": "", "content": "", "isPublic": True, "tags": []},
    )


class TestSession:
    """Login and logout propagate to every engine."""

    @pytest.mark.anyio
    async def test_anonymous_start_loads_public_only(self, client, actor, scripted):
        await _publish(actor, "bob", "Dune")
        await client.start()
        assert [u.title for u in client.public_universes.cache] == ["Dune"]
        assert len(client.notes.cache) == 0
        assert scripted.channels[-1].methods_called() == ["getPublicUniverses"]

    @pytest.mark.anyio
    async def test_sign_in_rebinds_channel_and_loads(self, client, actor, scripted):
        await actor.channel("alice").call("addNote", "n1", "Mine", "", [])
        await client.set_session(Session.signed_in("alice", principal="alice"))
        assert len(scripted.channels) == 2
        assert [n.title for n in client.notes.cache] == ["Mine"]
        assert await client.whoami() == "alice"
        assert sorted(scripted.channels[-1].methods_called()) == [
            "getAllOwnedNotes",
            "getMyUniverses",
            "getPublicUniverses",
            "whoami",
        ]

    @pytest.mark.anyio
    async def test_sign_out_clears_owned_lists(self, client):
        await client.set_session(Session.signed_in("alice", principal="alice"))
        client.notes.open_create()
        await client.notes.commit(NoteInput(title="Mine"))
        client.my_universes.open_create()
        await client.my_universes.commit(UniverseInput(title="World", is_public=True))

        await client.set_session(Session.anonymous())
        assert len(client.notes.cache) == 0
        assert len(client.my_universes.cache) == 0
        assert [u.title for u in client.public_universes.cache] == ["World"]

    @pytest.mark.anyio
    async def test_sessions_do_not_share_notes(self, client, actor):
        await actor.channel("bob").call("addNote", "b1", "Bob's", "", [])
        await client.set_session(Session.signed_in("alice", principal="alice"))
        assert len(client.notes.cache) == 0


class TestExplore:
    """Public universes and stats load together."""

    @pytest.mark.anyio
    async def test_load_explore(self, client, actor):
        await _publish(actor, "bob", "Dune")
        await actor.channel("carol").call(
            "createUniverse",
            {"title": "Draft", "description": "", "content": "", "isPublic": False, "tags": []},
        )
        stats = await client.load_explore()
        assert stats.total_universes == 2
        assert stats.public_universes == 1
        assert stats.total_users == 2
        assert client.stats == stats
        assert [u.title for u in client.public_universes.cache] == ["Dune"]

    @pytest.mark.anyio
    async def test_stats_failure_becomes_notice(self, client, scripted):
        scripted.channels[-1].fail_next("getStats", TransportError("offline"))
        assert await client.load_explore() is None
        (notice,) = client.public_universes.notices
        assert notice.operation == "stats"
        assert client.public_universes.cache.loaded is True

    @pytest.mark.anyio
    async def test_public_list_is_read_only(self, client):
        await client.load_explore()
        assert client.public_universes.read_only is True
        assert client.my_universes.read_only is False
