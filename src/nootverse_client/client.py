"""Client facade: one session, one channel, one engine per record list."""

import asyncio
import logging
from typing import Callable, Optional

from nootverse_client.config import NootverseConfig
from nootverse_client.config import config as default_config
from nootverse_client.exceptions import NootverseError
from nootverse_client.models.schema import (
    Note,
    NoteInput,
    Scope,
    Session,
    Stats,
    Universe,
    UniverseInput,
)
from nootverse_client.remote.channel import ActorChannel
from nootverse_client.remote.http_channel import HttpActorChannel
from nootverse_client.store import NoteStore, UniverseStore
from nootverse_client.sync import SyncEngine

logger = logging.getLogger(__name__)

# Builds a channel for a credential (None for anonymous calls)
ChannelFactory = Callable[[Optional[str]], ActorChannel]


def http_channel_factory(cfg: NootverseConfig) -> ChannelFactory:
    """Channel factory posting to the configured JSON gateway."""

    def factory(credential: Optional[str]) -> ActorChannel:
        return HttpActorChannel(
            cfg.get_gateway_url(),
            credential=credential,
            timeout=cfg.request_timeout,
        )

    return factory


class NootverseClient:
    """Wires stores and sync engines to the current session.

    Three lists are mirrored: the caller's notes, the caller's universes
    and the public universes. The public list is readable anonymously.
    """

    def __init__(
        self,
        channel_factory: Optional[ChannelFactory] = None,
        session: Optional[Session] = None,
        cfg: Optional[NootverseConfig] = None,
    ):
        self.config = cfg or default_config
        self._channel_factory = channel_factory or http_channel_factory(self.config)
        self._session = session or Session.anonymous()
        channel = self._channel_factory(self._session.credential)
        self.note_store = NoteStore(channel)
        self.universe_store = UniverseStore(channel)
        self.notes: SyncEngine[Note, NoteInput] = SyncEngine(
            self.note_store, Scope.OWNED, session=self._session
        )
        self.my_universes: SyncEngine[Universe, UniverseInput] = SyncEngine(
            self.universe_store, Scope.OWNED, session=self._session
        )
        self.public_universes: SyncEngine[Universe, UniverseInput] = SyncEngine(
            self.universe_store, Scope.PUBLIC, session=self._session
        )
        self.stats: Optional[Stats] = None
        self._channel = channel

    @property
    def session(self) -> Session:
        return self._session

    @property
    def engines(self):
        return (self.notes, self.my_universes, self.public_universes)

    async def set_session(self, session: Session) -> None:
        """Apply a login or logout reported by the credential provider."""
        previous = self._channel
        self._session = session
        self._channel = self._channel_factory(session.credential)
        self.note_store.rebind(self._channel)
        self.universe_store.rebind(self._channel)
        if session.authenticated:
            logger.info(f"Session signed in as {session.principal}")
        else:
            logger.info("Session signed out")
        await asyncio.gather(*(engine.set_session(session) for engine in self.engines))
        await self._close_channel(previous)

    async def start(self) -> None:
        """Initial load for whatever the current session may read."""
        await asyncio.gather(*(engine.set_session(self._session) for engine in self.engines))

    async def load_explore(self) -> Optional[Stats]:
        """Load the public universes and the platform stats concurrently."""
        loaded, stats = await asyncio.gather(
            self.public_universes.load(),
            self.universe_store.stats(),
            return_exceptions=True,
        )
        if isinstance(loaded, BaseException):
            raise loaded
        if isinstance(stats, NootverseError):
            self.public_universes.post_notice(stats, "stats")
            return self.stats
        if isinstance(stats, BaseException):
            raise stats
        self.stats = stats
        return stats

    async def whoami(self) -> str:
        return await self.note_store.whoami()

    @staticmethod
    async def _close_channel(channel: ActorChannel) -> None:
        aclose = getattr(channel, "aclose", None)
        if aclose is not None:
            await aclose()

    async def aclose(self) -> None:
        await self._close_channel(self._channel)
