"""Dependency Injection Container

Wires settings, infrastructure adapters and the room registry together.
Components are created on first access and cached for reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    import discord

    from ..application.interfaces.notifier import Notifier
    from ..application.interfaces.recommendation_service import RecommendationService
    from ..application.interfaces.voice_transport import VoiceTransport
    from ..application.services.room_registry import RoomRegistry
    from ..domain.shared.events import EventBus
    from ..infrastructure.audio.ytdlp_catalog import YtDlpCatalog
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. The voice
    transport (and so the room registry) needs a discord client, set with
    ``set_bot``.
    """

    settings: Settings
    _bot: discord.Client | None = None

    # Infrastructure adapters
    _event_bus: EventBus | None = None
    _catalog: YtDlpCatalog | None = None
    _voice_transport: VoiceTransport | None = None
    _recommendation_service: RecommendationService | None = None
    _notifier: Notifier | None = None

    # Application services
    _room_registry: RoomRegistry | None = None

    def set_bot(self, bot: discord.Client) -> None:
        """Set the Discord client instance."""
        self._bot = bot

    @property
    def bot(self) -> discord.Client:
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Infrastructure ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import get_event_bus

            self._event_bus = get_event_bus()
        return self._event_bus

    @property
    def catalog(self) -> YtDlpCatalog:
        """Get the yt-dlp catalog, which is also the stream source."""
        if self._catalog is None:
            from ..infrastructure.audio.ytdlp_catalog import YtDlpCatalog

            self._catalog = YtDlpCatalog(self.settings.audio)
        return self._catalog

    @property
    def voice_transport(self) -> VoiceTransport:
        if self._voice_transport is None:
            from ..infrastructure.discord.voice_transport import DiscordVoiceTransport

            self._voice_transport = DiscordVoiceTransport(self.bot, self.settings.audio)
        return self._voice_transport

    @property
    def recommendation_service(self) -> RecommendationService:
        if self._recommendation_service is None:
            from ..infrastructure.ai.related_track_client import AIRelatedTrackService

            self._recommendation_service = AIRelatedTrackService(self.catalog, self.settings.ai)
        return self._recommendation_service

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            from ..infrastructure.notifications.event_notifier import EventBusNotifier

            self._notifier = EventBusNotifier(self.event_bus)
        return self._notifier

    # === Application Services ===

    @property
    def room_registry(self) -> RoomRegistry:
        if self._room_registry is None:
            from ..application.services.room_registry import RoomRegistry

            self._room_registry = RoomRegistry(
                stream_source=self.catalog,
                voice_transport=self.voice_transport,
                recommendation_service=self.recommendation_service,
                notifier=self.notifier,
                settings=self.settings.playback,
                event_bus=self.event_bus,
            )
        return self._room_registry

    async def shutdown(self) -> None:
        """Close every room and release cached components."""
        if self._room_registry is not None:
            await self._room_registry.close_all()

        self._room_registry = None
        self._voice_transport = None
        self._recommendation_service = None
        self._notifier = None
        self._catalog = None
        logger.info(LogTemplates.CONTAINER_SHUTDOWN)


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
