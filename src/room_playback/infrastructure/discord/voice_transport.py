"""discord.py implementation of the voice transport, connection and stream ports."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from room_playback.application.interfaces.voice_transport import (
    PlaybackStream,
    VoiceConnection,
    VoiceTransport,
)
from room_playback.config.settings import AudioSettings
from room_playback.domain.playback.value_objects import StreamEndReason, StreamOutcome
from room_playback.domain.shared.exceptions import (
    JoinFailedError,
    StreamRuntimeError,
    StreamUnavailableError,
)
from room_playback.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from room_playback.application.interfaces.stream_source import AudioSource

logger = logging.getLogger(__name__)

FADE_IN_SECONDS: float = 0.5

# Matches yt-dlp's Android client user-agent to avoid YouTube 403 responses
ANDROID_USER_AGENT = "com.google.android.youtube/19.44.38 (Linux; U; Android 14) gzip"


class DiscordPlaybackStream(PlaybackStream):
    """One FFmpeg source playing on a voice client.

    discord.py calls ``after`` from its player thread; the outcome is handed
    back to the event loop with ``call_soon_threadsafe`` and set only once.
    """

    def __init__(
        self,
        voice_client: discord.VoiceClient,
        source: discord.PCMVolumeTransformer,
        loop: asyncio.AbstractEventLoop,
        title: str = "",
    ) -> None:
        self._vc = voice_client
        self._source = source
        self._loop = loop
        self._title = title
        self._outcome: asyncio.Future[StreamOutcome] = loop.create_future()
        self._stop_reason: StreamEndReason | None = None

    @property
    def source(self) -> discord.PCMVolumeTransformer:
        return self._source

    @property
    def is_finished(self) -> bool:
        return self._outcome.done()

    def set_volume(self, volume: float) -> None:
        self._source.volume = max(0.0, min(1.0, volume))

    def stop(self, reason: StreamEndReason) -> None:
        if self._outcome.done() or self._stop_reason is not None:
            return
        self._stop_reason = reason

        if self._vc.source is self._source and (self._vc.is_playing() or self._vc.is_paused()):
            # The player thread reports the end through ``after``.
            self._vc.stop()
        else:
            self._resolve(None)

    async def wait_finished(self) -> StreamOutcome:
        return await asyncio.shield(self._outcome)

    def after(self, error: Exception | None = None) -> None:
        """Player-thread callback passed to ``VoiceClient.play``."""
        if error is not None:
            logger.warning(LogTemplates.VOICE_PLAYER_ERROR, self._title, error)
        self._loop.call_soon_threadsafe(self._resolve, error)

    def _resolve(self, error: Exception | None) -> None:
        if self._outcome.done():
            return
        if error is not None:
            failure = StreamRuntimeError(str(error) or error.__class__.__name__, cause=error)
            self._outcome.set_result(StreamOutcome.errored(failure))
        else:
            self._outcome.set_result(
                StreamOutcome.ended(self._stop_reason or StreamEndReason.COMPLETED)
            )


class DiscordVoiceConnection(VoiceConnection):
    def __init__(self, voice_client: discord.VoiceClient, settings: AudioSettings) -> None:
        self._vc = voice_client
        self._ffmpeg_options = settings.ffmpeg_options

    @property
    def voice_client(self) -> discord.VoiceClient:
        return self._vc

    @property
    def channel_id(self) -> int:
        return self._vc.channel.id

    def is_connected(self) -> bool:
        return self._vc.is_connected()

    async def play(self, source: AudioSource, *, volume: float) -> DiscordPlaybackStream:
        # A previous stream may still be winding down after stop().
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

        try:
            # User-Agent must match yt-dlp's Android client to prevent YouTube 403
            base_before_opts = self._ffmpeg_options.get("before_options", "")
            before_opts = f'{base_before_opts} -headers "User-Agent: {ANDROID_USER_AGENT}"'
            base_opts = self._ffmpeg_options.get("options", "")
            fade_opts = f'{base_opts} -af "afade=t=in:ss=0:d={FADE_IN_SECONDS}"'

            audio = discord.FFmpegPCMAudio(
                source.stream_url,
                before_options=before_opts,
                options=fade_opts,
            )
            volume_source = discord.PCMVolumeTransformer(audio, volume=volume)
            stream = DiscordPlaybackStream(
                self._vc, volume_source, asyncio.get_running_loop(), title=source.title
            )
            self._vc.play(volume_source, after=stream.after)
        except discord.ClientException as e:
            raise StreamUnavailableError(source.track_id.value, str(e)) from e

        return stream

    async def disconnect(self) -> None:
        await self._vc.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, self._vc.guild.id)


class DiscordVoiceTransport(VoiceTransport):
    """Joins guild voice channels through a discord.py client."""

    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()

    def _get_voice_client(self, guild: discord.Guild) -> discord.VoiceClient | None:
        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def join(self, room_id: int, channel_id: int) -> DiscordVoiceConnection:
        guild = self._bot.get_guild(room_id)
        channel = guild.get_channel(channel_id) if guild else None
        if guild is None or not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            raise JoinFailedError(
                channel_id, ErrorMessages.VOICE_CHANNEL_NOT_FOUND.format(channel_id=channel_id)
            )

        vc = self._get_voice_client(guild)
        if vc is not None and not vc.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, room_id)
            await vc.disconnect(force=True)
            vc = None

        try:
            async with asyncio.timeout(self._settings.connect_timeout_seconds):
                if vc is None:
                    vc = await channel.connect(self_deaf=True)
                    logger.info(LogTemplates.VOICE_CONNECTED, channel_id, room_id)
                elif vc.channel is None or vc.channel.id != channel_id:
                    await vc.move_to(channel)
                    logger.info(LogTemplates.VOICE_MOVED, channel_id, room_id)
        except TimeoutError as e:
            raise JoinFailedError(
                channel_id, ErrorMessages.VOICE_CONNECT_TIMEOUT.format(channel_id=channel_id)
            ) from e
        except discord.Forbidden as e:
            raise JoinFailedError(
                channel_id, ErrorMessages.VOICE_NO_PERMISSION.format(channel_id=channel_id)
            ) from e
        except discord.ClientException as e:
            raise JoinFailedError(channel_id, str(e)) from e

        await self._ensure_self_deaf(guild, channel)
        return DiscordVoiceConnection(vc, self._settings)

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except Exception as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)
