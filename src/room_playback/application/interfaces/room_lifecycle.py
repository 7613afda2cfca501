"""Port interface for whoever owns and discards room players."""

from __future__ import annotations

from abc import ABC, abstractmethod

from room_playback.domain.shared.types import RoomIdField


class RoomLifecycleOwner(ABC):

    @abstractmethod
    async def drop_room(self, room_id: RoomIdField) -> None:
        """Discard the room's player; called when its idle timeout fires."""
        ...
