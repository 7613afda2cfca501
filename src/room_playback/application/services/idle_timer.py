"""Cancelable one-shot timer used for a room's idle timeout."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from ...domain.shared.datetime_utils import utc_after
from ...domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class IdleTimer:
    """Owns at most one pending expiry task.

    ``arm`` always cancels the previous handle first, so two arms in quick
    succession produce exactly one expiry. Each arm gets a new token which is
    handed to the callback, letting it recognise a stale expiry.
    """

    def __init__(
        self,
        timeout_seconds: float,
        on_expire: Callable[[int], Awaitable[None]],
    ) -> None:
        self._timeout = timeout_seconds
        self._on_expire = on_expire
        self._task: asyncio.Task[None] | None = None
        self._token = 0
        self._deadline: datetime | None = None

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    @property
    def is_armed(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def token(self) -> int:
        return self._token

    @property
    def deadline(self) -> datetime | None:
        return self._deadline if self.is_armed else None

    def arm(self) -> int:
        """Start (or restart) the countdown and return the new token."""
        self.cancel()
        self._token += 1
        self._deadline = utc_after(self._timeout)
        self._task = asyncio.create_task(self._run(self._token))
        return self._token

    def cancel(self) -> None:
        task, self._task = self._task, None
        self._deadline = None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self, token: int) -> None:
        await asyncio.sleep(self._timeout)
        # Detach before the callback so a cancel() issued from inside it
        # does not cancel this very task.
        if self._task is asyncio.current_task():
            self._task = None
            self._deadline = None
        try:
            await self._on_expire(token)
        except Exception:
            logger.exception(LogTemplates.IDLE_TIMER_CALLBACK_ERROR)
