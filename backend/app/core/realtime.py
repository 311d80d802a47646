"""
Realtime subscription used while waiting for an email confirmation.

The channel is owned by whoever creates it: it is opened lazily on the
first ``subscribe``, reused by later calls, and dropped on ``unsubscribe``
so the next subscription opens a fresh one.
"""
from typing import Any, Awaitable, Callable, Optional
import uuid

from supabase import AsyncClient

from app.core.config import settings
from app.core.database import get_realtime_client
from app.core.logging import get_logger

logger = get_logger()

EventCallback = Callable[[Any], None]


class VerificationChannel:
    """Interface the confirmation monitor depends on"""

    @property
    def is_active(self) -> bool:
        raise NotImplementedError

    async def subscribe(self, on_event: EventCallback) -> Any:
        raise NotImplementedError

    async def unsubscribe(self) -> None:
        raise NotImplementedError


class SupabaseVerificationChannel(VerificationChannel):
    def __init__(
        self,
        user_id: str,
        client_factory: Callable[[], Awaitable[AsyncClient]] = get_realtime_client,
        channel_name: Optional[str] = None,
    ):
        self.user_id = user_id
        self.channel_name = channel_name or f"verification_channel_{uuid.uuid4().hex[:7]}"
        self._client_factory = client_factory
        self._client: Optional[AsyncClient] = None
        self._channel: Any = None

    @property
    def is_active(self) -> bool:
        return self._channel is not None

    async def subscribe(self, on_event: EventCallback) -> Any:
        if self._channel is not None:
            logger.info(f"Using existing subscription {self.channel_name}")
            return self._channel

        logger.info(f"Setting up new verification channel {self.channel_name}")
        if self._client is None:
            self._client = await self._client_factory()

        channel = self._client.channel(self.channel_name)
        channel.on_postgres_changes(
            "UPDATE",
            schema="public",
            table=settings.PROFILES_TABLE,
            filter=f"id=eq.{self.user_id}",
            callback=on_event,
        )
        await channel.subscribe()
        self._channel = channel
        return channel

    async def unsubscribe(self) -> None:
        if self._channel is None:
            return

        channel, self._channel = self._channel, None
        try:
            await self._client.remove_channel(channel)
            logger.info(f"Removed verification channel {self.channel_name}")
        except Exception as e:
            logger.warning(f"Error removing channel {self.channel_name}: {e}")
