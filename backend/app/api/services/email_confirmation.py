"""
Waits for a freshly signed-up user to confirm their email address.

Realtime pushes trigger an immediate check when a channel is available.
Polling always runs as the backstop, every ``EMAIL_CONFIRMATION_POLL_SECONDS``
for ``EMAIL_CONFIRMATION_WINDOW_SECONDS``, with one last check shortly
before the window closes.
"""
from typing import Any, Awaitable, Callable, Coroutine, List, Optional
import asyncio

from app.auth.schema import CurrentUser, VerificationStatusSchema
from app.core.config import settings
from app.core.exceptions import OnboardingError
from app.core.logging import get_logger
from app.core.realtime import VerificationChannel

logger = get_logger()

VERIFIED_REDIRECT = "/patient"

UserFetcher = Callable[[], Awaitable[Optional[CurrentUser]]]


class EmailConfirmationMonitor:
    def __init__(
        self,
        fetch_user: UserFetcher,
        channel: Optional[VerificationChannel] = None,
        interval: Optional[float] = None,
        window: Optional[float] = None,
        final_check_lead: Optional[float] = None,
        on_verified: Optional[Callable[[CurrentUser], Awaitable[None]]] = None,
    ):
        self.fetch_user = fetch_user
        self.channel = channel
        self.interval = interval or settings.EMAIL_CONFIRMATION_POLL_SECONDS
        self.window = window or settings.EMAIL_CONFIRMATION_WINDOW_SECONDS
        self.final_check_lead = (
            settings.EMAIL_CONFIRMATION_FINAL_CHECK_LEAD_SECONDS
            if final_check_lead is None
            else final_check_lead
        )
        self.on_verified = on_verified
        self.verified_user: Optional[CurrentUser] = None
        self._active = False
        self._tasks: List[asyncio.Task] = []
        self._verified: Optional[asyncio.Event] = None

    @property
    def is_active(self) -> bool:
        return self._active

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        if not self._active:
            coro.close()
            return
        self._tasks.append(asyncio.create_task(coro))

    async def check(self) -> bool:
        """One verification lookup. Errors count as "not verified yet"."""
        if not self._active:
            return False
        try:
            user = await self.fetch_user()
        except OnboardingError as e:
            logger.warning(f"Verification check failed: {e.error} ({e.details})")
            return False

        # The monitor may have been stopped while the lookup was in flight
        if not self._active:
            return False

        if user is not None and user.is_email_confirmed:
            if self.verified_user is None:
                logger.info(f"Email verified for user {user.id}")
                self.verified_user = user
                self._verified.set()
            return True
        return False

    def _on_push(self, payload: Any) -> None:
        self._spawn(self.check())

    async def _poll(self) -> None:
        while self._active:
            await asyncio.sleep(self.interval)
            await self.check()

    async def _final_check(self) -> None:
        await asyncio.sleep(max(self.window - self.final_check_lead, 0))
        await self.check()

    async def run(self) -> bool:
        """Monitor until verified or the window closes. Returns True if verified."""
        self._active = True
        self._verified = asyncio.Event()
        self.verified_user = None

        try:
            if self.channel is not None:
                try:
                    await self.channel.subscribe(self._on_push)
                except Exception as e:
                    logger.warning(f"Realtime unavailable, polling only: {e}")

            if not await self.check():
                self._spawn(self._poll())
                self._spawn(self._final_check())
                try:
                    await asyncio.wait_for(self._verified.wait(), timeout=self.window)
                except asyncio.TimeoutError:
                    logger.info("Email verification window elapsed")
        finally:
            await self.stop()

        if self.verified_user is not None and self.on_verified is not None:
            await self.on_verified(self.verified_user)
        return self.verified_user is not None

    async def stop(self) -> None:
        self._active = False
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self.channel is not None:
            await self.channel.unsubscribe()


async def check_verification_status(
    fetch_user: UserFetcher,
) -> VerificationStatusSchema:
    try:
        user = await fetch_user()
    except OnboardingError as e:
        logger.warning(f"Verification status lookup failed: {e.details}")
        return VerificationStatusSchema(verified=False)

    if user is None:
        return VerificationStatusSchema(verified=False)
    if user.is_email_confirmed:
        return VerificationStatusSchema(
            verified=True, email=user.email, redirect=VERIFIED_REDIRECT
        )
    return VerificationStatusSchema(verified=False, email=user.email)
