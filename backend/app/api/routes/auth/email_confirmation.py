import asyncio
from functools import partial
from typing import Callable

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from app.api.services.email_confirmation import (
    VERIFIED_REDIRECT,
    EmailConfirmationMonitor,
    check_verification_status,
)
from app.api.services.user_auth import UserAuthService, get_user_auth_service
from app.auth.schema import VerificationStatusSchema
from app.core.logging import get_logger
from app.core.realtime import SupabaseVerificationChannel

logger = get_logger()
router = APIRouter()

MonitorFactory = Callable[[str, UserAuthService], EmailConfirmationMonitor]


def get_monitor_factory() -> MonitorFactory:
    def build(user_id: str, auth_service: UserAuthService) -> EmailConfirmationMonitor:
        return EmailConfirmationMonitor(
            fetch_user=partial(auth_service.get_user_by_id, user_id),
            channel=SupabaseVerificationChannel(user_id),
        )

    return build


@router.get("/email-confirmation/status", response_model=VerificationStatusSchema)
async def email_confirmation_status(
    user_id: str = Query(..., min_length=1),
    auth_service: UserAuthService = Depends(get_user_auth_service),
):
    return await check_verification_status(
        partial(auth_service.get_user_by_id, user_id)
    )


@router.websocket("/email-confirmation/ws")
async def email_confirmation_ws(
    websocket: WebSocket,
    user_id: str = Query(...),
    auth_service: UserAuthService = Depends(get_user_auth_service),
    monitor_factory: MonitorFactory = Depends(get_monitor_factory),
):
    """
    Push ``verified`` or ``timeout`` once for ``user_id``.

    Any message from the client, or a disconnect, stops the monitor.
    """
    await websocket.accept()
    monitor = monitor_factory(user_id, auth_service)
    await websocket.send_json({"status": "waiting", "window": monitor.window})

    run_task = asyncio.create_task(monitor.run())
    receive_task = asyncio.create_task(websocket.receive_text())
    done, _ = await asyncio.wait(
        {run_task, receive_task}, return_when=asyncio.FIRST_COMPLETED
    )

    if run_task not in done:
        run_task.cancel()
        await asyncio.gather(run_task, return_exceptions=True)
        await monitor.stop()
        logger.info(f"Email confirmation monitor for {user_id} stopped by client")
        if isinstance(receive_task.exception(), WebSocketDisconnect):
            return
        await websocket.close()
        return

    receive_task.cancel()
    await asyncio.gather(receive_task, return_exceptions=True)

    if run_task.result():
        await websocket.send_json({"status": "verified", "redirect": VERIFIED_REDIRECT})
    else:
        await websocket.send_json({"status": "timeout"})
    await websocket.close()
