"""
Live progress feeds

Websocket clients receive a JSON message immediately on connect and again
after every write to the watched document or roster. The API key is passed
as the `api_key` query parameter.

Store listeners only enqueue messages; a per-socket sender task drains the
queue, so a slow client never holds up the write that triggered the push.
"""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from bootcamp_tracker.api.auth import is_valid_api_key
from bootcamp_tracker.gamification.dashboards import build_leaderboard, build_weekly_activity
from bootcamp_tracker.gamification.progress_ledger import completion_percentage
from bootcamp_tracker.models.user import UserAccount
from bootcamp_tracker.monitoring.prometheus_metrics import update_listener_gauge
from bootcamp_tracker.services.container import get_container
from bootcamp_tracker.store.subscriptions import Subscription

logger = logging.getLogger(__name__)

router = APIRouter()

# Every message is a full snapshot, so only the newest few matter
OUTBOX_SIZE = 16


class Outbox:
    """Bounded per-socket message queue that drops the oldest entry when full"""

    def __init__(self, label: str, maxsize: int = OUTBOX_SIZE):
        self.label = label
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def put(self, message: Dict[str, Any]) -> None:
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
            logger.debug(f"Websocket for {self.label} is behind, dropped a stale message")
        self.queue.put_nowait(message)

    async def drain_to(self, websocket: WebSocket) -> None:
        while True:
            message = await self.queue.get()
            await websocket.send_json(message)


async def _hold_open(
    websocket: WebSocket, subscription: Subscription, outbox: Outbox
) -> None:
    """Send queued messages until the client leaves, then drop the listener"""
    store = get_container().store
    update_listener_gauge(store.listener_count)
    sender = asyncio.create_task(outbox.drain_to(websocket))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Websocket for {outbox.label} disconnected")
    finally:
        subscription.unsubscribe()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
        update_listener_gauge(store.listener_count)


@router.websocket("/ws/users/{user_id}")
async def user_feed(websocket: WebSocket, user_id: str, api_key: str = ""):
    """Stream one learner's document"""
    if not is_valid_api_key(api_key):
        logger.warning(f"Rejected websocket for user {user_id}: invalid API key")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    outbox = Outbox(f"user {user_id}")

    def push(user: Optional[UserAccount]) -> None:
        if user is None:
            outbox.put({"type": "user", "user_id": user_id, "user": None})
            return
        outbox.put({
            "type": "user",
            "user_id": user_id,
            "user": user.model_dump(mode="json", by_alias=True),
            "completion": completion_percentage(user.progress),
        })

    subscription = await get_container().progress_service.subscribe_user(user_id, push)
    await _hold_open(websocket, subscription, outbox)


@router.websocket("/ws/roster")
async def roster_feed(websocket: WebSocket, api_key: str = "", viewer_id: Optional[str] = None):
    """Stream leaderboard and weekly activity for the whole roster"""
    if not is_valid_api_key(api_key):
        logger.warning("Rejected roster websocket: invalid API key")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    outbox = Outbox("roster")

    def push(roster: List[UserAccount]) -> None:
        outbox.put({
            "type": "roster",
            "leaderboard": build_leaderboard(roster, viewer_id),
            "weekly_activity": build_weekly_activity(roster, datetime.now(timezone.utc), viewer_id),
        })

    subscription = await get_container().progress_service.subscribe_roster(push)
    await _hold_open(websocket, subscription, outbox)
