"""
app/services/line_service.py

Purpose: Outbound LINE messaging

- httpx client for the reply / push endpoints
- Non-blocking push queue with a background worker
- Swallowed, logged failures counted in dispatch metrics
- Monthly push usage recorded in MongoDB (quota tracking)
- Per-event Responder: the reply token is used at most once
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from app.core.config import settings
from app.core.exceptions import LineApiError
from app.core.logging import get_logger
from app.db.mongo import get_collection
from utils.line_utils import normalize_messages
from utils.time_utils import usage_month_key

logger = get_logger(__name__)

MAX_MESSAGES_PER_CALL = 5

Message = Union[str, Dict[str, Any]]


class LineMessagingClient:
    """
    Thin async client for the LINE Messaging API.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token if access_token is not None else settings.LINE_CHANNEL_ACCESS_TOKEN
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.LINE_API_BASE_URL,
            timeout=timeout or settings.LINE_API_TIMEOUT,
            headers={"Authorization": f"Bearer {self.access_token or ''}"},
            transport=transport,
        )

    def is_configured(self) -> bool:
        return bool(self.access_token)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.RequestError as e:
            raise LineApiError(f"LINE request failed: {e}") from e

        if response.status_code >= 400:
            raise LineApiError(
                f"LINE API {path} returned {response.status_code}",
                details=response.text[:500],
            )
        try:
            return response.json()
        except ValueError:
            return {}

    async def reply(self, reply_token: str, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self._post(
            "/v2/bot/message/reply",
            {"replyToken": reply_token, "messages": messages[:MAX_MESSAGES_PER_CALL]},
        )

    async def push(self, to: str, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        return await self._post(
            "/v2/bot/message/push",
            {"to": to, "messages": messages[:MAX_MESSAGES_PER_CALL]},
        )

    async def get_quota_consumption(self) -> Optional[int]:
        """
        Messages counted against this month's quota, as reported by LINE.
        """
        try:
            response = await self._client.get("/v2/bot/message/quota/consumption")
            if response.status_code >= 400:
                return None
            return response.json().get("totalUsage")
        except (httpx.RequestError, ValueError) as e:
            logger.warning(f"Quota lookup failed: {e}")
            return None

    async def close(self):
        await self._client.aclose()


async def record_push_usage(count: int = 1) -> None:
    await get_collection("line_usage").update_one(
        {"_id": usage_month_key()},
        {"$inc": {"push_count": count}},
        upsert=True,
    )


async def get_push_usage(month: Optional[str] = None) -> int:
    doc = await get_collection("line_usage").find_one({"_id": month or usage_month_key()})
    return int((doc or {}).get("push_count") or 0)


class OutboundDispatcher:
    """
    Sends replies inline and pushes through a queue.

    Nothing here raises to the caller: every failure is logged and
    counted in ``metrics``.
    """

    def __init__(self, client: Any, track_usage: bool = True):
        self.client = client
        self.track_usage = track_usage
        self.metrics: Dict[str, int] = {"replied": 0, "pushed": 0, "failed": 0, "queued": 0}
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._pending_delays: set = set()

    def _ensure_worker(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = asyncio.ensure_future(self._run())
        return self._queue

    async def reply(self, reply_token: str, messages: Sequence[Message]) -> bool:
        payload = normalize_messages(messages)
        if not payload:
            return False
        try:
            await self.client.reply(reply_token, payload)
            self.metrics["replied"] += 1
            return True
        except Exception as e:
            self.metrics["failed"] += 1
            logger.warning(f"❌ Reply failed: {e}")
            return False

    def push(self, to: str, messages: Sequence[Message], delay: float = 0.0) -> None:
        """
        Queues a push. Returns immediately.
        """
        payload = normalize_messages(messages)
        if not to or not payload:
            return
        queue = self._ensure_worker()
        self.metrics["queued"] += 1
        if delay and delay > 0:
            task = asyncio.ensure_future(self._enqueue_later(queue, (to, payload), delay))
            self._pending_delays.add(task)
            task.add_done_callback(self._pending_delays.discard)
        else:
            queue.put_nowait((to, payload))

    async def _enqueue_later(self, queue: asyncio.Queue, item, delay: float) -> None:
        await asyncio.sleep(delay)
        queue.put_nowait(item)

    async def push_now(self, to: str, messages: Sequence[Message]) -> bool:
        """
        Sends a push inline (API callers that want the outcome).
        """
        payload = normalize_messages(messages)
        if not to or not payload:
            return False
        return await self._send_push(to, payload)

    async def _send_push(self, to: str, payload: List[Dict[str, Any]]) -> bool:
        try:
            await self.client.push(to, payload)
            self.metrics["pushed"] += 1
        except Exception as e:
            self.metrics["failed"] += 1
            logger.warning(f"❌ Push failed: {e}", extra={"user_id": to})
            return False

        if self.track_usage:
            try:
                await record_push_usage(len(payload))
            except Exception as e:
                logger.warning(f"Push usage not recorded: {e}")
        return True

    async def _run(self) -> None:
        queue = self._queue
        while True:
            to, payload = await queue.get()
            try:
                await self._send_push(to, payload)
            finally:
                queue.task_done()

    async def drain(self) -> None:
        """
        Waits until every queued and delayed push has been attempted.
        """
        if self._pending_delays:
            await asyncio.gather(*list(self._pending_delays), return_exceptions=True)
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        for task in list(self._pending_delays):
            task.cancel()
        self._pending_delays.clear()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None


class Responder:
    """
    Outbound handle for a single inbound event.

    The first reply uses the event's reply token; any later reply for
    the same event falls back to a push to the same user.
    """

    def __init__(self, dispatcher: OutboundDispatcher, user_id: Optional[str], reply_token: Optional[str]):
        self.dispatcher = dispatcher
        self.user_id = user_id
        self.reply_token = reply_token
        self._replied = False

    async def reply(self, *messages: Message) -> None:
        if not messages:
            return
        if not self._replied and self.reply_token:
            self._replied = True
            await self.dispatcher.reply(self.reply_token, list(messages))
            return
        if self.user_id:
            self.dispatcher.push(self.user_id, list(messages))

    def push(self, *messages: Message, delay: float = 0.0, to: Optional[str] = None) -> None:
        target = to or self.user_id
        if target:
            self.dispatcher.push(target, list(messages), delay=delay)


_dispatcher: Optional[OutboundDispatcher] = None


def get_dispatcher() -> OutboundDispatcher:
    """
    Get or create the global outbound dispatcher.
    """
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = OutboundDispatcher(LineMessagingClient())
    return _dispatcher


def set_dispatcher(dispatcher: Optional[OutboundDispatcher]) -> None:
    global _dispatcher
    _dispatcher = dispatcher


async def close_dispatcher():
    global _dispatcher
    if _dispatcher is not None:
        await _dispatcher.stop()
        if isinstance(_dispatcher.client, LineMessagingClient):
            await _dispatcher.client.close()
        _dispatcher = None


async def notify_user(user_id: str, text: str) -> None:
    """
    Best-effort push used for session expiry notices.
    """
    get_dispatcher().push(user_id, [text])
