"""
app/services/session_service.py

Purpose: Per-user flow sessions with self-expiring timers

- One live session per (user id, flow kind)
- start() replaces the previous session and its timer
- Expiry clears the entry, then best-effort notifies the user
- Busy check used to reject new flows while another is pending
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from app.core.config import settings
from app.core.logging import get_logger, LogContext
from app.flow.states import FlowKind, get_flow_metadata, is_valid_step

logger = get_logger(__name__)

Notifier = Callable[[str, str], Awaitable[Any]]
SessionKey = Tuple[str, FlowKind]


class SessionStore:
    """
    In-memory session store keyed by (user id, flow kind).

    Sessions are immutable dataclasses that always carry a ``step``.
    Timers are single-shot ``loop.call_later`` handles; each one is tied
    to a generation number so a stale timer can never clear a newer session.
    """

    def __init__(
        self,
        default_ttl: Optional[float] = None,
        ack_ttl: Optional[float] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.default_ttl = default_ttl if default_ttl is not None else settings.SESSION_TIMEOUT_SECONDS
        self.ack_ttl = ack_ttl if ack_ttl is not None else settings.STAFF_ACK_TIMEOUT_SECONDS
        self._notifier = notifier
        self._sessions: Dict[SessionKey, Any] = {}
        self._timers: Dict[SessionKey, asyncio.TimerHandle] = {}
        self._generations: Dict[SessionKey, int] = {}

    def set_notifier(self, notifier: Optional[Notifier]):
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self, user_id: str, kind: FlowKind, session: Any, ttl: Optional[float] = None) -> Any:
        """
        Stores a session and (re)arms its expiry timer.

        Args:
            user_id: LINE user id
            kind: Flow kind
            session: Session dataclass for this kind
            ttl: Override timeout in seconds

        Returns:
            The stored session

        Raises:
            ValueError: If the session has no step valid for this kind
        """
        step = getattr(session, "step", None)
        if not is_valid_step(kind, step):
            raise ValueError(f"Session for {kind.value} must carry a valid step, got {step!r}")

        key = (user_id, kind)
        self._cancel_timer(key)
        self._sessions[key] = session
        self._arm(key, ttl)

        logger.debug(
            f"Session started: {kind.value} step={step.value}",
            extra={"user_id": user_id, "flow": kind.value, "step": step.value}
        )
        return session

    def extend(self, user_id: str, kind: FlowKind, ttl: Optional[float] = None) -> bool:
        """
        Re-arms the timer of the current session without touching its fields.

        Returns:
            False when there is no live session to extend
        """
        key = (user_id, kind)
        if key not in self._sessions:
            return False
        self._cancel_timer(key)
        self._arm(key, ttl)
        return True

    def clear(self, user_id: str, kind: FlowKind) -> None:
        """
        Removes a session and cancels its timer. No-op when absent.
        """
        key = (user_id, kind)
        self._cancel_timer(key)
        self._sessions.pop(key, None)

    def get(self, user_id: str, kind: FlowKind) -> Optional[Any]:
        return self._sessions.get((user_id, kind))

    def is_busy(self, user_id: str, allow: Iterable[FlowKind] = ()) -> Optional[FlowKind]:
        """
        Returns the first blocking flow the user is in, ignoring ``allow``.
        """
        allowed = set(allow)
        for kind in FlowKind:
            if kind in allowed or not get_flow_metadata(kind).blocking:
                continue
            if (user_id, kind) in self._sessions:
                return kind
        return None

    def holders(self, kind: FlowKind) -> List[str]:
        return [user_id for (user_id, k) in self._sessions if k == kind]

    def stats(self) -> Dict[str, int]:
        counts = {kind.value: 0 for kind in FlowKind}
        for (_, kind) in self._sessions:
            counts[kind.value] += 1
        return counts

    def reset(self) -> None:
        """
        Drops every session and timer (shutdown).
        """
        for key in list(self._timers):
            self._cancel_timer(key)
        self._sessions.clear()

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _ttl_for(self, kind: FlowKind, ttl: Optional[float]) -> float:
        if ttl is not None:
            return ttl
        return self.ack_ttl if get_flow_metadata(kind).ack_window else self.default_ttl

    def _arm(self, key: SessionKey, ttl: Optional[float]) -> None:
        loop = asyncio.get_running_loop()
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        self._timers[key] = loop.call_later(self._ttl_for(key[1], ttl), self._expire, key, generation)

    def _cancel_timer(self, key: SessionKey) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _expire(self, key: SessionKey, generation: int) -> None:
        if self._generations.get(key) != generation:
            return

        user_id, kind = key
        self._timers.pop(key, None)
        session = self._sessions.pop(key, None)
        if session is None:
            return

        with LogContext(user_id=user_id, flow=kind.value):
            logger.info(f"⏰ Session expired: {kind.value}")

        message = get_flow_metadata(kind).expiry_message
        if message and self._notifier is not None:
            asyncio.ensure_future(self._notify_expired(user_id, kind, message))

    async def _notify_expired(self, user_id: str, kind: FlowKind, message: str) -> None:
        try:
            await self._notifier(user_id, message)
        except Exception as e:
            logger.warning(
                f"Expiry notification failed for {kind.value}: {e}",
                extra={"user_id": user_id, "flow": kind.value}
            )


# Global store (one per process)
_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """
    Get or create the global session store.
    """
    global _session_store
    if _session_store is None:
        _session_store = SessionStore()
    return _session_store


def set_session_store(store: Optional[SessionStore]) -> None:
    global _session_store
    _session_store = store
