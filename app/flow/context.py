"""
app/flow/context.py

Purpose: Per-event handler context

- Who sent the event and how to answer them
- Access to the session store and role resolver
- Guard helpers shared by every flow (staff only, busy check)
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from app.flow.states import FlowKind
from app.services.line_service import Message, Responder
from app.services.role_service import RoleResolver
from app.services.session_service import SessionStore
from utils import constants


@dataclass
class FlowContext:
    user_id: str
    responder: Responder
    sessions: SessionStore
    roles: RoleResolver

    @property
    def is_staff(self) -> bool:
        # Evaluated on every access, never cached
        return self.roles.is_staff(self.user_id)

    @property
    def is_admin(self) -> bool:
        return self.roles.is_admin(self.user_id)

    async def reply(self, *messages: Message) -> None:
        await self.responder.reply(*messages)

    def push(self, *messages: Message, delay: float = 0.0, to: Optional[str] = None) -> None:
        self.responder.push(*messages, delay=delay, to=to)

    def session(self, kind: FlowKind) -> Optional[Any]:
        return self.sessions.get(self.user_id, kind)

    def start(self, kind: FlowKind, session: Any, ttl: Optional[float] = None) -> Any:
        return self.sessions.start(self.user_id, kind, session, ttl)

    def clear(self, *kinds: FlowKind) -> None:
        for kind in kinds:
            self.sessions.clear(self.user_id, kind)

    async def require_staff(self) -> bool:
        """
        Replies the staff-only notice and returns False for non-staff.
        """
        if self.is_staff:
            return True
        await self.reply(constants.STAFF_ONLY_MESSAGE)
        return False

    async def require_not_busy(self, allow: Iterable[FlowKind] = ()) -> bool:
        """
        Replies the busy notice and returns False while another flow is pending.
        """
        busy = self.sessions.is_busy(self.user_id, allow=allow)
        if busy is None:
            return True
        await self.reply(constants.BUSY_MESSAGE)
        return False
