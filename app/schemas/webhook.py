"""
app/schemas/webhook.py

Purpose: LINE webhook payload schemas and parsers

- Validates incoming webhook bodies
- Normalizes message / postback events into InboundEvent
- Ensures predictable request handling
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Optional, Literal


class EventSource(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    userId: Optional[str] = None
    groupId: Optional[str] = None
    roomId: Optional[str] = None


class EventMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    type: str
    text: Optional[str] = None


class EventPostback(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: str = ""
    params: Optional[Dict[str, Any]] = None


class WebhookEvent(BaseModel):
    """
    One entry of the webhook ``events`` array.
    """
    model_config = ConfigDict(extra="allow")

    type: str
    replyToken: Optional[str] = None
    timestamp: Optional[int] = None
    source: EventSource = Field(default_factory=EventSource)
    message: Optional[EventMessage] = None
    postback: Optional[EventPostback] = None


class WebhookBody(BaseModel):
    destination: Optional[str] = None
    events: List[WebhookEvent] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "destination": "Uxxxxxxxx",
                "events": [
                    {
                        "type": "message",
                        "replyToken": "0f3779fba3b349968c5d07db31eab56f",
                        "source": {"type": "user", "userId": "U4af4980629"},
                        "message": {"id": "325708", "type": "text", "text": "แจ้งซ่อม"},
                    }
                ],
            }
        }
    )


class InboundEvent(BaseModel):
    """
    Normalized event format for internal processing.
    """
    kind: Literal["text", "image", "postback", "other"]
    user_id: Optional[str] = None
    reply_token: Optional[str] = None
    text: Optional[str] = None
    message_id: Optional[str] = None
    postback_data: Optional[str] = None
    postback_params: Dict[str, Any] = Field(default_factory=dict)
    raw_type: str = ""


def parse_event(event: WebhookEvent) -> InboundEvent:
    """
    Normalizes a LINE webhook event.

    Args:
        event: Validated webhook event

    Returns:
        InboundEvent with kind "text", "image", "postback" or "other"
    """
    base = {
        "user_id": event.source.userId,
        "reply_token": event.replyToken,
        "raw_type": event.type,
    }

    if event.type == "message" and event.message is not None:
        if event.message.type == "text":
            return InboundEvent(kind="text", text=(event.message.text or "").strip(), message_id=event.message.id, **base)
        if event.message.type == "image":
            return InboundEvent(kind="image", message_id=event.message.id, **base)

    if event.type == "postback" and event.postback is not None:
        return InboundEvent(
            kind="postback",
            postback_data=event.postback.data,
            postback_params=event.postback.params or {},
            **base
        )

    return InboundEvent(kind="other", **base)
