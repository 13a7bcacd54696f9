"""
app/api/webhook.py

Purpose: LINE Messaging API webhook endpoint

- Checks the x-line-signature header (HMAC-SHA256, base64)
- Parses and normalizes the events array
- Dispatches every event concurrently
- Always answers {"status": "ok"} once the body is accepted
"""

import asyncio
import base64
import hashlib
import hmac
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.logging import get_logger
from app.flow.dispatcher import dispatch_event
from app.schemas.webhook import WebhookBody, parse_event

logger = get_logger(__name__)
router = APIRouter()


def verify_line_signature(channel_secret: str, body: bytes, signature: Optional[str]) -> bool:
    secret = (channel_secret or "").strip()
    received = (signature or "").strip()
    if not secret or not received:
        return False

    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("utf-8")
    return hmac.compare_digest(expected, received)


@router.post("/webhook")
async def line_webhook(
    request: Request,
    x_line_signature: Optional[str] = Header(None),
):
    """
    LINE webhook endpoint.

    A signature mismatch is logged; it is rejected with 401 only when
    LINE_ENFORCE_SIGNATURE is enabled.
    """
    body = await request.body()

    if not verify_line_signature(settings.LINE_CHANNEL_SECRET or "", body, x_line_signature):
        logger.warning("⚠️ LINE webhook signature mismatch")
        if settings.LINE_ENFORCE_SIGNATURE:
            raise AuthenticationError("Invalid LINE signature")

    try:
        payload = WebhookBody.model_validate_json(body or b"{}")
    except PydanticValidationError as e:
        logger.error(f"Failed to parse webhook payload: {e}")
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    events = [parse_event(event) for event in payload.events]
    logger.info(f"📨 LINE webhook received {len(events)} event(s)")

    if events:
        await asyncio.gather(*(dispatch_event(event) for event in events))

    return {"status": "ok"}


@router.get("/webhook")
async def webhook_verification():
    """
    Liveness check for the webhook URL.
    """
    return {"status": "ok", "message": "Webhook endpoint is active"}
