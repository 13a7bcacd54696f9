from pathlib import Path

from app.schemas.webhook import InboundEvent
from app.services.media_service import SavedMedia
from app.services.slip_service import SlipVerdict

TENANT = "Utenant"
STAFF = "Ustaff"
ADMIN = "Uadmin"


class FakeLineClient:
    """Records reply / push calls instead of calling LINE."""

    def __init__(self):
        self.replies = []
        self.pushes = []

    async def reply(self, reply_token, messages):
        self.replies.append((reply_token, messages))
        return {}

    async def push(self, to, messages):
        self.pushes.append((to, messages))
        return {}

    def messages_to(self, user_id=None):
        sent = [m for _, batch in self.replies for m in batch]
        sent += [m for to, batch in self.pushes if user_id is None or to == user_id for m in batch]
        return sent

    def texts(self, user_id=None):
        return [m["text"] for m in self.messages_to(user_id) if m.get("type") == "text"]

    def alt_texts(self, user_id=None):
        return [m["altText"] for m in self.messages_to(user_id) if m.get("type") == "flex"]


class FakeMedia:
    def __init__(self):
        self.fail = False
        self.ingested = []

    async def ingest(self, message_id):
        if self.fail:
            return None
        self.ingested.append(message_id)
        return SavedMedia(
            filename=f"{message_id}.jpg",
            path=Path(f"/tmp/{message_id}.jpg"),
            url=f"https://dorm.test/api/media/{message_id}.jpg",
            content=b"slip-bytes",
        )


class FakeVerifier:
    def __init__(self):
        self.verdict = SlipVerdict(ok=False, message="ERROR")
        self.calls = []

    async def verify_by_url(self, url, expected_amount=None):
        self.calls.append(("url", url, expected_amount))
        return self.verdict

    async def verify_by_data(self, content, expected_amount=None):
        self.calls.append(("data", content, expected_amount))
        return self.verdict


def text_event(user_id, text):
    return InboundEvent(kind="text", user_id=user_id, reply_token=f"rt-{text}", text=text)


def image_event(user_id, message_id):
    return InboundEvent(kind="image", user_id=user_id, reply_token=f"rt-{message_id}", message_id=message_id)


def postback_event(user_id, data, params=None):
    return InboundEvent(
        kind="postback", user_id=user_id, reply_token=f"rt-{data}",
        postback_data=data, postback_params=params or {},
    )
