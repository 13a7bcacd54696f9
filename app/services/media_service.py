"""
app/services/media_service.py

Purpose: Media ingest for chat attachments

- Downloads an attachment by LINE message id
- Stores it under a random name in the upload directory
- Best-effort downsampling / JPEG re-encode with Pillow
- Builds the public URL served under /api/media
"""

import asyncio
import io
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx
from PIL import Image

from app.core.config import settings
from app.core.exceptions import MediaDownloadError
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SavedMedia:
    """
    A stored attachment. ``content`` holds the bytes as written to disk.
    """
    filename: str
    path: Path
    url: str
    content: bytes


def random_filename(extension: str = "jpg") -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(5)}.{extension}"


def build_url_from_base(base_url: str, filename: str) -> str:
    """
    Joins the public base URL and the media path, tolerating quotes and
    trailing slashes in the configured base.
    """
    base = (base_url or "").strip().strip("\"'").rstrip("/")
    return f"{base}/api/media/{filename}"


def downsample_image(content: bytes, max_width: int, quality: int) -> bytes:
    """
    Resizes images wider than ``max_width`` (keeping the aspect ratio)
    and re-encodes them as JPEG.

    Raises:
        OSError / ValueError: When the bytes are not a readable image
    """
    img = Image.open(io.BytesIO(content))
    width, height = img.size

    if img.mode != "RGB":
        img = img.convert("RGB")

    if width > max_width:
        new_height = max(1, round(height * max_width / width))
        img = img.resize((max_width, new_height), Image.LANCZOS)
        logger.debug(f"Resized image {width}x{height} -> {max_width}x{new_height}")

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


class MediaService:
    """
    Downloads LINE attachments and stores them on local disk.
    """

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        public_base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.public_base_url = public_base_url or settings.PUBLIC_API_URL
        self.max_width = settings.IMAGE_MAX_WIDTH
        self.quality = settings.IMAGE_QUALITY
        self._client = httpx.AsyncClient(
            base_url=settings.LINE_DATA_API_BASE_URL,
            timeout=settings.LINE_API_TIMEOUT,
            headers={"Authorization": f"Bearer {access_token or settings.LINE_CHANNEL_ACCESS_TOKEN or ''}"},
            transport=transport,
        )

    def get_upload_dir(self) -> Path:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        return self.upload_dir

    async def download(self, message_id: str) -> bytes:
        """
        Fetches the binary content of a LINE message.

        Raises:
            MediaDownloadError: On transport errors, non-2xx or empty body
        """
        try:
            response = await self._client.get(f"/v2/bot/message/{message_id}/content")
        except httpx.RequestError as e:
            raise MediaDownloadError(f"LINE content fetch failed: {e}") from e

        if response.status_code >= 400:
            raise MediaDownloadError(f"LINE content fetch failed: {response.status_code}")
        if not response.content:
            raise MediaDownloadError("LINE content response has no body")
        return response.content

    async def save_bytes(self, content: bytes) -> SavedMedia:
        """
        Writes bytes under a random name, then tries to downsample them.
        A failed transform keeps the original bytes.
        """
        filename = random_filename()
        path = self.get_upload_dir() / filename

        await asyncio.to_thread(path.write_bytes, content)

        try:
            processed = await asyncio.to_thread(downsample_image, content, self.max_width, self.quality)
            await asyncio.to_thread(path.write_bytes, processed)
            content = processed
        except Exception as e:
            logger.warning(f"Image resize/compress failed, keeping original: {e}")

        return SavedMedia(
            filename=filename,
            path=path,
            url=build_url_from_base(self.public_base_url, filename),
            content=content,
        )

    async def ingest(self, message_id: str) -> Optional[SavedMedia]:
        """
        Download + save. Returns None when the attachment cannot be fetched or stored.
        """
        try:
            content = await self.download(message_id)
        except MediaDownloadError as e:
            logger.warning(f"⚠️ Failed to download attachment {message_id}: {e.message}")
            return None
        try:
            return await self.save_bytes(content)
        except OSError as e:
            logger.error(f"Failed to store attachment {message_id}: {e}", exc_info=True)
            return None

    async def close(self):
        await self._client.aclose()


_media_service: Optional[MediaService] = None


def get_media_service() -> MediaService:
    """
    Get or create the global media service.
    """
    global _media_service
    if _media_service is None:
        _media_service = MediaService()
    return _media_service


def set_media_service(service: Optional[MediaService]) -> None:
    global _media_service
    _media_service = service


async def close_media_service():
    global _media_service
    if _media_service is not None:
        await _media_service.close()
        _media_service = None
