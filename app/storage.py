import logging
import os
import uuid

from starlette.concurrency import run_in_threadpool

from app.config import PUBLIC_BASE_URL, UPLOAD_DIR, UPLOAD_MAX_FILE_SIZE_BYTES
from app.schemas import UploadPurpose

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"

ALLOWED_MIME_TYPES = {
    UploadPurpose.POKEMON_IMAGE: ("image/jpeg", "image/png", "image/webp", "image/gif"),
    UploadPurpose.POKEMON_AUDIO: ("audio/mpeg", "audio/ogg", "audio/wav"),
}

EXTENSION_BY_MIME_TYPE = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "audio/mpeg": ".mp3",
    "audio/ogg": ".ogg",
    "audio/wav": ".wav",
}


def infer_extension(filename: str | None, mime_type: str | None) -> str:
    """Extension of the original filename, else the one implied by the MIME type."""
    ext = os.path.splitext(filename or "")[1]
    if ext:
        return ext
    return EXTENSION_BY_MIME_TYPE.get(mime_type or "", "")


class UploadStorage:
    """Local-disk byte sink for uploaded media, served back under /uploads."""

    def __init__(
        self,
        directory: str = UPLOAD_DIR,
        public_base_url: str = PUBLIC_BASE_URL,
        max_bytes: int = UPLOAD_MAX_FILE_SIZE_BYTES,
    ):
        self.directory = directory
        self.public_base_url = public_base_url.rstrip("/")
        self.max_bytes = max_bytes

    def is_allowed(self, purpose: UploadPurpose, mime_type: str | None) -> bool:
        return mime_type in ALLOWED_MIME_TYPES[purpose]

    def public_url(self, filename: str) -> str:
        return f"{self.public_base_url}{UPLOAD_URL_PREFIX}/{filename}"

    async def save(self, data: bytes, original_name: str | None, mime_type: str | None) -> str:
        """Write `data` under a fresh random name and return that name."""
        filename = f"{uuid.uuid4().hex}{infer_extension(original_name, mime_type)}"
        destination = os.path.join(self.directory, filename)
        await run_in_threadpool(self._write, destination, data)
        logger.info("Stored upload %s (%d bytes)", filename, len(data))
        return filename

    def _write(self, destination: str, data: bytes) -> None:
        os.makedirs(self.directory, exist_ok=True)
        with open(destination, "wb") as f:
            f.write(data)


_storage = None


def get_storage() -> UploadStorage:
    global _storage
    if _storage is None:
        _storage = UploadStorage()
    return _storage
