import secrets
import time
from pathlib import Path

from ..config import MAX_PHOTO_BYTES
from ..errors import ValidationError
from ..logging import get_logger

log = get_logger(__name__)


class PhotoStorage:
    """
    Blob store for profile photos backed by a local directory.

    Files are written under ``root`` and served from ``url_prefix``; any
    other backend only needs to provide ``put``.
    """

    def __init__(self, root: Path, url_prefix: str):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        log.info("blob_stored", key=key, size=len(data), content_type=content_type)
        return f"{self.url_prefix}/{key}"


def photo_key(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in (filename or "") else "jpg"
    if not ext.isalnum():
        ext = "jpg"
    return f"profile-photos/{int(time.time() * 1000)}-{secrets.token_hex(8)}.{ext}"


def store_profile_photo(storage: PhotoStorage, filename: str, content_type: str, data: bytes) -> str:
    """Validate an uploaded image and store it; returns its public URL."""
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError("Only image files are allowed")
    if not data:
        raise ValidationError("No file uploaded")
    if len(data) > MAX_PHOTO_BYTES:
        raise ValidationError(f"Image must be at most {MAX_PHOTO_BYTES // (1024 * 1024)}MB")

    return storage.put(photo_key(filename), data, content_type)
