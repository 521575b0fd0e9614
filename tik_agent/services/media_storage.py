"""Local storage for generated media (videos, thumbnails), served under settings.media_url_prefix."""
import uuid
from pathlib import Path

from tik_agent.config import get_settings

EXTENSIONS = {
    "video/mp4": ".mp4",
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}


def media_dir() -> Path:
    settings = get_settings()
    if settings.media_dir:
        return Path(settings.media_dir)
    return Path(__file__).resolve().parent.parent.parent / "media"


def save_media(subdir: str, data: bytes, content_type: str, prefix: str = "") -> str:
    """Write bytes under media_dir/subdir and return the public URL path."""
    target_dir = media_dir() / subdir
    target_dir.mkdir(parents=True, exist_ok=True)
    ext = EXTENSIONS.get(content_type.split(";")[0].strip().lower(), ".bin")
    filename = f"{prefix}{uuid.uuid4().hex}{ext}"
    (target_dir / filename).write_bytes(data)
    return f"{get_settings().media_url_prefix.rstrip('/')}/{subdir}/{filename}"
