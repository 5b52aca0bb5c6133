"""Profile image storage on the local filesystem.

Learn: Images live under <upload_dir>/<owner-dir>/profile<ext> and are
recorded in the users table as "/uploads/<owner-dir>/profile<ext>", the
URL path StaticFiles serves them from. StaticFiles picks the content
type from the extension, so only image extensions are written.

The owner directory is keyed by the user's display name, so two users
with the same name share a directory and overwrite each other's file.
Re-uploading with a different extension leaves the previous file behind.

File IO runs in a worker thread so it does not stall the event loop.
"""

import asyncio
import re
from pathlib import Path
from typing import Optional

import structlog

from profilehub.errors import ImageIOError, ValidationError

logger = structlog.get_logger()

URL_PREFIX = "/uploads"

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".webp"})

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def owner_directory(name: str, user_id: int) -> str:
    """Filesystem-safe directory name for a user's uploads."""
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned or f"user-{user_id}"


def image_extension(filename: str) -> str:
    """Lower-cased extension of an upload, or ValidationError if not an image."""
    suffix = Path(filename or "").suffix.lower()
    if suffix not in IMAGE_EXTENSIONS:
        raise ValidationError("Unsupported image type")
    return suffix


class ImageStore:
    """Reads and writes profile images below a single root directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    async def save(
        self, *, owner_name: str, user_id: int, filename: str, data: bytes
    ) -> str:
        """Write an uploaded image and return its stored path."""
        directory = owner_directory(owner_name, user_id)
        target_name = "profile" + image_extension(filename)
        target = self.root / directory / target_name

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError:
            logger.exception("images.write_failed", path=str(target))
            raise ImageIOError()

        return f"{URL_PREFIX}/{directory}/{target_name}"

    def resolve(self, stored_path: str) -> Optional[Path]:
        """Map a stored path back to a file under the root.

        Returns None for absolute URLs and for anything that would land
        outside the upload root. Those are never touched on disk.
        """
        if not stored_path.startswith(URL_PREFIX + "/"):
            return None

        root = self.root.resolve()
        candidate = (root / stored_path[len(URL_PREFIX) + 1:]).resolve()
        if root not in candidate.parents:
            return None
        return candidate

    async def delete(self, stored_path: str, *, owner_name: str, user_id: int) -> bool:
        """Remove a stored image from the owner's own directory.

        A file that is already gone is not an error. Paths outside the
        owner's directory (another user's upload, an external URL) are
        left alone. Returns True when a file was actually removed.
        """
        path = self.resolve(stored_path)
        own_dir = self.root.resolve() / owner_directory(owner_name, user_id)
        if path is None or path.parent != own_dir:
            logger.info("images.delete_skipped", stored_path=stored_path, user_id=user_id)
            return False

        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError:
            logger.exception("images.delete_failed", path=str(path))
            raise ImageIOError("Could not delete image")
        return True
