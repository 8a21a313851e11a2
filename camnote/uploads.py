"""
Request-scoped upload storage.

Every file saved through an UploadScope is deleted when the scope exits,
whether the handler returned normally or raised.
"""
import logging
import os
import re
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional

from werkzeug.datastructures import FileStorage

from camnote.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".heic", ".heif", ".gif", ".bmp", ".tif", ".tiff")


@dataclass
class UploadedAsset:
    temporary_path: str
    original_name: str
    mime_type: str
    size_bytes: int

    def read_bytes(self) -> bytes:
        with open(self.temporary_path, "rb") as f:
            return f.read()


def _present(file: Optional[FileStorage]) -> bool:
    return file is not None and bool((file.filename or "").strip())


class UploadScope:
    """Owns the temporary files of a single request."""

    def __init__(self, upload_dir: str, prefix: str = "upload"):
        self.upload_dir = upload_dir
        self.prefix = re.sub(r"[^a-zA-Z0-9_]", "", prefix or "") or "upload"
        self.assets: List[UploadedAsset] = []

    def __enter__(self):
        os.makedirs(self.upload_dir, exist_ok=True)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _path_for(self, filename: str) -> str:
        ext = os.path.splitext((filename or "").strip())[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            ext = ".bin"
        stamp = int(time.time() * 1000)
        return os.path.join(self.upload_dir, f"{self.prefix}_{stamp}_{uuid.uuid4().hex[:12]}{ext}")

    def save(self, file: FileStorage) -> UploadedAsset:
        path = self._path_for(file.filename)
        # register before writing so a failed write is still cleaned up
        asset = UploadedAsset(path, file.filename or "", file.mimetype or "", 0)
        self.assets.append(asset)
        file.save(path)
        asset.size_bytes = os.path.getsize(path)
        return asset

    def require(self, files, field: str) -> UploadedAsset:
        file = files.get(field)
        if not _present(file):
            raise ValidationError(f"No {field} file uploaded")
        return self.save(file)

    def require_many(self, files, field: str, minimum: int = 1, message: Optional[str] = None) -> List[UploadedAsset]:
        present = [f for f in files.getlist(field) if _present(f)]
        if len(present) < minimum:
            raise ValidationError(message or f"At least {minimum} files are required in {field}")
        return [self.save(f) for f in present]

    def close(self) -> None:
        while self.assets:
            asset = self.assets.pop()
            try:
                os.remove(asset.temporary_path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.debug("Could not remove upload %s: %s", asset.temporary_path, e)
