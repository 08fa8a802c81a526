from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import BinaryIO, Optional
from uuid import uuid4

from officehub.core.errors import ForbiddenError, NotFoundError, ValidationError
from officehub.core.settings import settings

UPLOADS_PREFIX = "uploads/"


def uploads_root() -> Path:
    return settings.ensure_uploads_dir()


def resolve_upload_path(raw_path: Optional[str], *, root: Optional[Path] = None) -> Path:
    """
    Map a stored attachment path (``uploads/abc.pdf`` or ``/uploads/abc.pdf``)
    onto the uploads directory. Anything resolving outside it is refused.
    """
    if not raw_path or not raw_path.strip():
        raise ValidationError("File path is required")
    base = (root or uploads_root()).resolve()
    relative = raw_path.strip().replace("\\", "/").lstrip("/")
    if relative.startswith(UPLOADS_PREFIX):
        relative = relative[len(UPLOADS_PREFIX):]
    candidate = (base / relative).resolve()
    if candidate != base and base not in candidate.parents:
        raise ForbiddenError("Access denied")
    if not candidate.is_file():
        raise NotFoundError("File not found")
    return candidate


def guess_media_type(path: Path) -> str:
    media_type, _ = mimetypes.guess_type(path.name)
    return media_type or "application/octet-stream"


def safe_download_name(path: Path) -> str:
    return path.name.encode("ascii", "ignore").decode("ascii") or "download"


def store_upload(filename: Optional[str], stream: BinaryIO, *, root: Optional[Path] = None) -> dict:
    base = root or uploads_root()
    original = Path(filename or "upload.bin").name
    stored_name = f"{uuid4().hex}{Path(original).suffix}"
    content = stream.read()
    (base / stored_name).write_bytes(content)
    return {
        "filename": original,
        "size": len(content),
        "path": f"{UPLOADS_PREFIX}{stored_name}",
    }


def attachment_descriptor(descriptor: Optional[dict]) -> Optional[dict]:
    """Check that an uploaded attachment still exists under the uploads directory."""
    if not descriptor:
        return None
    try:
        target = resolve_upload_path(descriptor.get("path"))
    except NotFoundError as exc:
        raise ValidationError("Attachment file not found") from exc
    return {
        "filename": descriptor.get("filename") or target.name,
        "size": descriptor.get("size") if descriptor.get("size") is not None else target.stat().st_size,
        "path": descriptor["path"].strip(),
    }
