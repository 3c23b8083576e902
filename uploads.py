from __future__ import annotations

import os
import uuid
from pathlib import Path

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", "./static/uploads")).expanduser()
FALLBACK_EXTENSION = "tmp"


def ensure_upload_dir(upload_dir: Path | None = None) -> Path:
    upload_dir = Path(upload_dir or UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def stored_name_for(client_filename: str) -> str:
    """Random storage name that keeps the client's extension."""
    extension = ""
    if "." in client_filename:
        extension = secure_filename(client_filename.rsplit(".", 1)[-1])
    return f"{uuid.uuid4()}.{extension or FALLBACK_EXTENSION}"


def save_upload(file: FileStorage | None, upload_dir: Path | None = None) -> str | None:
    """Write an uploaded file under a fresh name; None when no file was sent."""
    if file is None or not file.filename:
        return None
    target_dir = ensure_upload_dir(upload_dir)
    name = stored_name_for(file.filename)
    file.save(target_dir / name)
    print(f"[upload] Stored {file.filename!r} as {name}")
    return name


def discard_upload(name: str | None, upload_dir: Path | None = None) -> None:
    """Remove a stored upload whose post was never saved."""
    if not name:
        return
    target = Path(upload_dir or UPLOAD_DIR) / name
    try:
        target.unlink(missing_ok=True)
    except OSError as exc:
        print(f"[upload] Failed to remove orphaned upload {name}: {exc}")
        return
    print(f"[upload] Removed orphaned upload {name}")
