import uuid
from pathlib import Path

from fastapi import UploadFile

from marketplace import config


def ensure_upload_dir() -> Path:
    config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    return config.UPLOAD_DIR


def save_uploaded_file(upload: UploadFile, prefix: str = "") -> tuple[str, str]:
    """
    Save an uploaded artifact under UPLOAD_DIR with a random name.
    Returns (public_url, original_filename); records keep only the URL.
    """
    ensure_upload_dir()
    ext = Path(upload.filename or "bin").suffix
    unique_name = f"{prefix}{uuid.uuid4().hex}{ext}"
    path = config.UPLOAD_DIR / unique_name
    with open(path, "wb") as f:
        f.write(upload.file.read())
    return f"{config.STATIC_URL_PREFIX}/{unique_name}", upload.filename or unique_name


def clear_uploads() -> int:
    removed = 0
    if config.UPLOAD_DIR.exists():
        for f in config.UPLOAD_DIR.iterdir():
            if f.is_file():
                f.unlink()
                removed += 1
    ensure_upload_dir()
    return removed


def discard_upload(url: str) -> None:
    """Remove a file saved by save_uploaded_file whose record never committed."""
    name = url.rsplit("/", 1)[-1]
    path = config.UPLOAD_DIR / name
    if path.is_file():
        path.unlink()
