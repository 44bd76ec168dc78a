import os
from uuid import uuid4

BASE_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..")
)

UPLOADS_DIR = os.path.join(BASE_DIR, "uploads")
UPLOADS_URL_PREFIX = "/uploads"


def generate_upload_filename(original_filename: str | None) -> str:
    """
    Unique on-disk name that keeps the original extension.
    Example:
    lecture-01.mp4 -> 3f2b...e1.mp4
    """
    ext = os.path.splitext(os.path.basename(original_filename or ""))[1].lower()
    return f"{uuid4()}{ext}"


def get_upload_fs_path(uploads_dir: str, filename: str) -> str:
    """
    Converts a stored filename -> absolute filesystem path
    Example:
    3f2b...e1.mp4
    -> /srv/video-progress/uploads/3f2b...e1.mp4
    """
    return os.path.join(uploads_dir, os.path.basename(filename))


def build_upload_url(base_url: str, filename: str) -> str:
    return f"{base_url.rstrip('/')}{UPLOADS_URL_PREFIX}/{filename}"


def delete_upload_safely(uploads_dir: str, filename: str | None):
    if not filename:
        return

    file_path = get_upload_fs_path(uploads_dir, filename)

    if os.path.exists(file_path):
        os.remove(file_path)
