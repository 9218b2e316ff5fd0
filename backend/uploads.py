import logging
import os
import random
import time
from typing import Optional
from urllib.parse import urlparse

from fastapi import HTTPException, UploadFile

logger = logging.getLogger(__name__)

UPLOAD_SUBDIR = os.path.join("uploads", "projects")
# Outside the /uploads mount, same filesystem as UPLOAD_SUBDIR for os.replace
STAGING_SUBDIR = ".staging"
PUBLIC_PREFIX = "/uploads/projects/"

MAX_IMAGE_BYTES = 5 * 1024 * 1024
CHUNK_SIZE = 64 * 1024

ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


def upload_dir(public_dir: str) -> str:
    return os.path.join(public_dir, UPLOAD_SUBDIR)


def ensure_upload_dir(public_dir: str) -> str:
    path = upload_dir(public_dir)
    os.makedirs(path, exist_ok=True)
    return path


def ensure_staging_dir(public_dir: str) -> str:
    path = os.path.join(public_dir, STAGING_SUBDIR)
    os.makedirs(path, exist_ok=True)
    return path


def generate_filename(extension: str) -> str:
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1):09d}"
    return f"project-{suffix}{extension}"


def validate_image(upload: UploadFile) -> str:
    """Return the normalized extension, or raise a 400."""
    extension = os.path.splitext(upload.filename or "")[1].lower()
    content_type = (upload.content_type or "").lower()
    if extension not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Only images (jpeg, jpg, png, webp) are allowed!",
        )
    return extension


class StagedImage:
    """Scoped holder for one uploaded image.

    The upload is written to a temporary file in the staging directory and
    only moved into the uploads directory by `commit()`, which handlers call
    after the database commit. Leaving the `with` block without committing
    removes the temporary file.
    """

    def __init__(self, public_dir: str, upload: UploadFile):
        self.public_dir = public_dir
        self.upload = upload
        self.filename: Optional[str] = None
        self.temp_path: Optional[str] = None
        self.final_path: Optional[str] = None
        self.committed = False

    @property
    def public_path(self) -> str:
        return f"{PUBLIC_PREFIX}{self.filename}"

    def __enter__(self) -> "StagedImage":
        extension = validate_image(self.upload)
        directory = ensure_upload_dir(self.public_dir)
        self.filename = generate_filename(extension)
        self.final_path = os.path.join(directory, self.filename)
        self.temp_path = os.path.join(
            ensure_staging_dir(self.public_dir), f"{self.filename}.part"
        )
        try:
            self._write()
        except BaseException:
            self._discard()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self.committed:
            self._discard()

    def _write(self) -> None:
        written = 0
        with open(self.temp_path, "wb") as out:
            while True:
                chunk = self.upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > MAX_IMAGE_BYTES:
                    raise HTTPException(
                        status_code=400,
                        detail="File is too large. Maximum size is 5MB.",
                    )
                out.write(chunk)

    def commit(self) -> str:
        os.replace(self.temp_path, self.final_path)
        self.committed = True
        logger.info("Stored project image %s", self.final_path)
        return self.public_path

    def _discard(self) -> None:
        if self.temp_path and os.path.exists(self.temp_path):
            os.remove(self.temp_path)
            logger.info("Discarded staged upload %s", self.temp_path)


class NullImage:
    """Stand-in used when an update carries no new image."""

    public_path = None

    def __enter__(self) -> "NullImage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None

    def commit(self) -> None:
        return None


def stage_image(public_dir: str, upload: Optional[UploadFile]):
    if upload is None or not upload.filename:
        return NullImage()
    return StagedImage(public_dir, upload)


def resolve_image_path(public_dir: str, image_url: str) -> Optional[str]:
    """Map a stored image URL (relative or legacy absolute) to a file path."""
    path = urlparse(image_url).path if "://" in image_url else image_url
    if not path.startswith(PUBLIC_PREFIX):
        return None
    base = os.path.realpath(upload_dir(public_dir))
    candidate = os.path.realpath(os.path.join(base, path[len(PUBLIC_PREFIX):]))
    if os.path.dirname(candidate) != base:
        return None
    return candidate


def remove_public_file(public_dir: str, image_url: Optional[str]) -> bool:
    """Best-effort removal of a stored image; True if a file was deleted."""
    if not image_url:
        return False
    path = resolve_image_path(public_dir, image_url)
    if path is None:
        logger.warning("Refusing to delete image outside uploads: %s", image_url)
        return False
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.info("Image file not found at %s", path)
        return False
    except OSError as exc:
        logger.error("Error deleting image file %s: %s", path, exc)
        return False
    logger.info("Deleted image file %s", path)
    return True
