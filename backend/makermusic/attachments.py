import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from typing import BinaryIO

from .models import MessageType

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
_EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,10}$")

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".heic", ".bmp"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".3gp", ".mkv", ".avi", ".webm"}
AUDIO_EXTENSIONS = {".mp3", ".m4a", ".aac", ".wav", ".ogg", ".opus", ".amr", ".caf"}


class AttachmentTooLarge(Exception):
    pass


@dataclass(frozen=True)
class StoredAttachment:
    file_url: str
    file_name: str
    file_size: int
    path: str


def repair_filename(name: str) -> str:
    """Undo UTF-8 names that arrived decoded as latin-1 (``MÃºsica`` -> ``Música``)."""
    try:
        return name.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return name


def _extension(filename: str) -> str:
    ext = os.path.splitext(os.path.basename(filename or ""))[1].lower()
    return ext if _EXTENSION_PATTERN.match(ext) else ""


def classify_attachment(content_type: str | None, filename: str | None) -> MessageType:
    """Declared MIME type first, file extension as fallback."""
    major = (content_type or "").split("/", 1)[0].lower()
    if major == "image":
        return MessageType.IMAGE
    if major == "video":
        return MessageType.VIDEO
    if major == "audio":
        return MessageType.AUDIO

    ext = _extension(filename or "")
    if ext in IMAGE_EXTENSIONS:
        return MessageType.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return MessageType.VIDEO
    if ext in AUDIO_EXTENSIONS:
        return MessageType.AUDIO
    return MessageType.FILE


class AttachmentStore:
    def __init__(self, directory: str, max_bytes: int, url_prefix: str = "/uploads"):
        self.directory = directory
        self.max_bytes = max_bytes
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_directory(self) -> None:
        os.makedirs(self.directory, exist_ok=True)

    def unique_name(self, original_filename: str) -> str:
        return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{_extension(original_filename)}"

    def save(self, stream: BinaryIO, original_filename: str) -> StoredAttachment:
        self.ensure_directory()
        stored_name = self.unique_name(original_filename)
        path = os.path.join(self.directory, stored_name)

        size = 0
        try:
            with open(path, "wb") as buffer:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise AttachmentTooLarge(original_filename)
                    buffer.write(chunk)
        except AttachmentTooLarge:
            os.remove(path)
            raise

        logger.info(f"Stored attachment {stored_name} ({size} bytes)")
        return StoredAttachment(
            file_url=f"{self.url_prefix}/{stored_name}",
            file_name=repair_filename(original_filename),
            file_size=size,
            path=path,
        )
