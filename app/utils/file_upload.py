# app/utils/file_upload.py

import logging
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Allowed file types
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
ALLOWED_PDF_TYPES = {"application/pdf"}
ALLOWED_VIDEO_TYPES = {
    "video/mp4",
    "video/avi",
    "video/mov",
    "video/quicktime",
    "video/x-msvideo",
    "video/webm",
    "video/ogg",
}
MB = 1024 * 1024


class FileUploadService:
    """Service to handle content uploads with UUID naming under the storage directory."""

    def __init__(self, base_storage_path: Optional[Path] = None):
        """
        Args:
            base_storage_path: Base directory for file storage, served under /storage
        """
        self.base_storage_path = Path(base_storage_path or settings.storage_path)

    def _get_file_extension(self, filename: str) -> str:
        return Path(filename).suffix.lower()

    async def _read(self, file: UploadFile, max_size: int) -> bytes:
        if not file.filename:
            raise ValidationError("No filename provided")

        contents = await file.read()
        await file.seek(0)

        if len(contents) == 0:
            raise ValidationError("Empty file uploaded")
        if len(contents) > max_size:
            raise ValidationError(
                f"file size too large: maximum {max_size // MB}MB allowed"
            )
        return contents

    def _write(self, folder: str, extension: str, contents: bytes) -> str:
        folder_path = self.base_storage_path / folder
        folder_path.mkdir(parents=True, exist_ok=True)

        uuid_filename = f"{uuid.uuid4()}{extension}"
        file_path = folder_path / uuid_filename
        with open(file_path, "wb") as f:
            f.write(contents)

        logger.info(f"Stored upload {file_path} ({len(contents)} bytes)")
        return f"/storage/{folder}/{uuid_filename}"

    async def save_thumbnail(self, file: UploadFile) -> str:
        """Store a course thumbnail and return its public URL path"""
        extension = self._get_file_extension(file.filename or "")
        if extension not in ALLOWED_IMAGE_EXTENSIONS:
            raise ValidationError(
                f"Invalid file type. Allowed types: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}"
            )
        contents = await self._read(file, settings.max_image_size_mb * MB)
        return self._write("thumbnails", extension, contents)

    async def save_pdf(self, file: UploadFile) -> str:
        if file.content_type not in ALLOWED_PDF_TYPES:
            raise ValidationError("invalid file type: only PDF files are allowed")
        contents = await self._read(file, settings.max_pdf_size_mb * MB)
        return self._write("pdfs", ".pdf", contents)

    async def save_video(self, file: UploadFile) -> str:
        if file.content_type not in ALLOWED_VIDEO_TYPES:
            raise ValidationError(
                "invalid file type: only video files (MP4, AVI, MOV, WebM, OGG) are allowed"
            )
        contents = await self._read(file, settings.max_video_size_mb * MB)
        extension = self._get_file_extension(file.filename or "") or ".mp4"
        return self._write("videos", extension, contents)


file_upload_service = FileUploadService()
