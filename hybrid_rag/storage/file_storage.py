"""File storage utilities for handling PDF uploads."""

import uuid
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from hybrid_rag.config import get_settings
from hybrid_rag.errors import FileValidationError


class StoredFile(BaseModel):
    """An uploaded file written to the upload directory."""

    file_id: str = Field(description="Unique file identifier")
    filename: str = Field(description="Original filename")
    file_size: int = Field(ge=0, description="File size in bytes")
    upload_path: Path = Field(description="Path where file is stored")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FileStorageService:
    """Validates uploads and keeps them on disk while they are processed."""

    ALLOWED_CONTENT_TYPES = {
        "application/pdf",
        "application/x-pdf",
        # Some clients send no specific type for multipart files
        "application/octet-stream",
    }

    ALLOWED_EXTENSIONS = {".pdf"}

    def __init__(self, upload_dir: Path | None = None, max_file_size: int | None = None):
        settings = get_settings()
        self.upload_dir = upload_dir or settings.upload_dir
        self.max_file_size = max_file_size or settings.max_file_size

        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def validate_file_format(self, filename: str, content_type: str | None) -> None:
        """Validate file format based on extension and content type.

        Raises:
            FileValidationError: If file format is invalid
        """
        suffix = Path(filename).suffix.lower()
        if suffix not in self.ALLOWED_EXTENSIONS:
            raise FileValidationError(
                f"Invalid file extension '{suffix}'. "
                f"Allowed extensions: {', '.join(sorted(self.ALLOWED_EXTENSIONS))}"
            )

        if content_type and content_type not in self.ALLOWED_CONTENT_TYPES:
            raise FileValidationError(f"Invalid content type '{content_type}'")

    def validate_file_size(self, file_size: int) -> None:
        """Validate file size against maximum limit.

        Raises:
            FileValidationError: If file is empty or too large
        """
        if file_size <= 0:
            raise FileValidationError("File size must be greater than 0 bytes")

        if file_size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            actual_mb = file_size / (1024 * 1024)
            raise FileValidationError(
                f"File size ({actual_mb:.2f} MB) exceeds maximum allowed size ({max_mb:.2f} MB)"
            )

    def save_file(self, file_content: bytes, filename: str, content_type: str | None) -> StoredFile:
        """Validate and write an upload to disk.

        Raises:
            FileValidationError: If validation fails
            OSError: If the file cannot be written
        """
        self.validate_file_format(filename, content_type)
        self.validate_file_size(len(file_content))

        file_id = str(uuid.uuid4())
        storage_path = self.upload_dir / f"{file_id}{Path(filename).suffix.lower()}"
        storage_path.write_bytes(file_content)

        return StoredFile(
            file_id=file_id,
            filename=filename,
            file_size=len(file_content),
            upload_path=storage_path,
        )

    def delete_file(self, stored: StoredFile) -> bool:
        """Remove a stored upload; returns False if it was already gone."""
        if stored.upload_path.exists():
            stored.upload_path.unlink()
            return True
        return False
