"""Photo storage and lookup."""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePosixPath, PureWindowsPath
from typing import Protocol

from social_network.domain.errors import NotFound, ProtocolViolation
from social_network.domain.models import SUPPORTED_LANGUAGES, PhotoRecord

_logger = logging.getLogger(__name__)


class PhotoRepository(Protocol):
    """Storage interface for uploaded photos."""

    def save(self, record: PhotoRecord) -> None:
        """Store a photo, replacing any earlier upload of the same name."""

    def get(self, owner: str, file_name: str) -> PhotoRecord | None:
        """Return the photo, if present."""

    def count(self) -> int:
        """Return the number of stored photos."""


def validate_file_name(file_name: str) -> str:
    """Return the stripped name, rejecting empty names and paths."""
    cleaned = file_name.strip()
    if not cleaned:
        raise ProtocolViolation("File name cannot be empty")
    if (
        PurePosixPath(cleaned).name != cleaned
        or PureWindowsPath(cleaned).name != cleaned
        or cleaned in {".", ".."}
    ):
        raise ProtocolViolation(f"Invalid file name: {cleaned}", target=cleaned)
    return cleaned


@dataclass
class PhotoService:
    """Validates uploads and answers photo queries."""

    repository: PhotoRepository
    max_upload_bytes: int
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def prepare_upload(
        self, file_name: str, descriptions: dict[str, str]
    ) -> tuple[str, dict[str, str]]:
        """Validate upload parameters before any bytes are read."""
        cleaned_name = validate_file_name(file_name)
        cleaned = {
            language: text.strip()
            for language, text in descriptions.items()
            if language in SUPPORTED_LANGUAGES and text and text.strip()
        }
        if not cleaned:
            raise ProtocolViolation(
                "At least one description (EN or GR) must be provided"
            )
        return cleaned_name, cleaned

    def check_size(self, raw: str) -> int:
        """Parse an upload length line."""
        try:
            size = int(raw.strip())
        except ValueError as exc:
            raise ProtocolViolation("Invalid file size format") from exc
        if size < 0 or size > self.max_upload_bytes:
            raise ProtocolViolation(
                f"File size must be between 0 and {self.max_upload_bytes} bytes"
            )
        return size

    def store(
        self, owner: str, file_name: str, data: bytes, descriptions: dict[str, str]
    ) -> PhotoRecord:
        record = PhotoRecord(
            owner=owner, file_name=file_name, data=data, descriptions=descriptions
        )
        with self._lock:
            self.repository.save(record)
        _logger.info("Stored photo %s for %s (%d bytes)", file_name, owner, len(data))
        return record

    def get(self, owner: str, file_name: str) -> PhotoRecord | None:
        with self._lock:
            return self.repository.get(owner, file_name)

    def find(self, owner: str, file_name: str) -> PhotoRecord:
        """Return the photo or raise NotFound."""
        record = self.get(owner, file_name)
        if record is None:
            raise NotFound(
                f"File {file_name} not found in client {owner}'s directory",
                target=file_name,
            )
        return record

    def owners_with(
        self, file_name: str, owners: Iterable[str], language: str | None = None
    ) -> list[str]:
        """Return the owners holding the file, optionally with a description."""
        matches = []
        for owner in owners:
            record = self.get(owner, file_name)
            if record is None:
                continue
            if language is not None and not record.descriptions.get(language):
                continue
            matches.append(owner)
        return matches

    def count(self) -> int:
        with self._lock:
            return self.repository.count()
