"""In-memory photo repository."""

from dataclasses import dataclass, field

from social_network.domain.models import PhotoRecord
from social_network.services.photos import PhotoRepository


@dataclass
class MemoryPhotoRepository(PhotoRepository):
    """Photos keyed by (owner, file name)."""

    photos: dict[tuple[str, str], PhotoRecord] = field(default_factory=dict)

    def save(self, record: PhotoRecord) -> None:
        """Store the record, replacing an earlier upload."""
        self.photos[(record.owner, record.file_name)] = record

    def get(self, owner: str, file_name: str) -> PhotoRecord | None:
        """Return the record, if present."""
        return self.photos.get((owner, file_name))

    def count(self) -> int:
        """Return the number of stored photos."""
        return len(self.photos)
