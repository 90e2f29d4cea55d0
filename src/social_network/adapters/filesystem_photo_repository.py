"""Filesystem-backed photo repository."""

from dataclasses import dataclass
from pathlib import Path

from social_network.domain.models import SUPPORTED_LANGUAGES, PhotoRecord
from social_network.services.photos import PhotoRepository


@dataclass
class FilesystemPhotoRepository(PhotoRepository):
    """Stores `<root>/<owner>/photos/<file>` plus `<stem>_<lang>.txt` descriptions."""

    root: Path

    def save(self, record: PhotoRecord) -> None:
        """Write the photo bytes and its description files."""
        directory = self._photo_dir(record.owner)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            (directory / record.file_name).write_bytes(record.data)
            for language in SUPPORTED_LANGUAGES:
                path = self._description_path(record.owner, record.file_name, language)
                text = record.descriptions.get(language)
                if text:
                    path.write_text(text, encoding="utf-8")
                elif path.exists():
                    path.unlink()
        except OSError as exc:
            raise RuntimeError(f"Failed to store photo {record.file_name}") from exc

    def get(self, owner: str, file_name: str) -> PhotoRecord | None:
        """Load a photo and whichever descriptions exist."""
        path = self._photo_dir(owner) / file_name
        if not path.is_file():
            return None
        try:
            data = path.read_bytes()
            descriptions = {}
            for language in SUPPORTED_LANGUAGES:
                description = self._description_path(owner, file_name, language)
                if description.is_file():
                    descriptions[language] = description.read_text(encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(f"Failed to read photo {file_name}") from exc
        return PhotoRecord(
            owner=owner, file_name=file_name, data=data, descriptions=descriptions
        )

    def count(self) -> int:
        """Count photo files, skipping description files."""
        if not self.root.is_dir():
            return 0
        return sum(
            1
            for path in self.root.glob("*/photos/*")
            if path.is_file() and not self._is_description(path)
        )

    def _photo_dir(self, owner: str) -> Path:
        return self.root / owner / "photos"

    def _description_path(self, owner: str, file_name: str, language: str) -> Path:
        stem = Path(file_name).stem
        return self._photo_dir(owner) / f"{stem}_{language}.txt"

    @staticmethod
    def _is_description(path: Path) -> bool:
        return path.suffix == ".txt" and any(
            path.stem.endswith(f"_{language}") for language in SUPPORTED_LANGUAGES
        )
