"""Tests for photo storage and lookup."""

from pathlib import Path

import pytest

from social_network.adapters.filesystem_photo_repository import (
    FilesystemPhotoRepository,
)
from social_network.adapters.memory_photo_repository import MemoryPhotoRepository
from social_network.domain.errors import NotFound, ProtocolViolation
from social_network.domain.models import PhotoRecord
from social_network.services.photos import PhotoService, validate_file_name


@pytest.fixture
def photos() -> PhotoService:
    return PhotoService(MemoryPhotoRepository(), max_upload_bytes=1024)


@pytest.mark.parametrize(
    "name", ["", "  ", "../etc/passwd", "a/b.jpg", "a\\b.jpg", ".."]
)
def test_validate_file_name_rejects_paths(name: str) -> None:
    with pytest.raises(ProtocolViolation):
        validate_file_name(name)


def test_prepare_upload_requires_a_description(photos: PhotoService) -> None:
    with pytest.raises(ProtocolViolation, match="At least one description"):
        photos.prepare_upload("cat.jpg", {"en": " ", "gr": ""})

    name, descriptions = photos.prepare_upload("cat.jpg", {"en": "", "gr": "γάτα"})
    assert name == "cat.jpg"
    assert descriptions == {"gr": "γάτα"}


def test_check_size_bounds(photos: PhotoService) -> None:
    assert photos.check_size("12") == 12
    with pytest.raises(ProtocolViolation, match="Invalid file size format"):
        photos.check_size("twelve")
    with pytest.raises(ProtocolViolation):
        photos.check_size("2048")


def test_find_missing_photo_raises(photos: PhotoService) -> None:
    with pytest.raises(NotFound, match="File cat.jpg not found in client alice"):
        photos.find("alice", "cat.jpg")


def test_owners_with_filters_by_language(photos: PhotoService) -> None:
    photos.store("alice", "cat.jpg", b"meow", {"en": "A cat"})
    photos.store("bob", "cat.jpg", b"purr", {"gr": "Μια γάτα"})

    assert photos.owners_with("cat.jpg", ["alice", "bob", "carol"]) == ["alice", "bob"]
    assert photos.owners_with("cat.jpg", ["alice", "bob"], "gr") == ["bob"]


def test_description_falls_back_to_english_then_greek() -> None:
    both = PhotoRecord("alice", "cat.jpg", b"", {"en": "A cat", "gr": "Μια γάτα"})
    greek_only = PhotoRecord("alice", "dog.jpg", b"", {"gr": "Ένας σκύλος"})
    bare = PhotoRecord("alice", "fox.jpg", b"")

    assert both.description_for("gr") == "Μια γάτα"
    assert both.description_for("en") == "A cat"
    assert greek_only.description_for("en") == "Ένας σκύλος"
    assert bare.description_for("en") is None


def test_filesystem_repository_round_trip(tmp_path: Path) -> None:
    repository = FilesystemPhotoRepository(tmp_path)
    service = PhotoService(repository, max_upload_bytes=1024)

    service.store(
        "alice", "cat.jpg", b"\x00\x01meow", {"en": "A cat", "gr": "Μια γάτα"}
    )

    assert (tmp_path / "alice" / "photos" / "cat.jpg").read_bytes() == b"\x00\x01meow"
    assert (tmp_path / "alice" / "photos" / "cat_gr.txt").read_text(
        encoding="utf-8"
    ) == "Μια γάτα"
    record = service.find("alice", "cat.jpg")
    assert record.data == b"\x00\x01meow"
    assert record.descriptions == {"en": "A cat", "gr": "Μια γάτα"}
    assert service.count() == 1
    assert service.get("bob", "cat.jpg") is None
