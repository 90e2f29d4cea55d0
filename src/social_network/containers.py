"""Dependency container wiring for the application."""

from dataclasses import dataclass
from pathlib import Path

from social_network.adapters.filesystem_photo_repository import (
    FilesystemPhotoRepository,
)
from social_network.adapters.memory_catalog_repository import MemoryCatalogRepository
from social_network.adapters.memory_graph_repository import MemoryGraphRepository
from social_network.adapters.memory_notification_repository import (
    MemoryNotificationRepository,
)
from social_network.adapters.memory_permission_repository import (
    MemoryPermissionRepository,
)
from social_network.adapters.memory_photo_repository import MemoryPhotoRepository
from social_network.adapters.memory_profile_repository import MemoryProfileRepository
from social_network.adapters.memory_user_settings_repository import (
    MemoryUserSettingsRepository,
)
from social_network.config import Settings, parse_download_access
from social_network.services.admin import AdminService
from social_network.services.catalog import CatalogService
from social_network.services.graph import GraphService
from social_network.services.notifications import NotificationService
from social_network.services.permissions import PermissionService
from social_network.services.photos import PhotoRepository, PhotoService
from social_network.services.profiles import ProfileService
from social_network.services.user_settings import UserSettingsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies shared by every session."""

    settings: Settings
    download_access: str
    graph_service: GraphService
    notification_service: NotificationService
    permission_service: PermissionService
    photo_service: PhotoService
    profile_service: ProfileService
    user_settings_service: UserSettingsService
    catalog_service: CatalogService
    admin_service: AdminService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    download_access = parse_download_access(resolved_settings.download_access)

    photo_repository: PhotoRepository
    if resolved_settings.photo_storage_dir:
        photo_repository = FilesystemPhotoRepository(
            Path(resolved_settings.photo_storage_dir)
        )
    else:
        photo_repository = MemoryPhotoRepository()

    graph_service = GraphService(MemoryGraphRepository())
    notification_service = NotificationService(MemoryNotificationRepository())
    permission_service = PermissionService(MemoryPermissionRepository())
    photo_service = PhotoService(
        photo_repository, max_upload_bytes=resolved_settings.max_upload_bytes
    )
    catalog_service = CatalogService(MemoryCatalogRepository())
    admin_service = AdminService(
        graph_service=graph_service,
        notification_service=notification_service,
        permission_service=permission_service,
        photo_service=photo_service,
        catalog_service=catalog_service,
    )

    return AppContainer(
        settings=resolved_settings,
        download_access=download_access,
        graph_service=graph_service,
        notification_service=notification_service,
        permission_service=permission_service,
        photo_service=photo_service,
        profile_service=ProfileService(MemoryProfileRepository()),
        user_settings_service=UserSettingsService(MemoryUserSettingsRepository()),
        catalog_service=catalog_service,
        admin_service=admin_service,
    )
