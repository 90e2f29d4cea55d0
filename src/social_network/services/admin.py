"""Admin service for diagnostics."""

from dataclasses import asdict, dataclass

from social_network.domain.models import StoreStats
from social_network.services.catalog import CatalogService
from social_network.services.graph import GraphService
from social_network.services.notifications import NotificationService
from social_network.services.permissions import PermissionService
from social_network.services.photos import PhotoService


@dataclass
class AdminService:
    """Read-only reporting over the shared stores."""

    graph_service: GraphService
    notification_service: NotificationService
    permission_service: PermissionService
    photo_service: PhotoService
    catalog_service: CatalogService

    def stats(self) -> StoreStats:
        identities, edges = self.graph_service.counts()
        return StoreStats(
            identities=identities,
            follow_edges=edges,
            notifications=self.notification_service.count(),
            grants=self.permission_service.count(),
            connected_clients=len(self.catalog_service.snapshot()),
        )

    def stats_summary(self) -> dict[str, int]:
        """Return store counts plus the stored photo count."""
        summary = asdict(self.stats())
        summary["photos"] = self.photo_service.count()
        return summary

    def list_clients(self) -> list[dict[str, object]]:
        """Return connected clients for the admin API."""
        return [
            {
                "identity": info.identity,
                "address": info.address,
                "port": info.port,
                "connected_at": info.connected_at.isoformat(),
            }
            for info in self.catalog_service.snapshot()
        ]
