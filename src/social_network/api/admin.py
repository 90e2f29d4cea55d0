"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from social_network.api.admin_models import (
    ClientList,
    CommandList,
    StoreStatsResponse,
)
from social_network.protocol.commands import command_help

if TYPE_CHECKING:
    from social_network.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/clients", dependencies=[Depends(require_admin)])
async def list_clients(request: Request) -> ClientList:
    """Return the connected client catalog."""
    container: AppContainer = request.app.state.container
    return ClientList.model_validate(
        {"clients": container.admin_service.list_clients()}
    )


@router.get("/stats", dependencies=[Depends(require_admin)])
async def store_stats(request: Request) -> StoreStatsResponse:
    """Return counts for the shared stores."""
    container: AppContainer = request.app.state.container
    return StoreStatsResponse(
        download_access=container.download_access,
        **container.admin_service.stats_summary(),
    )


@router.get("/commands", dependencies=[Depends(require_admin)])
async def list_commands() -> CommandList:
    """Return the session command table."""
    return CommandList.model_validate({"commands": command_help()})
