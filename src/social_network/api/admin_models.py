"""Pydantic models for admin API responses."""

from datetime import datetime

from pydantic import BaseModel, Field


class ClientEntry(BaseModel):
    """A connected client in the catalog."""

    identity: str
    address: str
    port: int
    connected_at: datetime


class ClientList(BaseModel):
    """Catalog snapshot."""

    clients: list[ClientEntry] = Field(default_factory=list)


class StoreStatsResponse(BaseModel):
    """Counts over the shared stores."""

    download_access: str
    identities: int
    follow_edges: int
    notifications: int
    grants: int
    connected_clients: int
    photos: int


class CommandEntry(BaseModel):
    """One row of the session command table."""

    command: str
    description: str


class CommandList(BaseModel):
    """The session command table."""

    commands: list[CommandEntry]
