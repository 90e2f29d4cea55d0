"""User settings service."""

from dataclasses import dataclass
from typing import Protocol

from social_network.domain.errors import ProtocolViolation
from social_network.domain.models import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES


class UserSettingsRepository(Protocol):
    """Persistence interface for user settings."""

    def get_language(self, identity: str) -> str | None:
        """Return the identity's language if set."""

    def set_language(self, identity: str, language: str) -> None:
        """Update the identity's language."""


def parse_language(raw: str) -> str:
    """Normalize a language code, rejecting unsupported ones."""
    language = raw.strip().lower()
    if language not in SUPPORTED_LANGUAGES:
        raise ProtocolViolation("Invalid language. Use 'en' or 'gr'")
    return language


@dataclass
class UserSettingsService:
    """Service for user settings."""

    repository: UserSettingsRepository

    def get_language(self, identity: str) -> str:
        """Return the identity's language or the default when unset."""
        return self.repository.get_language(identity) or DEFAULT_LANGUAGE

    def set_language(self, identity: str, language: str) -> str:
        """Persist a language preference and return the normalized code."""
        language = parse_language(language)
        self.repository.set_language(identity, language)
        return language

    def initialize(self, identity: str) -> None:
        """Store the default preference for a new identity."""
        self.repository.set_language(identity, DEFAULT_LANGUAGE)
