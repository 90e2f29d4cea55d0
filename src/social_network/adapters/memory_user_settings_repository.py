"""In-memory repository for user settings."""

import threading
from dataclasses import dataclass, field

from social_network.services.user_settings import UserSettingsRepository


@dataclass
class MemoryUserSettingsRepository(UserSettingsRepository):
    """Language preferences keyed by identity."""

    languages: dict[str, str] = field(default_factory=dict)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def get_language(self, identity: str) -> str | None:
        """Return the stored language for an identity."""
        with self._lock:
            return self.languages.get(identity)

    def set_language(self, identity: str, language: str) -> None:
        """Update the identity's language."""
        with self._lock:
            self.languages[identity] = language
