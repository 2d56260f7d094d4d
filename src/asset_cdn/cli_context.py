"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
asset service, avoiding global state and enabling proper dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .service import AssetService
from .settings import Settings, create_settings_from_env
from .storage.factory import make_stores


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Settings are loaded once per command; the service (and with it the
    stores) is built on first use, so commands that never touch storage
    never connect to it.
    """
    settings: Settings
    _service: Optional[AssetService] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Returns:
            CLIContext with settings loaded from environment
        """
        return cls(settings=create_settings_from_env())

    @property
    def service(self) -> AssetService:
        """
        Get or create the asset service (lazy initialization).

        Returns:
            AssetService wired to the configured stores
        """
        if self._service is None:
            stores = make_stores(self.settings)
            self._service = AssetService(
                metadata=stores.metadata,
                objects=stores.objects,
                fetcher=stores.fetcher,
                settings=self.settings,
            )
        return self._service
