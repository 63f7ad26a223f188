"""Platform-keyed provider factory and the lazily cached source resolver."""

from __future__ import annotations

import logging
import sys
import threading
from typing import Callable

from ..errors import SourceUnavailable
from .base import OperatingSystemInfoProvider
from .psutil_provider import PsutilOperatingSystemInfoProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[], OperatingSystemInfoProvider]


class PlatformSensorInfoProviderFactory:
    """Looks up the provider implementation for a host platform.

    Platforms are matched by prefix against :data:`sys.platform`, so
    ``"freebsd"`` covers ``freebsd13`` and friends.
    """

    def __init__(self, platform: str | None = None) -> None:
        self._platform = sys.platform if platform is None else platform
        self._factories: dict[str, ProviderFactory] = {
            "linux": PsutilOperatingSystemInfoProvider,
            "darwin": PsutilOperatingSystemInfoProvider,
            "win32": PsutilOperatingSystemInfoProvider,
            "freebsd": PsutilOperatingSystemInfoProvider,
        }

    @property
    def platform(self) -> str:
        return self._platform

    def register_provider(self, platform: str, factory: ProviderFactory) -> None:
        """Register (or replace) the provider factory for *platform*."""
        self._factories[platform] = factory

    def get_operating_system_info_provider(self) -> OperatingSystemInfoProvider:
        for prefix, factory in self._factories.items():
            if self._platform.startswith(prefix):
                return factory()
        raise SourceUnavailable(f"no OS info provider for platform {self._platform!r}")


class SourceResolver:
    """Resolves the OS info provider once and caches it on success.

    A failed resolution is not remembered: the next :meth:`resolve` call
    tries again, because the platform capability may show up later.
    """

    def __init__(self, factory: PlatformSensorInfoProviderFactory | None = None) -> None:
        self._factory = factory or PlatformSensorInfoProviderFactory()
        self._provider: OperatingSystemInfoProvider | None = None
        self._lock = threading.Lock()

    def resolve(self) -> OperatingSystemInfoProvider:
        """Return the cached provider, resolving it if necessary.

        Raises :class:`SourceUnavailable` when resolution fails.
        """
        with self._lock:
            if self._provider is None:
                self._provider = self._factory.get_operating_system_info_provider()
                logger.info(
                    "Resolved %s for platform %s",
                    type(self._provider).__name__,
                    self._factory.platform,
                )
            return self._provider
