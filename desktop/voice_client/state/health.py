"""Backend availability as seen by the client."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Protocol

from ..services.schemas import HealthStatus

logger = logging.getLogger(__name__)


class HealthProbe(Protocol):
    def health(self) -> Awaitable[HealthStatus]: ...


Listener = Callable[["AvailabilityMonitor"], None]


class AvailabilityMonitor:
    """Combines environment connectivity with the last health probe."""

    def __init__(self, api: HealthProbe, *, online: bool = True) -> None:
        self._api = api
        self._online = online
        self._status = HealthStatus.unreachable()
        self._listeners: list[Listener] = []

    # ---- state ---- #
    @property
    def online(self) -> bool:
        return self._online

    @property
    def status(self) -> HealthStatus:
        return self._status

    @property
    def capture_enabled(self) -> bool:
        return self._online and self._status.reachable and self._status.capability_configured

    def describe(self) -> str:
        if not self._online:
            return "Offline"
        if not self._status.reachable:
            return "Server unreachable"
        if not self._status.capability_configured:
            return "API not configured"
        return "Ready"

    # ---- listeners ---- #
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ---- transitions ---- #
    async def probe(self) -> HealthStatus:
        """Re-check the backend. Skipped while offline."""
        if not self._online:
            return self._status
        status = await self._api.health()
        self._apply(status)
        return status

    async def set_online(self, online: bool) -> None:
        if not online:
            self._online = False
            self._apply(HealthStatus.unreachable(), force=True)
            return
        self._online = True
        await self.probe()

    def mark_unreachable(self) -> None:
        """Record a transport failure observed outside a probe."""
        self._apply(HealthStatus.unreachable())

    def _apply(self, status: HealthStatus, *, force: bool = False) -> None:
        changed = status != self._status
        self._status = status
        if changed or force:
            logger.info("Availability: %s", self.describe())
            self._notify()
