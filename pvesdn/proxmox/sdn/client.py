from __future__ import annotations

from pvesdn.proxmox.api import ProxmoxAPI

from .zones import ZonesClient


class SdnClient:
    """Client for the Proxmox cluster SDN API."""

    def __init__(self, api: ProxmoxAPI) -> None:
        self.api = api

    def expand_path(self, path: str) -> str:
        return f"cluster/sdn/{path}"

    def zones(self) -> ZonesClient:
        return ZonesClient(self.api, self.expand_path("zones"))
