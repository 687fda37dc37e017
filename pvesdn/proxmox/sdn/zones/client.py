from __future__ import annotations

from urllib.parse import quote

import structlog

from pvesdn.errors import NoDataError, NotFoundError, TransportError
from pvesdn.proxmox.api import ProxmoxAPI

from .models import ZoneGetResponse, ZoneListResponse, ZoneRecord, ZoneUpdateRequest

logger = structlog.getLogger(__name__)


def _wrap(err: TransportError, context: str) -> TransportError:
    # Keep the not-found classification when adding context.
    cls = NotFoundError if isinstance(err, NotFoundError) else TransportError
    return cls(f"{context}: {err}", status=err.status)


class ZonesClient:
    """Client for the Proxmox SDN zones management API."""

    def __init__(self, api: ProxmoxAPI, base_path: str = "cluster/sdn/zones") -> None:
        self.api = api
        self.base_path = base_path

    def expand_path(self, path: str) -> str:
        return f"{self.base_path}/{path}" if path else self.base_path

    async def list(self) -> list[ZoneRecord]:
        """Return all SDN zones of the cluster, sorted by name."""
        try:
            data = await self.api.do_request("GET", self.expand_path(""))
        except TransportError as err:
            raise _wrap(err, "error listing SDN zones") from err

        response = ZoneListResponse.model_validate(data or {})
        if response.data is None:
            raise NoDataError()

        return sorted(response.data, key=lambda zone: zone.name)

    async def get(self, zone: str) -> ZoneRecord:
        try:
            data = await self.api.do_request("GET", self.expand_path(quote(zone, safe="")))
        except TransportError as err:
            raise _wrap(err, "error reading SDN zone") from err

        response = ZoneGetResponse.model_validate(data or {})
        if response.data is None:
            raise NoDataError()

        return response.data

    async def create(self, data: ZoneRecord) -> None:
        logger.debug("Creating SDN zone", zone=data.name, type=data.type)
        try:
            await self.api.do_request("POST", self.expand_path(""), data.to_form())
        except TransportError as err:
            raise _wrap(err, "error creating SDN zone") from err

    async def update(self, zone: str, data: ZoneUpdateRequest) -> None:
        logger.debug("Updating SDN zone", zone=zone, delete=data.delete)
        try:
            await self.api.do_request("PUT", self.expand_path(quote(zone, safe="")), data.to_form())
        except TransportError as err:
            raise _wrap(err, "error updating SDN zone") from err

    async def delete(self, zone: str) -> None:
        logger.debug("Deleting SDN zone", zone=zone)
        try:
            await self.api.do_request("DELETE", self.expand_path(quote(zone, safe="")))
        except TransportError as err:
            raise _wrap(err, "error deleting SDN zone") from err
