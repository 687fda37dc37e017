"""In-process stand-in for the parts of the Proxmox VE API used by the SDN zone client."""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, TypeVar

from aiohttp import web
from aiohttp.test_utils import TestServer

from pvesdn.proxmox import ProxmoxAPI, SdnClient, ZonesClient

T = TypeVar("T")

API_TOKEN = "root@pam!pvesdn=00000000-0000-0000-0000-000000000000"


def _coerce(value: str) -> Any:
    # The API answers with JSON numbers for integer and boolean properties.
    return int(value) if value.isdigit() else value


class FakeProxmox:
    """Zones kept across runs; every run serves them from a new application.

    ``defaults`` maps a zone type to properties the server fills in on create when they are not sent.
    """

    def __init__(
        self,
        zones: list[dict[str, Any]] | None = None,
        defaults: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.zones: dict[str, dict[str, Any]] = {zone["zone"]: dict(zone) for zone in zones or []}
        self.defaults = defaults or {}
        # (method, raw path, form) of every zones request
        self.requests: list[tuple[str, str, dict[str, str]]] = []
        self.list_without_data = False

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api2/json/version", self.version)
        app.router.add_get("/api2/json/cluster/sdn/zones", self.list_zones)
        app.router.add_post("/api2/json/cluster/sdn/zones", self.create_zone)
        app.router.add_get("/api2/json/cluster/sdn/zones/{zone}", self.get_zone)
        app.router.add_put("/api2/json/cluster/sdn/zones/{zone}", self.update_zone)
        app.router.add_delete("/api2/json/cluster/sdn/zones/{zone}", self.delete_zone)
        return app

    @property
    def last_request(self) -> tuple[str, str, dict[str, str]]:
        return self.requests[-1]

    async def _record(self, request: web.Request) -> dict[str, str]:
        form = {key: str(value) for key, value in (await request.post()).items()} if request.can_read_body else {}
        self.requests.append((request.method, request.raw_path, dict(form)))
        return form

    @staticmethod
    def _error(status: int, reason: str, errors: dict[str, str] | None = None) -> web.Response:
        body: dict[str, Any] = {"data": None}
        if errors:
            body["errors"] = errors
        return web.Response(status=status, reason=reason, text=json.dumps(body), content_type="application/json")

    def _missing(self, zone: str) -> web.Response:
        return self._error(500, f"sdn zone object ID '{zone}' does not exist")

    async def version(self, request: web.Request) -> web.Response:
        if request.headers.get("Authorization") != f"PVEAPIToken={API_TOKEN}":
            return self._error(401, "invalid token value!")
        return web.json_response({"data": {"version": "8.2.4", "release": "8.2"}})

    async def list_zones(self, request: web.Request) -> web.Response:
        await self._record(request)
        if self.list_without_data:
            return web.json_response({})
        return web.json_response({"data": list(self.zones.values())})

    async def get_zone(self, request: web.Request) -> web.Response:
        await self._record(request)
        zone = request.match_info["zone"]
        if zone not in self.zones:
            return self._missing(zone)
        return web.json_response({"data": self.zones[zone]})

    async def create_zone(self, request: web.Request) -> web.Response:
        form = await self._record(request)
        zone = form["zone"]
        if zone in self.zones:
            return self._error(500, f"create sdn zone object failed: sdn zone object ID '{zone}' already defined")
        if "type" not in form:
            return self._error(400, "Parameter verification failed.", {"type": "property is missing and it is not optional"})
        created = dict(self.defaults.get(form["type"], {}))
        created.update({key: _coerce(value) for key, value in form.items()})
        self.zones[zone] = created
        return web.json_response({"data": None})

    async def update_zone(self, request: web.Request) -> web.Response:
        form = await self._record(request)
        zone = request.match_info["zone"]
        if "type" in form:
            return self._error(
                400,
                "Parameter verification failed.",
                {"type": "property is not defined in schema and the schema does not allow additional properties"},
            )
        if zone not in self.zones:
            return self._missing(zone)

        current = self.zones[zone]
        for key in filter(None, form.pop("delete", "").split(",")):
            current.pop(key, None)
        current.update({key: _coerce(value) for key, value in form.items()})
        return web.json_response({"data": None})

    async def delete_zone(self, request: web.Request) -> web.Response:
        await self._record(request)
        zone = request.match_info["zone"]
        if self.zones.pop(zone, None) is None:
            return self._missing(zone)
        return web.json_response({"data": None})


async def with_endpoint(fake: FakeProxmox, func: Callable[[str], Awaitable[T]]) -> T:
    async with TestServer(fake.make_app()) as server:
        return await func(str(server.make_url("/")))


async def with_api(fake: FakeProxmox, func: Callable[[ProxmoxAPI], Awaitable[T]], token: str = API_TOKEN) -> T:
    async def run(endpoint: str) -> T:
        async with ProxmoxAPI(endpoint, token) as api:
            return await func(api)

    return await with_endpoint(fake, run)


async def with_zones(fake: FakeProxmox, func: Callable[[ZonesClient], Awaitable[T]]) -> T:
    async def run(api: ProxmoxAPI) -> T:
        return await func(SdnClient(api).zones())

    return await with_api(fake, run)
