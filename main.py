import argparse
import asyncio
import os
import sys

import structlog
import uvloop
from pyaml_env import parse_config
from pydantic import TypeAdapter, ValidationError

from pvesdn.errors import ProxmoxError
from pvesdn.logging_conf import configure_logging
from pvesdn.planner import ZonePlanner
from pvesdn.proxmox import ProxmoxAPI, SdnClient
from pvesdn.resource import Diagnostics, ZoneResource, ZoneResourceModel
from pvesdn.settings import Settings
from pvesdn.storage.interface import IStateStorage
from pvesdn.storage.memory import InMemoryStateStorage
from pvesdn.storage.sqlite import SqliteStateStorage

logger = structlog.getLogger(__name__)

COMMANDS = ("list", "plan", "apply", "destroy")


def _environ_or_required(key):
    return {"default": os.environ.get(key)} if os.environ.get(key) else {"required": True}


def load_config(path: str) -> tuple[Settings, list[ZoneResourceModel]]:
    """Read settings and desired zones from the YAML config, expanding ${VAR} and ${VAR:default}."""
    config = parse_config(path, tag=None) or {}
    settings = Settings.model_validate(config.get("settings") or {})
    zones = TypeAdapter(list[ZoneResourceModel]).validate_python(config.get("zones") or [])
    return settings, zones


def _print_diagnostics(diags: Diagnostics) -> None:
    for diag in diags:
        print(f"{diag.severity.upper()}: {diag}", file=sys.stderr)


async def run_command(command: str, desired: list[ZoneResourceModel], api: ProxmoxAPI, storage: IStateStorage) -> int:
    diags = Diagnostics()
    zones = SdnClient(api).zones()

    if command == "list":
        for zone in await zones.list():
            print(f"{zone.name}\t{zone.type}")
        return 0

    resource = ZoneResource(zones)
    planner = ZonePlanner(resource, await storage.collection(resource.type_name))

    if command == "destroy":
        await planner.destroy(diags)
    else:
        try:
            changes = await planner.plan(desired, diags)
        except ValueError as e:
            logger.error("Invalid SDN zone configuration", error=str(e))
            return 1
        for change in changes:
            print(change)
        if command == "apply" and not diags.has_error():
            await planner.apply(changes, diags)

    _print_diagnostics(diags)
    return 1 if diags.has_error() else 0


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage Proxmox VE SDN zones declaratively")
    parser.add_argument("-c", "--config", **_environ_or_required("CONFIG_FILE"))  # type: ignore
    parser.add_argument("command", choices=COMMANDS)
    args = parser.parse_args(argv)

    try:
        settings, desired = load_config(args.config)
    except ValidationError as e:
        logger.error("Invalid configuration", config=args.config, errors=e.errors(include_url=False))
        return 1

    configure_logging(settings.log.level, console_colors=settings.log.colors)

    if settings.database.path:
        logger.info("Using sqlite engine to store state", db_path=settings.database.path)
        storage: IStateStorage = SqliteStateStorage(settings.database.path)
    else:
        logger.warning("Using in-memory engine to store state, nothing is kept between runs")
        storage = InMemoryStateStorage()

    api = ProxmoxAPI(
        endpoint=settings.proxmox.endpoint,
        api_token=settings.proxmox.api_token,
        insecure=settings.proxmox.insecure,
        timeout=settings.proxmox.timeout,
    )

    try:
        async with storage, api:
            return await run_command(args.command, desired, api, storage)
    except ProxmoxError as e:
        logger.error("Proxmox API request failed", endpoint=settings.proxmox.endpoint, error=str(e))
        return 1


if __name__ == "__main__":
    if sys.version_info >= (3, 11):
        with asyncio.Runner(loop_factory=uvloop.new_event_loop) as runner:
            sys.exit(runner.run(main()))
    else:
        event_loop = uvloop.new_event_loop()
        sys.exit(event_loop.run_until_complete(main()))
