from __future__ import annotations

import structlog

from pvesdn.errors import ProxmoxError, UnrecognizedVariantError, is_not_found
from pvesdn.proxmox.sdn.zones import ZonesClient

from .diagnostics import Diagnostics
from .models import VARIANTS, ZoneResourceModel

logger = structlog.getLogger(__name__)


def requires_replace(prior: ZoneResourceModel, planned: ZoneResourceModel) -> bool:
    """Whether moving from ``prior`` to ``planned`` needs the zone to be destroyed and created again.

    The name cannot be changed in place, neither can the zone type: a type block appearing or
    disappearing forces a replacement.
    """
    if prior.name != planned.name:
        return True
    return any((getattr(prior, zone_type) is None) != (getattr(planned, zone_type) is None) for zone_type in VARIANTS)


class ZoneResource:
    """Create/read/update/delete lifecycle of a Proxmox SDN zone."""

    type_name = "sdn_zone"

    def __init__(self, client: ZonesClient) -> None:
        self.client = client

    async def create(self, plan: ZoneResourceModel, diags: Diagnostics) -> ZoneResourceModel:
        log = logger.bind(zone=plan.name)
        body = plan.to_wire_record(diags)
        try:
            await self.client.create(body)
        except ProxmoxError as err:
            diags.add_error("Error Creating SDN Zone", f"Failed to create SDN zone {plan.name}: {err}")
            return plan

        log.info("SDN zone created", type=body.type)
        return await self.read(plan, diags)

    async def read(self, state: ZoneResourceModel, diags: Diagnostics) -> ZoneResourceModel:
        """Refresh ``state`` from the API.

        A zone missing on the server is reported as a warning and comes back with every attribute
        but the name cleared, so that it gets created again.
        """
        try:
            zone = await self.client.get(state.name)
        except ProxmoxError as err:
            if is_not_found(err):
                diags.add_warning(
                    "SDN Zone Not Found",
                    f"SDN zone {state.name} does not exist, setting to empty state",
                )
                state.clear_all_except_name()
            else:
                diags.add_error("Error Reading SDN Zone", f"Failed to read SDN zone {state.name}: {err}")
            return state

        try:
            return ZoneResourceModel.from_wire_record(zone)
        except UnrecognizedVariantError as err:
            diags.add_error("Invalid SDN Zone Type", str(err))
            return state

    async def update(self, plan: ZoneResourceModel, diags: Diagnostics) -> ZoneResourceModel:
        log = logger.bind(zone=plan.name)
        body = plan.to_update_request(diags)
        try:
            await self.client.update(plan.name, body)
        except ProxmoxError as err:
            diags.add_error("Error Updating SDN Zone", f"Failed to update SDN zone {plan.name}: {err}")
            return plan

        log.info("SDN zone updated", delete=body.delete)
        return await self.read(plan, diags)

    async def delete(self, state: ZoneResourceModel, diags: Diagnostics) -> None:
        try:
            await self.client.delete(state.name)
        except ProxmoxError as err:
            if is_not_found(err):
                diags.add_warning(
                    "SDN Zone Not Found",
                    f"SDN zone {state.name} does not exist, skipping deletion",
                )
            else:
                diags.add_error("Error Deleting SDN Zone", f"Failed to delete SDN zone {state.name}: {err}")
            return

        logger.info("SDN zone deleted", zone=state.name)
