from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import structlog

from .resource import Diagnostics, ZoneResource, ZoneResourceModel, requires_replace
from .storage.interface import IStateCollection

logger = structlog.getLogger(__name__)

Action = Literal["create", "update", "replace", "delete", "noop"]


@dataclass
class PlannedChange:
    action: Action
    name: str
    prior: ZoneResourceModel | None = None
    planned: ZoneResourceModel | None = None

    def __str__(self) -> str:
        return f"{self.action} {self.name}"


class ZonePlanner:
    """Brings the zones recorded in ``state`` in line with a desired configuration.

    ``state`` maps zone names to dumped ``ZoneResourceModel`` values of the zones created by
    previous runs.
    """

    def __init__(self, resource: ZoneResource, state: IStateCollection) -> None:
        self.resource = resource
        self.state = state

    async def _recorded(self) -> dict[str, ZoneResourceModel]:
        return {name: ZoneResourceModel.model_validate(value) for name, value in await self.state.all()}

    async def plan(self, desired: list[ZoneResourceModel], diags: Diagnostics) -> list[PlannedChange]:
        names = [zone.name for zone in desired]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate SDN zone names in configuration: {', '.join(duplicates)}")

        recorded = await self._recorded()
        changes: list[PlannedChange] = []

        for name in sorted(recorded.keys() - set(names)):
            changes.append(PlannedChange("delete", name, prior=recorded[name]))

        for planned in desired:
            prior = recorded.get(planned.name)
            if prior is None:
                changes.append(PlannedChange("create", planned.name, planned=planned))
                continue

            current = await self.resource.read(prior, diags)
            if diags.has_error():
                return changes

            if current.zone_type is None:
                changes.append(PlannedChange("create", planned.name, prior=current, planned=planned))
            elif requires_replace(current, planned):
                changes.append(PlannedChange("replace", planned.name, prior=current, planned=planned))
            else:
                planned = planned.with_computed_from(current)
                action: Action = "update" if current != planned else "noop"
                changes.append(PlannedChange(action, planned.name, prior=current, planned=planned))

        for change in changes:
            if change.action != "noop":
                logger.info("Planned change", action=change.action, zone=change.name)
        return changes

    async def apply(self, changes: list[PlannedChange], diags: Diagnostics) -> None:
        """Execute ``changes`` in order, recording the resulting state. Stops at the first error."""
        for change in changes:
            log = logger.bind(action=change.action, zone=change.name)
            if change.action == "noop":
                continue

            if change.action in ("delete", "replace"):
                assert change.prior is not None
                await self.resource.delete(change.prior, diags)
                if diags.has_error():
                    return
                await self.state.remove(change.name)
                if change.action == "delete":
                    log.info("Change applied")
                    continue

            assert change.planned is not None
            if change.action == "update":
                state = await self.resource.update(change.planned, diags)
            else:
                state = await self.resource.create(change.planned, diags)
            if diags.has_error():
                return

            if state.zone_type is None:
                # Gone again right after the write, nothing to record.
                await self.state.remove(change.name)
                continue
            await self.state.save(change.name, state.model_dump())
            log.info("Change applied")

    async def destroy(self, diags: Diagnostics) -> None:
        recorded = await self._recorded()
        await self.apply([PlannedChange("delete", name, prior=prior) for name, prior in recorded.items()], diags)
