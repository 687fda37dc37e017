from __future__ import annotations

from typing import Literal

from annotated_types import Len
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Annotated

from pvesdn.errors import UnrecognizedVariantError
from pvesdn.proxmox.sdn.zones.models import ZoneRecord, ZoneUpdateRequest

from .diagnostics import Diagnostics

LIST_SEPARATOR = ","

ZoneName = Annotated[str, Len(3)]


class SimpleZone(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dhcp: Literal["dnsmasq"] | None = Field(default=None, description="Enable automatic DHCP.")


class VlanZone(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bridge: str = Field(description="Bridge to use for the VLAN zone.")


class VxlanZone(BaseModel):
    model_config = ConfigDict(extra="forbid")

    peers: list[str] = Field(description="List of peer nodes for the VXLAN zone.")
    port: int | None = Field(default=None, description="VXLAN tunnel UDP port.")


class QinQZone(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bridge: str = Field(description="Bridge to use for the QinQ zone.")
    tag: int = Field(description="Service VLAN tag for the QinQ zone.")
    vlan_protocol: Literal["802.1q", "802.1ad"] | None = Field(
        default="802.1q", description="VLAN protocol for the QinQ zone."
    )


class EvpnZone(BaseModel):
    model_config = ConfigDict(extra="forbid")

    controller: str = Field(description="EVPN controller address.")
    vrf_vxlan: int = Field(description="VRF VXLAN ID for the EVPN zone.")
    mac: str | None = Field(default=None, description="Anycast logical router MAC address.")
    exitnodes: list[str] | None = Field(default=None, description="List of exit nodes for the EVPN zone.")
    exitnodes_primary: str | None = Field(default=None, description="Primary exit node for the EVPN zone.")
    exitnodes_local_routing: bool | None = Field(default=None, description="Enable local routing for exit nodes.")
    advertise_subnets: bool | None = Field(default=None, description="Advertise subnets to exit nodes.")
    disable_arp_nd_suppression: bool | None = Field(
        default=None, description="Disable IPv4 ARP and IPv6 neighbour discovery suppression."
    )
    rt_import: str | None = Field(default=None, description="Route target import.")


# Zone type -> (block model, block attribute -> ZoneRecord attribute).
# Dict order is the order in which blocks are inspected when building a wire record.
VARIANTS: dict[str, tuple[type[BaseModel], dict[str, str]]] = {
    "simple": (SimpleZone, {"dhcp": "dhcp"}),
    "vlan": (VlanZone, {"bridge": "bridge"}),
    "vxlan": (VxlanZone, {"peers": "peers", "port": "vxlan_port"}),
    "qinq": (QinQZone, {"bridge": "bridge", "tag": "tag", "vlan_protocol": "vlan_protocol"}),
    "evpn": (
        EvpnZone,
        {
            "controller": "controller",
            "vrf_vxlan": "vrf_vxlan",
            "mac": "mac",
            "exitnodes": "exitnodes",
            "exitnodes_primary": "exitnodes_primary",
            "exitnodes_local_routing": "exitnodes_local_routing",
            "advertise_subnets": "advertise_subnets",
            "disable_arp_nd_suppression": "disable_arp_nd_suppression",
            "rt_import": "rt_import",
        },
    ),
}

# Optional attributes shared by every zone type.
BASE_FIELDS = ("mtu", "nodes", "ipam", "dns", "reversedns", "dnszone")

# Attributes the server fills in when they are left unset. Unset, they keep the server value
# instead of being cleared on update.
COMPUTED_FIELDS = frozenset({"ipam"})
COMPUTED_BLOCK_FIELDS: dict[str, frozenset[str]] = {
    "vxlan": frozenset({"port"}),
    "qinq": frozenset({"vlan_protocol"}),
    "evpn": frozenset(
        {
            "mac",
            "exitnodes",
            "exitnodes_primary",
            "exitnodes_local_routing",
            "advertise_subnets",
            "disable_arp_nd_suppression",
            "rt_import",
        }
    ),
}

# ZoneRecord attributes holding comma-joined lists.
LIST_FIELDS = frozenset({"nodes", "peers", "exitnodes"})


def join_list(values: list[str] | None, diags: Diagnostics) -> str | None:
    """Encode a list as the comma-joined string the API expects; empty or missing lists are absent."""
    if not values:
        return None
    for value in values:
        if LIST_SEPARATOR in value:
            diags.add_warning(
                "Invalid List Element",
                f"{value!r} contains {LIST_SEPARATOR!r} and will be split into several elements when read back",
            )
    return LIST_SEPARATOR.join(values)


def split_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    return value.split(LIST_SEPARATOR)


class ZoneResourceModel(BaseModel):
    """Declarative configuration of a Proxmox SDN zone.

    Exactly one of the ``simple``, ``vlan``, ``vxlan``, ``qinq`` and ``evpn`` blocks has to be set;
    it selects the zone type.
    """

    model_config = ConfigDict(extra="forbid")

    name: ZoneName = Field(description="Name of the SDN zone.")
    mtu: int | None = Field(default=None, description="MTU of the zone.")
    nodes: list[str] | None = Field(default=None, description="List of nodes that are part of the SDN zone.")
    ipam: str | None = Field(default="pve", description="IPAM name.")
    dns: str | None = Field(default=None, description="DNS API server.")
    reversedns: str | None = Field(default=None, description="Reverse DNS API server.")
    dnszone: str | None = Field(default=None, description="DNS zone name.")

    simple: SimpleZone | None = Field(default=None, description="Simple SDN zone configuration.")
    vlan: VlanZone | None = Field(default=None, description="VLAN SDN zone configuration.")
    vxlan: VxlanZone | None = Field(default=None, description="VXLAN SDN zone configuration.")
    qinq: QinQZone | None = Field(default=None, description="QinQ SDN zone configuration.")
    evpn: EvpnZone | None = Field(default=None, description="EVPN SDN zone configuration.")

    @model_validator(mode="after")
    def _exactly_one_variant(self) -> ZoneResourceModel:
        configured = [zone_type for zone_type in VARIANTS if getattr(self, zone_type) is not None]
        if len(configured) != 1:
            raise ValueError(
                f"exactly one of {', '.join(VARIANTS)} must be configured, got: {', '.join(configured) or 'none'}"
            )
        return self

    @property
    def zone_type(self) -> str | None:
        for zone_type in VARIANTS:
            if getattr(self, zone_type) is not None:
                return zone_type
        return None

    def clear_all_except_name(self) -> None:
        """Reset every attribute but the name, marking the zone as missing on the server."""
        for field in type(self).model_fields:
            if field != "name":
                setattr(self, field, None)

    def with_computed_from(self, current: ZoneResourceModel) -> ZoneResourceModel:
        """Copy of this configuration where computed attributes left unset take their value from ``current``."""
        update = {
            field: getattr(current, field)
            for field in COMPUTED_FIELDS
            if getattr(self, field) is None and getattr(current, field) is not None
        }

        zone_type = self.zone_type
        if zone_type is not None and getattr(current, zone_type) is not None:
            block, current_block = getattr(self, zone_type), getattr(current, zone_type)
            block_update = {
                attr: getattr(current_block, attr)
                for attr in COMPUTED_BLOCK_FIELDS.get(zone_type, ())
                if getattr(block, attr) is None and getattr(current_block, attr) is not None
            }
            if block_update:
                update[zone_type] = block.model_copy(update=block_update)

        return self.model_copy(update=update) if update else self

    def to_wire_record(self, diags: Diagnostics) -> ZoneRecord:
        fields = {
            "name": self.name,
            "mtu": self.mtu,
            "nodes": join_list(self.nodes, diags),
            "ipam": self.ipam,
            "dns": self.dns,
            "reversedns": self.reversedns,
            "dnszone": self.dnszone,
        }

        zone_type = self.zone_type
        if zone_type is not None:
            block = getattr(self, zone_type)
            for attr, wire_attr in VARIANTS[zone_type][1].items():
                value = getattr(block, attr)
                fields[wire_attr] = join_list(value, diags) if wire_attr in LIST_FIELDS else value

        return ZoneRecord(type=zone_type, **fields)

    def to_update_request(self, diags: Diagnostics) -> ZoneUpdateRequest:
        record = self.to_wire_record(diags)

        applicable = [attr for attr in BASE_FIELDS if attr not in COMPUTED_FIELDS]
        if record.type in VARIANTS:
            computed = COMPUTED_BLOCK_FIELDS.get(record.type, frozenset())
            applicable.extend(
                wire_attr for attr, wire_attr in VARIANTS[record.type][1].items() if attr not in computed
            )

        # Absent attributes have to be cleared explicitly, omitting them keeps the server value.
        to_delete = [ZoneRecord.wire_name(attr) for attr in applicable if getattr(record, attr) is None]

        return ZoneUpdateRequest(
            **record.model_dump(exclude={"type", "delete"}),
            delete=",".join(to_delete) or None,
        )

    @classmethod
    def from_wire_record(cls, record: ZoneRecord) -> ZoneResourceModel:
        if record.type not in VARIANTS:
            raise UnrecognizedVariantError(record.type)

        block_cls, mapping = VARIANTS[record.type]
        block_values = {}
        for attr, wire_attr in mapping.items():
            value = getattr(record, wire_attr)
            block_values[attr] = split_list(value) if wire_attr in LIST_FIELDS else value

        values = {
            "name": record.name,
            "mtu": record.mtu,
            "nodes": split_list(record.nodes),
            "ipam": record.ipam,
            "dns": record.dns,
            "reversedns": record.reversedns,
            "dnszone": record.dnszone,
            **{zone_type: None for zone_type in VARIANTS},
        }
        # The API is authoritative, records read back are not re-validated against the schema.
        values[record.type] = block_cls.model_construct(**block_values)
        return cls.model_construct(**values)
