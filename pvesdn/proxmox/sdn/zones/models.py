from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ZoneRecord(BaseModel):
    """SDN zone as exchanged with ``cluster/sdn/zones``.

    Documented in: https://pve.proxmox.com/pve-docs/api-viewer/#/cluster/sdn/zones
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(alias="zone")

    # Required on create, must be omitted on update.
    type: str | None = None
    # Only meaningful on update.
    delete: str | None = None

    advertise_subnets: bool | None = Field(default=None, alias="advertise-subnets")
    bridge: str | None = None
    bridge_disable_mac_learning: bool | None = Field(default=None, alias="bridge-disable-mac-learning")
    controller: str | None = None
    dhcp: str | None = None
    disable_arp_nd_suppression: bool | None = Field(default=None, alias="disable-arp-nd-suppression")
    dns: str | None = None
    dnszone: str | None = None
    dp_id: int | None = Field(default=None, alias="dp-id")
    exitnodes: str | None = None
    exitnodes_local_routing: bool | None = Field(default=None, alias="exitnodes-local-routing")
    exitnodes_primary: str | None = Field(default=None, alias="exitnodes-primary")
    ipam: str | None = None
    mac: str | None = None
    mtu: int | None = None
    nodes: str | None = None
    peers: str | None = None
    reversedns: str | None = None
    rt_import: str | None = Field(default=None, alias="rt-import")
    tag: int | None = None
    vlan_protocol: str | None = Field(default=None, alias="vlan-protocol")
    vrf_vxlan: int | None = Field(default=None, alias="vrf-vxlan")
    vxlan_port: int | None = Field(default=None, alias="vxlan-port")

    def to_form(self) -> dict[str, str]:
        """Form-encoded request body: absent fields omitted, booleans as ``1``/``0``."""
        form: dict[str, str] = {}
        for key, value in self.model_dump(by_alias=True, exclude_none=True).items():
            if isinstance(value, bool):
                form[key] = "1" if value else "0"
            else:
                form[key] = str(value)
        return form

    @classmethod
    def wire_name(cls, attr: str) -> str:
        field = cls.model_fields[attr]
        return field.alias or attr


class ZoneUpdateRequest(ZoneRecord):
    """Update body: ``type`` is never sent, cleared fields are listed in ``delete``."""

    type: None = None


class ZoneListResponse(BaseModel):
    data: list[ZoneRecord] | None = None


class ZoneGetResponse(BaseModel):
    data: ZoneRecord | None = None
