import asyncio
import json

import pytest

from fake_proxmox import API_TOKEN, FakeProxmox, with_endpoint
from main import main

VLAN = {"name": "vlan1", "vlan": {"bridge": "vmbr0"}}


@pytest.fixture
def write_config(tmp_path, monkeypatch, restore_logging):
    monkeypatch.delenv("CONFIG_FILE", raising=False)

    def write(endpoint, zones, database=None):
        settings = {
            "log": {"level": "warning", "colors": False},
            "proxmox": {"endpoint": endpoint, "api_token": API_TOKEN, "timeout": 5},
        }
        if database:
            settings["database"] = {"path": database}
        path = tmp_path / "config.yaml"
        # JSON is valid YAML
        path.write_text(json.dumps({"settings": settings, "zones": zones}))
        return str(path)

    return write


def run_cli(fake, write_config, command, zones, **kwargs):
    async def run(endpoint):
        return await main(["-c", write_config(endpoint, zones, **kwargs), command])

    return asyncio.run(with_endpoint(fake, run))


def test_plan_and_apply(write_config, tmp_path, capsys):
    fake = FakeProxmox()
    database = str(tmp_path / "state.sqlite")

    assert run_cli(fake, write_config, "plan", [VLAN], database=database) == 0
    assert fake.zones == {}
    assert capsys.readouterr().out.splitlines() == ["create vlan1"]

    assert run_cli(fake, write_config, "apply", [VLAN], database=database) == 0
    assert fake.zones["vlan1"]["bridge"] == "vmbr0"
    capsys.readouterr()

    assert run_cli(fake, write_config, "plan", [VLAN], database=database) == 0
    assert capsys.readouterr().out.splitlines() == ["noop vlan1"]

    assert run_cli(fake, write_config, "destroy", [VLAN], database=database) == 0
    assert fake.zones == {}


def test_list(write_config, capsys):
    fake = FakeProxmox([{"zone": "vxlan1", "type": "vxlan"}, {"zone": "evpn1", "type": "evpn"}])

    assert run_cli(fake, write_config, "list", []) == 0
    assert capsys.readouterr().out.splitlines() == ["evpn1\tevpn", "vxlan1\tvxlan"]


def test_apply_error_exit_status(write_config, capsys):
    fake = FakeProxmox([{"zone": "vlan1", "type": "vlan", "bridge": "vmbr9"}])

    assert run_cli(fake, write_config, "apply", [VLAN]) == 1
    assert "ERROR: Error Creating SDN Zone" in capsys.readouterr().err


def test_duplicate_zone_names(write_config):
    fake = FakeProxmox()

    assert run_cli(fake, write_config, "plan", [VLAN, VLAN]) == 1
    assert fake.requests == []


def test_invalid_zone_configuration(write_config):
    fake = FakeProxmox()

    assert run_cli(fake, write_config, "plan", [{"name": "vlan1"}]) == 1
    assert fake.requests == []


def test_unreachable_endpoint(write_config):
    path = write_config("http://127.0.0.1:1", [VLAN])

    assert asyncio.run(main(["-c", path, "list"])) == 1
