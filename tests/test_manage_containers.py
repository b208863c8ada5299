"""Command line entry point."""

import json

import pytest

import manage_containers
from atlas_api import AtlasAPI, AtlasOrgAPI
from atlas_test_api import GROUP_ID

CREDENTIAL_VARS = (
    "atlas_organization_Client_ID",
    "atlas_organization_Client_Secret",
    "atlas_public_key",
    "atlas_private_key",
    "atlas_group_id",
    "atlas_base_url",
)


@pytest.fixture
def env(monkeypatch):
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("atlas_public_key", "public-key")
    monkeypatch.setenv("atlas_private_key", "private-key")
    monkeypatch.setenv("atlas_group_id", GROUP_ID)
    return monkeypatch


def test_list_prints_json(env, atlas, capsys):
    assert manage_containers.main(["list", "--provider", "AWS"]) == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out) == []
    assert f"AWS containers in project {GROUP_ID}" in captured.err


def test_list_output_uses_wire_keys(env, atlas, capsys):
    manage_containers.main(["create", "--cidr", "10.8.0.0/21", "--region", "US_EAST_1"])
    capsys.readouterr()
    assert manage_containers.main(["list"]) == 0
    listed = json.loads(capsys.readouterr().out)
    assert len(listed) == 1
    assert listed[0]["atlasCidrBlock"] == "10.8.0.0/21"
    assert listed[0]["regionName"] == "US_EAST_1"
    assert "atlas_cidr_block" not in listed[0]


def test_create_then_get(env, atlas, capsys):
    assert manage_containers.main([
        "create", "--cidr", "10.8.0.0/21", "--region", "US_EAST_1"]) == 0
    created = json.loads(capsys.readouterr().out)
    assert created["atlasCidrBlock"] == "10.8.0.0/21"
    assert created["providerName"] == "AWS"
    assert atlas.sent_bodies[-1] == {
        "providerName": "AWS", "atlasCidrBlock": "10.8.0.0/21", "regionName": "US_EAST_1"}

    assert manage_containers.main(["get", created["id"]]) == 0
    assert json.loads(capsys.readouterr().out) == created


def test_update_sends_only_given_fields(env, atlas, capsys):
    manage_containers.main(["create", "--cidr", "10.8.0.0/21", "--region", "US_EAST_1"])
    container_id = json.loads(capsys.readouterr().out)["id"]
    assert manage_containers.main(["update", container_id, "--cidr", "10.16.0.0/21"]) == 0
    assert atlas.sent_bodies[-1] == {"atlasCidrBlock": "10.16.0.0/21"}


def test_delete_missing_container_fails(env, atlas, capsys):
    assert manage_containers.main(["delete", "nope"]) == 1
    assert "CLOUD_PROVIDER_CONTAINER_NOT_FOUND" in capsys.readouterr().err


def test_private_ip_enable_and_status(env, atlas, capsys):
    assert manage_containers.main(["private-ip", "enable"]) == 0
    assert atlas.mocker.last_request.json() == {"enabled": True}
    capsys.readouterr()
    assert manage_containers.main(["private-ip", "status"]) == 0
    assert json.loads(capsys.readouterr().out) == {"enabled": True}


def test_project_flag_overrides_env(env, atlas, capsys):
    assert manage_containers.main(["--project", "other-group", "private-ip", "disable"]) == 0
    assert "/groups/other-group/privateIpMode" in atlas.mocker.last_request.url
    assert atlas.private_ip_mode == {"other-group": False}


def test_service_account_preferred(env):
    env.setenv("atlas_organization_Client_ID", "client-id")
    env.setenv("atlas_organization_Client_Secret", "client-secret")
    assert isinstance(manage_containers._get_api(), AtlasOrgAPI)


def test_digest_fallback_and_base_url(env):
    env.setenv("atlas_base_url", "https://atlas.example.com/api/atlas/v1.0")
    api = manage_containers._get_api()
    assert isinstance(api, AtlasAPI)
    assert api.groups_url("g") == "https://atlas.example.com/api/atlas/v1.0/groups/g"


def test_missing_credentials_exit(env):
    env.delenv("atlas_public_key")
    with pytest.raises(SystemExit):
        manage_containers.main(["list"])


def test_missing_project_exit(env):
    env.delenv("atlas_group_id")
    with pytest.raises(SystemExit):
        manage_containers.main(["list"])


def test_private_ip_status_shows_disabled(env, atlas, capsys):
    assert manage_containers.main(["private-ip", "status"]) == 0
    assert json.loads(capsys.readouterr().out) == {"enabled": False}
