"""Private IP mode toggling."""

from atlas_api import BASE, AtlasAPIError
from atlas_containers import PrivateIPMode, PrivateIPModeService
from atlas_test_api import GROUP_ID, error_body

URL = f"{BASE}/groups/{GROUP_ID}/privateIpMode"


def test_enable_sends_true(client, atlas):
    result = client.private_ip_mode.enable_private_ip_mode(GROUP_ID)
    request = atlas.mocker.last_request
    assert request.method == "PATCH"
    assert request.url == URL
    assert request.json() == {"enabled": True}
    assert result.ok
    assert result.value == PrivateIPMode(enabled=True)
    assert atlas.private_ip_mode[GROUP_ID] is True


def test_disable_sends_false(client, atlas):
    client.private_ip_mode.enable_private_ip_mode(GROUP_ID)
    result = client.private_ip_mode.disable_private_ip_mode(GROUP_ID)
    assert atlas.mocker.last_request.json() == {"enabled": False}
    assert result.ok
    assert result.value == PrivateIPMode(enabled=False)
    assert atlas.private_ip_mode[GROUP_ID] is False


def test_get_reflects_last_change(client, atlas):
    mode = client.private_ip_mode
    assert mode.get_private_ip_mode(GROUP_ID).unwrap().enabled is False
    mode.enable_private_ip_mode(GROUP_ID)
    assert mode.get_private_ip_mode(GROUP_ID).unwrap().enabled is True
    assert atlas.mocker.last_request.method == "GET"


def test_empty_success_body(api, requests_mock):
    requests_mock.patch(URL, json={})
    result = PrivateIPModeService(api).enable_private_ip_mode(GROUP_ID)
    assert result.ok
    assert result.error is None
    assert result.value == PrivateIPMode()


def test_forbidden(api, requests_mock):
    requests_mock.patch(URL, status_code=403, json=error_body(
        403, "USER_UNAUTHORIZED", "The current user is not authorized to perform this action.",
        "Forbidden"))
    result = PrivateIPModeService(api).disable_private_ip_mode(GROUP_ID)
    assert isinstance(result.error, AtlasAPIError)
    assert result.error.status_code == 403
    assert result.response.status_code == 403
