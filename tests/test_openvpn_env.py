from unittest.mock import patch

import pytest

import errors
from services.settings_service import AuthSettings
from utils import openvpn_env


@pytest.fixture
def settings():
    return AuthSettings(org_name="example", geoip_db_path="/db/city.mmdb", geoip_locale="de")


@patch("utils.openvpn_env.geoip_service.lookup_location", return_value="Berlin, Germany")
def test_read_client_request(mock_lookup, settings):
    environ = {"username": "alice", "password": "secret+123456", "untrusted_ip": "203.0.113.7"}

    request = openvpn_env.read_client_request(environ, settings)

    assert request.username == "alice"
    assert request.password == "secret+123456"
    assert request.client_ip == "203.0.113.7"
    assert request.location == "Berlin, Germany"
    mock_lookup.assert_called_once_with("203.0.113.7", "/db/city.mmdb", "de")


@patch("utils.openvpn_env.geoip_service.lookup_location", return_value="(unknown)")
def test_missing_credentials_are_passed_through(_mock_lookup, settings, caplog):
    request = openvpn_env.read_client_request({}, settings)

    assert request.username == ""
    assert request.password == ""
    assert request.client_ip == ""
    assert "did not provide a username and password" in caplog.text


def test_get_control_file_path():
    assert openvpn_env.get_control_file_path({"auth_control_file": "/tmp/acf"}) == "/tmp/acf"
    assert openvpn_env.get_control_file_path({}) is None
    assert openvpn_env.get_control_file_path({"auth_control_file": ""}) is None


@pytest.mark.parametrize("accepted, expected", [(True, "1"), (False, "0")])
def test_write_control_file(tmp_path, accepted, expected):
    path = tmp_path / "acf"
    openvpn_env.write_control_file(str(path), accepted)
    assert path.read_text() == expected


def test_write_control_file_failure(tmp_path):
    with pytest.raises(errors.GeneralFailure) as excinfo:
        openvpn_env.write_control_file(str(tmp_path / "missing-dir" / "acf"), True)
    assert excinfo.value.code == errors.GENERAL_FAILURE_CODE
