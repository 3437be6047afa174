import pytest
import requests
from unittest.mock import patch, MagicMock

import errors
from infrastructure.identity.okta_provider import OktaProvider


@pytest.fixture
def provider():
    return OktaProvider("example", api_key="secret-key", timeout=5)


def test_urls(provider):
    assert provider.base_url == "https://example.okta.com/api/v1"
    assert provider.authn_url == "https://example.okta.com/api/v1/authn"


@patch('requests.post')
def test_post_sends_json_with_api_key(mock_post, provider):
    mock_resp = MagicMock()
    mock_resp.status_code = 200
    mock_resp.content = b'{"status": "SUCCESS"}'
    mock_post.return_value = mock_resp

    status_code, body = provider.post(provider.authn_url, {"username": "alice"})

    assert status_code == 200
    assert body == b'{"status": "SUCCESS"}'
    _, kwargs = mock_post.call_args
    assert kwargs["json"] == {"username": "alice"}
    assert kwargs["timeout"] == 5
    assert kwargs["headers"]["Authorization"] == "SSWS secret-key"
    assert kwargs["headers"]["Content-Type"] == "application/json"
    assert kwargs["headers"]["Accept"] == "application/json"


@patch('requests.post')
def test_post_without_api_key_omits_authorization(mock_post):
    mock_resp = MagicMock()
    mock_resp.status_code = 401
    mock_resp.content = b'{}'
    mock_post.return_value = mock_resp

    status_code, _ = OktaProvider("example").post("https://example.okta.com/api/v1/authn", {})

    assert status_code == 401
    _, kwargs = mock_post.call_args
    assert "Authorization" not in kwargs["headers"]


@patch('requests.post')
def test_post_network_error_raises_transport_error(mock_post, provider):
    mock_post.side_effect = requests.ConnectionError("Connection Refused")

    with pytest.raises(errors.TransportError) as excinfo:
        provider.post(provider.authn_url, {})

    assert excinfo.value.code == errors.OKTA_REQUEST_FAILURE_CODE
    assert "Connection Refused" in excinfo.value.message


@patch('requests.post')
def test_post_timeout_raises_transport_error(mock_post, provider):
    mock_post.side_effect = requests.Timeout("read timed out")

    with pytest.raises(errors.TransportError):
        provider.post(provider.authn_url, {})
    assert mock_post.call_count == 1
