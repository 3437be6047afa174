import pytest
import requests

import errors
from use_cases import outcome_policy


def test_authenticated():
    outcome = outcome_policy.authenticated()
    assert outcome.kind == "AUTHENTICATED"
    assert outcome.accepted is True
    assert outcome.exit_code == errors.NONE_CODE


def test_authentication_failed_keeps_provider_details():
    outcome = outcome_policy.classify(errors.AuthenticationFailed("alice", "E000004", "Authentication failed"))

    assert outcome.kind == "AUTHENTICATION_FAILED"
    assert outcome.provider_code == "E000004"
    assert outcome.provider_summary == "Authentication failed"
    assert outcome.exit_code == errors.OKTA_AUTH_FAILURE_CODE


def test_transport_error_is_not_a_denial():
    cause = requests.ConnectionError("refused")
    outcome = outcome_policy.classify(errors.TransportError("https://x", cause))

    assert outcome.kind == "TRANSPORT_ERROR"
    assert outcome.provider_code is None
    assert outcome.cause == "ConnectionError: refused"
    assert outcome.exit_code == errors.OKTA_REQUEST_FAILURE_CODE


def test_protocol_error_without_cause_uses_reason():
    outcome = outcome_policy.classify(errors.ProtocolError("missing link"))

    assert outcome.kind == "PROTOCOL_ERROR"
    assert outcome.cause == "missing link"
    assert outcome.exit_code == errors.OKTA_RESPONSE_FAILURE_CODE


def test_startup_errors_are_not_classified():
    with pytest.raises(TypeError):
        outcome_policy.classify(errors.RequiredSettingMissing("auth.org_name"))
