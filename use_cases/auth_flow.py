"""Authentication flow orchestration (application layer).

One call to ``authenticate`` is one OpenVPN connection attempt: a primary
username/password check against Okta followed by at most one MFA stage.
Every failure raised along the way is relabelled by ``outcome_policy`` so the
caller only ever sees an ``AuthOutcome``.
"""

import logging
import time
from typing import Any, Dict, Optional

import errors
from infrastructure.identity import okta_models
from infrastructure.identity.okta_provider import OktaProvider
from services import parsing_service
from services.settings_service import AuthSettings, MFAMethod
from use_cases import outcome_policy
from use_cases.domain_models import AuthOutcome, AuthRequest

log = logging.getLogger(__name__)

NO_SUPPORTED_METHODS_SUMMARY = "MFA is required but no supported methods are available."
PUSH_REJECTED_SUMMARY = "user declined MFA request"
PUSH_TIMEOUT_SUMMARY = "timed out waiting for reply to PUSH request"

PUSH_POLL_INTERVAL = 1
PUSH_PROGRESS_EVERY = 5


def authenticate(
    request: AuthRequest,
    settings: AuthSettings,
    provider: Optional[OktaProvider] = None,
) -> AuthOutcome:
    """Run one authentication attempt and return its terminal outcome."""
    if provider is None:
        provider = OktaProvider(settings.org_name, settings.api_key, timeout=settings.request_timeout)

    context = {"username": request.username, "ip": request.client_ip, "location": request.location}

    code = ""
    if settings.permits(MFAMethod.TOTP):
        request.password, code = parsing_service.split_mfa_code(request.password)

    log.info(f"Starting authentication for user '{request.username}'", extra=context)
    try:
        primary = _primary_auth(request, provider, context)
        if primary is not None:
            _secondary_auth(request, settings, provider, primary, code, context)
    except errors.PluginError as e:
        outcome = outcome_policy.classify(e)
        log.warning(
            f"Authentication denied for user '{request.username}': {outcome.reason}",
            extra={**context, "error_code": outcome.provider_code, "error_summary": outcome.provider_summary},
        )
        return outcome

    log.info(f"User '{request.username}' authenticated successfully", extra=context)
    return outcome_policy.authenticated()


def _primary_auth(
    request: AuthRequest,
    provider: OktaProvider,
    context: Dict[str, Any],
) -> Optional[okta_models.PrimaryAuthResponse]:
    """
    Returns the primary response when MFA is required, None when the user is
    already authenticated. Raises on every other result.
    """
    body = {
        "username": request.username,
        "password": request.password,
        "options": {"warnBeforePasswordExpired": True},
    }
    status_code, raw = provider.post(provider.authn_url, body)
    if status_code != 200:
        raise _denied_from_error_body(request.username, raw)

    response = okta_models.PrimaryAuthResponse.from_json(raw)
    if response.status == okta_models.STATUS_SUCCESS:
        return None
    if response.status == okta_models.STATUS_PASSWORD_WARN:
        log.warning(f"Password for user '{request.username}' is about to expire", extra=context)
        return None
    if response.status == okta_models.STATUS_PASSWORD_EXPIRED:
        raise errors.AuthenticationFailed(
            request.username,
            okta_models.PASSWORD_EXPIRED_EXCEPTION_CODE,
            okta_models.PASSWORD_EXPIRED_SUMMARY,
        )
    if response.status == okta_models.STATUS_MFA_REQUIRED:
        return response
    raise errors.AuthenticationFailed(
        request.username,
        okta_models.AUTH_EXCEPTION_CODE,
        f"status returned was '{response.status}'",
    )


def _secondary_auth(
    request: AuthRequest,
    settings: AuthSettings,
    provider: OktaProvider,
    primary: okta_models.PrimaryAuthResponse,
    code: str,
    context: Dict[str, Any],
) -> None:
    push_permitted = settings.permits(MFAMethod.PUSH)
    totp_permitted = settings.permits(MFAMethod.TOTP)

    if push_permitted and parsing_service.is_push_code(code):
        _verify_push(request, settings, provider, primary, context)
    elif totp_permitted and parsing_service.is_totp_code(code):
        _verify_totp(request, provider, primary, code, context)
    elif push_permitted and not totp_permitted and not code:
        # push-only configurations need no password suffix
        _verify_push(request, settings, provider, primary, context)
    else:
        raise errors.AuthenticationFailed(
            request.username, okta_models.AUTH_EXCEPTION_CODE, NO_SUPPORTED_METHODS_SUMMARY
        )


def _verify_push(
    request: AuthRequest,
    settings: AuthSettings,
    provider: OktaProvider,
    primary: okta_models.PrimaryAuthResponse,
    context: Dict[str, Any],
) -> None:
    url = primary.verify_link(okta_models.FACTOR_PUSH)
    body = {"stateToken": primary.state_token}
    context = {**context, "mfa_method": "push"}
    log.info(f"Sending PUSH verification request for user '{request.username}'", extra=context)

    for i in range(1, settings.mfa_timeout + 1):
        status_code, raw = provider.post(url, body)
        if status_code != 200:
            raise _denied_from_error_body(request.username, raw)

        response = okta_models.SecondaryAuthResponse.from_json(raw)
        if response.status == okta_models.STATUS_SUCCESS:
            return
        if response.status != okta_models.STATUS_MFA_CHALLENGE:
            raise errors.AuthenticationFailed(
                request.username,
                okta_models.AUTH_EXCEPTION_CODE,
                f"MFA authentication failed: status returned was '{response.status}'",
            )
        if response.factor_result == okta_models.FACTOR_RESULT_REJECTED:
            raise errors.AuthenticationFailed(
                request.username, okta_models.AUTH_EXCEPTION_CODE, PUSH_REJECTED_SUMMARY
            )

        if i % PUSH_PROGRESS_EVERY == 0:
            log.info(f"Still waiting on MFA reply after {i} seconds", extra=context)
        time.sleep(PUSH_POLL_INTERVAL)

    raise errors.AuthenticationFailed(request.username, okta_models.AUTH_EXCEPTION_CODE, PUSH_TIMEOUT_SUMMARY)


def _verify_totp(
    request: AuthRequest,
    provider: OktaProvider,
    primary: okta_models.PrimaryAuthResponse,
    code: str,
    context: Dict[str, Any],
) -> None:
    url = primary.verify_link(okta_models.FACTOR_TOTP)
    log.info(
        f"Sending TOTP verification request for user '{request.username}'",
        extra={**context, "mfa_method": "totp"},
    )

    status_code, raw = provider.post(url, {"stateToken": primary.state_token, "passCode": code})
    if status_code != 200:
        raise _denied_from_error_body(request.username, raw)

    response = okta_models.SecondaryAuthResponse.from_json(raw)
    if response.status != okta_models.STATUS_SUCCESS:
        raise errors.AuthenticationFailed(
            request.username,
            okta_models.AUTH_EXCEPTION_CODE,
            f"MFA authentication failed: status returned was '{response.status}'",
        )


def _denied_from_error_body(username: str, raw: bytes) -> errors.AuthenticationFailed:
    # ProtocolError propagates when the body itself cannot be decoded
    error = okta_models.ErrorResponse.from_json(raw)
    return errors.AuthenticationFailed(username, error.error_code, error.error_summary)
