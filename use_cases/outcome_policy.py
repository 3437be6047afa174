"""Maps attempt-time failures onto the AuthOutcome taxonomy."""

import errors
from use_cases.domain_models import AuthOutcome


def authenticated() -> AuthOutcome:
    return AuthOutcome(kind="AUTHENTICATED", reason="authenticated")


def classify(error: errors.PluginError) -> AuthOutcome:
    """
    Relabels a failure raised by the authentication flow.
    Provider code/summary are carried through verbatim for audit logging;
    transport and protocol failures stay distinct from a provider denial.
    """
    if isinstance(error, errors.AuthenticationFailed):
        return AuthOutcome(
            kind="AUTHENTICATION_FAILED",
            reason=error.message,
            provider_code=error.error_code,
            provider_summary=error.error_summary,
        )
    if isinstance(error, errors.TransportError):
        return AuthOutcome(kind="TRANSPORT_ERROR", reason=error.message, cause=_describe(error.cause))
    if isinstance(error, errors.ProtocolError):
        return AuthOutcome(kind="PROTOCOL_ERROR", reason=error.message, cause=_describe(error.cause) or error.reason)
    raise TypeError(f"{type(error).__name__} is not an authentication-time error")


def _describe(cause):
    if cause is None:
        return None
    return f"{type(cause).__name__}: {cause}"
