from dataclasses import dataclass
from typing import Literal, Optional

import errors

OutcomeKind = Literal["AUTHENTICATED", "AUTHENTICATION_FAILED", "TRANSPORT_ERROR", "PROTOCOL_ERROR"]

UNKNOWN_LOCATION = "(unknown)"


@dataclass
class AuthRequest:
    """Credentials for a single OpenVPN connection attempt.

    Only ``password`` is rewritten after creation, when a trailing MFA code is
    stripped from it.
    """
    username: str
    password: str
    client_ip: str
    location: str = UNKNOWN_LOCATION


@dataclass(frozen=True)
class AuthOutcome:
    """Terminal result of an attempt; the only value the caller observes."""
    kind: OutcomeKind
    reason: str = ""
    provider_code: Optional[str] = None
    provider_summary: Optional[str] = None
    cause: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.kind == "AUTHENTICATED"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self.kind]


_EXIT_CODES = {
    "AUTHENTICATED": errors.NONE_CODE,
    "AUTHENTICATION_FAILED": errors.OKTA_AUTH_FAILURE_CODE,
    "TRANSPORT_ERROR": errors.OKTA_REQUEST_FAILURE_CODE,
    "PROTOCOL_ERROR": errors.OKTA_RESPONSE_FAILURE_CODE,
}
