"""Okta authentication API payloads."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import errors

AUTH_EXCEPTION_CODE = "E000004"
PASSWORD_EXPIRED_EXCEPTION_CODE = "E000064"
PASSWORD_EXPIRED_SUMMARY = "Password is expired and must be changed."

STATUS_SUCCESS = "SUCCESS"
STATUS_PASSWORD_WARN = "PASSWORD_WARN"
STATUS_PASSWORD_EXPIRED = "PASSWORD_EXPIRED"
STATUS_MFA_REQUIRED = "MFA_REQUIRED"
STATUS_MFA_CHALLENGE = "MFA_CHALLENGE"

FACTOR_RESULT_REJECTED = "REJECTED"

FACTOR_PUSH = "push"
FACTOR_TOTP = "token:software:totp"


def _decode(raw: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as ex:
        raise errors.ProtocolError(f"invalid JSON body: {ex}", ex) from ex
    if not isinstance(data, dict):
        raise errors.ProtocolError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _field(data: Dict[str, Any], key: str, kind: type) -> Any:
    """Returns the nested field, an empty one when absent; raises ProtocolError on a wrong type."""
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        expected = "object" if kind is dict else "array"
        raise errors.ProtocolError(f"'{key}' must be a JSON {expected}, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ErrorResponse:
    error_code: str = ""
    error_summary: str = ""
    error_link: str = ""
    error_id: str = ""
    error_causes: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, raw: bytes) -> "ErrorResponse":
        data = _decode(raw)
        causes = [
            _str(cause, "errorSummary")
            for cause in _field(data, "errorCauses", list)
            if isinstance(cause, dict)
        ]
        return cls(
            error_code=_str(data, "errorCode"),
            error_summary=_str(data, "errorSummary"),
            error_link=_str(data, "errorLink"),
            error_id=_str(data, "errorId"),
            error_causes=causes,
        )


@dataclass(frozen=True)
class Factor:
    factor_type: str
    provider: str = ""
    links: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Factor":
        links = {}
        for name, link in _field(data, "_links", dict).items():
            if isinstance(link, dict) and isinstance(link.get("href"), str):
                links[name] = link["href"]
        return cls(factor_type=_str(data, "factorType"), provider=_str(data, "provider"), links=links)


@dataclass(frozen=True)
class PrimaryAuthResponse:
    status: str
    state_token: str = field(default="", repr=False)
    expires_at: str = ""
    factors: List[Factor] = field(default_factory=list)

    @classmethod
    def from_json(cls, raw: bytes) -> "PrimaryAuthResponse":
        data = _decode(raw)
        embedded = _field(data, "_embedded", dict)
        factors = [
            Factor.from_dict(factor)
            for factor in _field(embedded, "factors", list)
            if isinstance(factor, dict)
        ]
        return cls(
            status=_str(data, "status"),
            state_token=_str(data, "stateToken"),
            expires_at=_str(data, "expiresAt"),
            factors=factors,
        )

    def verify_link(self, factor_type: str) -> str:
        """Returns the verify URL of the first factor of the given type."""
        for factor in self.factors:
            if factor.factor_type == factor_type:
                link = factor.links.get("verify")
                if not link:
                    raise errors.ProtocolError(f"'{factor_type}': MFA factor has no verification link")
                return link
        raise errors.ProtocolError(f"'{factor_type}': not a valid MFA factor type")


@dataclass(frozen=True)
class SecondaryAuthResponse:
    status: str
    factor_result: str = ""
    expires_at: str = ""
    session_token: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_json(cls, raw: bytes) -> "SecondaryAuthResponse":
        data = _decode(raw)
        return cls(
            status=_str(data, "status"),
            factor_result=_str(data, "factorResult"),
            expires_at=_str(data, "expiresAt"),
            session_token=data.get("sessionToken"),
        )
