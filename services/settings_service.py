"""
Validation of the settings the authentication flow depends on.

Raw settings come from services.config_loader as plain dictionaries (one per
config section). Validation turns them into frozen dataclasses that are
loaded once per process and shared read-only afterwards.
"""

import base64
import binascii
import enum
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

import geoip2.database
from maxminddb.errors import InvalidDatabaseError

import errors

log = logging.getLogger(__name__)

DEFAULT_GEOIP_LOCALE = "en"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_MFA_TIMEOUT = "30s"
DEFAULT_REQUEST_TIMEOUT = "10s"

MIN_MFA_TIMEOUT = 15


class MFAMethod(enum.IntFlag):
    NONE = 0
    TOTP = 1
    PUSH = 2


MFA_METHOD_NAMES = {
    "none": MFAMethod.NONE,
    "totp": MFAMethod.TOTP,
    "push": MFAMethod.PUSH,
}

# debug, info, warn, error, fatal, panic or none
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "none": logging.CRITICAL + 10,
}


@dataclass(frozen=True)
class AuthSettings:
    org_name: str
    api_key: str = field(default="", repr=False)
    mfa_methods: MFAMethod = MFAMethod.NONE
    mfa_timeout: int = 30
    geoip_db_path: str = ""
    geoip_locale: str = DEFAULT_GEOIP_LOCALE
    request_timeout: float = 10.0
    interactive: bool = False

    def permits(self, method: MFAMethod) -> bool:
        return bool(self.mfa_methods & method)


@dataclass(frozen=True)
class GlobalSettings:
    log_level: int = logging.INFO
    enable_json_logging: bool = False
    config_dir: str = ""


# Go-style durations: "30s", "1m30s", "1.5m", "500ms", "1h"
_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')
_BARE_SECONDS = re.compile(r'[+-]?(\d+(?:\.\d*)?|\.\d+)')
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Any) -> float:
    """Parse a duration into seconds. Bare numbers are taken as seconds."""
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not text:
        raise ValueError("invalid duration ''")
    if _BARE_SECONDS.fullmatch(text):
        return float(text)

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return sign * total


_TRUE_VALUES = {"1", "t", "true", "y", "yes", "on"}
_FALSE_VALUES = {"0", "f", "false", "n", "no", "off", ""}


def parse_bool_setting(setting: str, value: Any) -> bool:
    """Accepts real booleans and the usual true/false spellings, from files and the environment alike."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise _invalid(setting, value, f"'{value}' is not a valid boolean value")


def parse_mfa_method(method: str) -> MFAMethod:
    normalized = str(method).strip().lower()
    if normalized not in MFA_METHOD_NAMES:
        raise ValueError(f"no such MFA method '{method}'")
    return MFA_METHOD_NAMES[normalized]


def validate_auth_settings(raw: Dict[str, Any]) -> AuthSettings:
    """
    Validate the [auth] section. Raises RequiredSettingMissing or SettingInvalid
    before any network activity takes place.
    """
    org_name = str(raw.get("org_name") or "").strip()
    _require_setting(org_name, "auth.org_name")

    api_key = _read_api_key(raw.get("api_key_file") or "")
    geoip_db_path = _check_geoip_database(raw.get("geoip_db_path") or "")
    mfa_methods = _parse_mfa_methods(raw.get("mfa_methods") or [])
    mfa_timeout = _parse_mfa_timeout(raw.get("mfa_timeout", DEFAULT_MFA_TIMEOUT))
    request_timeout = _parse_positive_duration(
        "auth.request_timeout", raw.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)
    )

    return AuthSettings(
        org_name=org_name,
        api_key=api_key,
        mfa_methods=mfa_methods,
        mfa_timeout=mfa_timeout,
        geoip_db_path=geoip_db_path,
        geoip_locale=str(raw.get("geoip_locale") or DEFAULT_GEOIP_LOCALE),
        request_timeout=request_timeout,
        interactive=parse_bool_setting("auth.interactive", raw.get("interactive", False)),
    )


def validate_global_settings(raw: Dict[str, Any], config_dir: str = "") -> GlobalSettings:
    raw_level = str(raw.get("log_level") or DEFAULT_LOG_LEVEL)
    level = LOG_LEVELS.get(raw_level.strip().lower())
    if level is None:
        raise _invalid("global.log_level", raw_level, f"unknown log level '{raw_level}'")

    return GlobalSettings(
        log_level=level,
        enable_json_logging=parse_bool_setting("global.enable_json_logging", raw.get("enable_json_logging", False)),
        config_dir=config_dir,
    )


def _require_setting(value: str, setting: str) -> None:
    if not value:
        e = errors.RequiredSettingMissing(setting)
        log.error(e.message, extra={"setting": setting})
        raise e


def _invalid(setting: str, value: Any, reason: str, cause: Optional[BaseException] = None) -> errors.SettingInvalid:
    e = errors.SettingInvalid(setting, value, reason, cause)
    log.error(e.message, extra={"setting": setting, "value": str(value)})
    return e


def _read_api_key(api_key_file: str) -> str:
    if not api_key_file:
        return ""

    setting = "auth.api_key_file"
    path = os.path.abspath(os.path.expandvars(api_key_file))
    try:
        with open(path, "rb") as f:
            contents = f.read()
    except OSError as e:
        raise _invalid(setting, path, f"error reading the API key file: {e}", e) from e

    try:
        decoded = base64.b64decode(b"".join(contents.split()), validate=True)
        return decoded.decode("utf-8").strip()
    except (binascii.Error, UnicodeDecodeError) as e:
        raise _invalid(setting, path, f"error decoding the API key: {e}", e) from e


def _check_geoip_database(geoip_db_path: str) -> str:
    if not geoip_db_path:
        return ""

    setting = "auth.geoip_db_path"
    path = os.path.abspath(os.path.expandvars(geoip_db_path))
    if not os.path.exists(path):
        raise _invalid(setting, geoip_db_path, f"'{path}' does not exist")

    # Opening the reader validates the metadata section of the database
    try:
        reader = geoip2.database.Reader(path)
    except (OSError, ValueError, InvalidDatabaseError) as e:
        raise _invalid(setting, geoip_db_path, f"error opening the GeoIP database: {e}", e) from e
    reader.close()
    return path


def _parse_mfa_methods(raw_methods: Any) -> MFAMethod:
    if isinstance(raw_methods, str):
        raw_methods = [m for m in raw_methods.split(",") if m.strip()]

    methods = MFAMethod.NONE
    for method in _as_list(raw_methods):
        try:
            methods |= parse_mfa_method(method)
        except ValueError as e:
            raise _invalid("auth.mfa_methods", method, str(e), e) from e
    return methods


def _parse_mfa_timeout(raw_timeout: Any) -> int:
    setting = "auth.mfa_timeout"
    try:
        seconds = parse_duration(raw_timeout)
    except ValueError as e:
        raise _invalid(setting, raw_timeout, str(e), e) from e

    if seconds < MIN_MFA_TIMEOUT:
        log.warning(
            f"MFA timeout of {seconds:g} second(s) is less than the minimum threshold; "
            f"defaulting to {MIN_MFA_TIMEOUT}s",
            extra={"setting": setting, "value": str(raw_timeout)},
        )
        return MIN_MFA_TIMEOUT
    return int(seconds)


def _parse_positive_duration(setting: str, raw_value: Any) -> float:
    try:
        seconds = parse_duration(raw_value)
    except ValueError as e:
        raise _invalid(setting, raw_value, str(e), e) from e
    if seconds <= 0:
        raise _invalid(setting, raw_value, "duration must be greater than zero")
    return seconds


def _as_list(value: Any) -> Iterable[Any]:
    if isinstance(value, (list, tuple)):
        return value
    return [value]
