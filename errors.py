"""
Application error types.

Every failure raised by the plugin derives from PluginError and carries a
stable integer code which doubles as the process exit code.
"""

from typing import Any, Optional

NONE_CODE = 0
USAGE_CODE = 1
GENERAL_FAILURE_CODE = 2

CONFIG_LOAD_FAILURE_CODE = 21
CONFIG_PARSE_FAILURE_CODE = 22
CONFIG_VALIDATE_FAILURE_CODE = 23

GEOIP_DATABASE_FAILURE_CODE = 41
GEOIP_LOOKUP_FAILURE_CODE = 42

OKTA_REQUEST_FAILURE_CODE = 61
OKTA_RESPONSE_FAILURE_CODE = 62
OKTA_AUTH_FAILURE_CODE = 63


class PluginError(Exception):
    """Base exception for all plugin errors."""

    code = GENERAL_FAILURE_CODE

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class UsageError(PluginError):
    code = USAGE_CODE


class GeneralFailure(PluginError):
    code = GENERAL_FAILURE_CODE


class ConfigLoadFailure(PluginError):
    """Raised when the configuration file cannot be read."""

    code = CONFIG_LOAD_FAILURE_CODE

    def __init__(self, config_file: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"error while loading configuration file '{config_file}': {cause}", cause)
        self.config_file = config_file


class ConfigParseFailure(PluginError):
    """Raised when the configuration file is not valid TOML or has the wrong shape."""

    code = CONFIG_PARSE_FAILURE_CODE

    def __init__(self, config_file: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"error while parsing configuration file '{config_file}': {cause}", cause)
        self.config_file = config_file


class SettingInvalid(PluginError):
    """Raised when a configuration setting fails validation."""

    code = CONFIG_VALIDATE_FAILURE_CODE

    def __init__(self, setting: str, value: Any, reason: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"error while validating configuration setting '{setting}': {reason}", cause)
        self.setting = setting
        self.value = value
        self.reason = reason


class RequiredSettingMissing(SettingInvalid):
    def __init__(self, setting: str) -> None:
        super().__init__(setting, "", "setting is required and cannot be empty")


class GeoIPDatabaseFailure(PluginError):
    code = GEOIP_DATABASE_FAILURE_CODE

    def __init__(self, database_file: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"error while querying the GeoIP database '{database_file}': {cause}", cause)
        self.database_file = database_file


class GeoIPLookupFailure(PluginError):
    code = GEOIP_LOOKUP_FAILURE_CODE

    def __init__(self, client_ip: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"error while retrieving data for client IP '{client_ip}': {cause}", cause)
        self.client_ip = client_ip


class TransportError(PluginError):
    """Raised when an Okta API request could not be completed at the network level."""

    code = OKTA_REQUEST_FAILURE_CODE

    def __init__(self, url: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"error while making Okta API request: {cause}", cause)
        self.url = url


class ProtocolError(PluginError):
    """Raised when an Okta API response does not have the expected shape."""

    code = OKTA_RESPONSE_FAILURE_CODE

    def __init__(self, reason: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"failed to decode Okta API response: {reason}", cause)
        self.reason = reason


class AuthenticationFailed(PluginError):
    """Raised when Okta (or local MFA policy) denies the attempt."""

    code = OKTA_AUTH_FAILURE_CODE

    def __init__(self, username: str, error_code: str, error_summary: str) -> None:
        super().__init__(f"authentication failed for user '{username}': {error_summary} ({error_code})")
        self.username = username
        self.error_code = error_code
        self.error_summary = error_summary
