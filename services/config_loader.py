"""
Layered configuration loading.

Settings are merged from (lowest to highest precedence) built-in defaults,
a TOML config file, OKTA_OPENVPN_AUTH_PLUGIN_* environment variables and
command-line flags. The result is a dictionary per section which
services.settings_service then validates.
"""

import copy
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import toml

import errors
from services import settings_service

log = logging.getLogger(__name__)

ENV_VAR_PREFIX = "OKTA_OPENVPN_AUTH_PLUGIN_"
CONFIG_DIR = "/opt/okta-openvpn-auth-plugin/etc"
DEFAULT_CONFIG_FILE = "config.toml"

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "global": {
        "log_level": settings_service.DEFAULT_LOG_LEVEL,
        "enable_json_logging": False,
    },
    "auth": {
        "api_key_file": "",
        "geoip_db_path": "",
        "geoip_locale": settings_service.DEFAULT_GEOIP_LOCALE,
        "interactive": False,
        "mfa_methods": [],
        "mfa_timeout": settings_service.DEFAULT_MFA_TIMEOUT,
        "request_timeout": settings_service.DEFAULT_REQUEST_TIMEOUT,
        "org_name": "",
    },
    "version": {
        "short": False,
    },
}

# (section, key) -> (environment variable suffix, value kind)
ENV_BINDINGS = {
    ("global", "enable_json_logging"): ("ENABLE_JSON_LOGGING", "bool"),
    ("global", "log_level"): ("LOG_LEVEL", "str"),
    ("auth", "api_key_file"): ("AUTH_API_KEY_FILE", "str"),
    ("auth", "geoip_db_path"): ("AUTH_GEOIP_DB_PATH", "str"),
    ("auth", "geoip_locale"): ("AUTH_GEOIP_LOCALE", "str"),
    ("auth", "interactive"): ("AUTH_INTERACTIVE", "bool"),
    ("auth", "mfa_methods"): ("AUTH_MFA_METHODS", "list"),
    ("auth", "mfa_timeout"): ("AUTH_MFA_TIMEOUT", "str"),
    ("auth", "request_timeout"): ("AUTH_REQUEST_TIMEOUT", "str"),
    ("auth", "org_name"): ("AUTH_ORG_NAME", "str"),
    ("version", "short"): ("VERSION_SHORT", "bool"),
}


@dataclass
class LoadedConfig:
    sections: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    source_file: str = ""
    config_dir: str = ""

    def section(self, name: str) -> Dict[str, Any]:
        return self.sections.get(name, {})


def load_config(
    config_file: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> LoadedConfig:
    """
    Load the configuration.

    The config file is determined as follows:
      - the --config-file flag, if given;
      - the OKTA_OPENVPN_AUTH_PLUGIN_CONFIG_FILE environment variable, if set;
      - /opt/okta-openvpn-auth-plugin/etc/config.toml, if it exists.

    Raises ConfigLoadFailure, ConfigParseFailure or SettingInvalid.
    """
    environ = os.environ if environ is None else environ
    config = LoadedConfig(sections=copy.deepcopy(DEFAULTS))

    if not config_file:
        config_file = environ.get(f"{ENV_VAR_PREFIX}CONFIG_FILE", "")
    if config_file:
        _load_file(config, config_file, required=True)
    else:
        _load_file(config, os.path.join(CONFIG_DIR, DEFAULT_CONFIG_FILE), required=False)

    _apply_environment(config, environ)
    for section, values in (overrides or {}).items():
        for key, value in values.items():
            if value is not None:
                config.sections.setdefault(section, {})[key] = value
    return config


def _load_file(config: LoadedConfig, config_file: str, required: bool) -> None:
    path = os.path.abspath(os.path.expandvars(config_file))
    if not os.path.isfile(path):
        if not required:
            log.debug(f"Default config file {path} not found; using defaults")
            return
        e = errors.ConfigLoadFailure(path, FileNotFoundError("file not found"))
        log.error(e.message, extra={"config_file": path})
        raise e

    try:
        data = toml.load(path)
    except toml.TomlDecodeError as ex:
        e = errors.ConfigParseFailure(path, ex)
        log.error(e.message, extra={"config_file": path})
        raise e from ex
    except OSError as ex:
        e = errors.ConfigLoadFailure(path, ex)
        log.error(e.message, extra={"config_file": path})
        raise e from ex

    for section, values in data.items():
        if not isinstance(values, dict):
            e = errors.ConfigParseFailure(path, ValueError(f"'{section}' must be a table"))
            log.error(e.message, extra={"config_file": path})
            raise e
        config.sections.setdefault(section, {}).update(values)

    config.source_file = path
    config.config_dir = os.path.dirname(path)
    log.debug(f"Loaded configuration from {path}")


def _apply_environment(config: LoadedConfig, environ: Mapping[str, str]) -> None:
    for (section, key), (suffix, kind) in ENV_BINDINGS.items():
        name = f"{ENV_VAR_PREFIX}{suffix}"
        if name not in environ:
            continue
        config.sections.setdefault(section, {})[key] = _convert(f"{section}.{key}", environ[name], kind)


def _convert(setting: str, raw: str, kind: str) -> Any:
    if kind == "bool":
        return settings_service.parse_bool_setting(setting, raw)
    if kind == "list":
        return [item.strip() for item in raw.split(",") if item.strip()]
    return raw
