"""Helpers for the environment OpenVPN hands to auth-user-pass-verify scripts."""

import logging
import os
from typing import Mapping, Optional

import errors
from services import geoip_service
from services.settings_service import AuthSettings
from use_cases.domain_models import AuthRequest

log = logging.getLogger(__name__)

ENV_USERNAME = "username"
ENV_PASSWORD = "password"
ENV_CLIENT_IP = "untrusted_ip"
ENV_CONTROL_FILE = "auth_control_file"


def read_client_request(environ: Mapping[str, str], settings: AuthSettings) -> AuthRequest:
    """Build the AuthRequest for the connecting client, including its GeoIP location."""
    username = environ.get(ENV_USERNAME, "")
    password = environ.get(ENV_PASSWORD, "")
    client_ip = environ.get(ENV_CLIENT_IP, "")

    if not username or not password:
        log.warning(
            "OpenVPN did not provide a username and password; the request is sent to Okta as-is",
            extra={"username": username, "ip": client_ip},
        )

    location = geoip_service.lookup_location(client_ip, settings.geoip_db_path, settings.geoip_locale)
    return AuthRequest(username=username, password=password, client_ip=client_ip, location=location)


def get_control_file_path(environ: Mapping[str, str]) -> Optional[str]:
    return environ.get(ENV_CONTROL_FILE) or None


def write_control_file(path: str, accepted: bool) -> None:
    """Writes "1" (accept) or "0" (deny) for OpenVPN to pick up."""
    try:
        with open(path, "w") as f:
            f.write("1" if accepted else "0")
    except OSError as ex:
        e = errors.GeneralFailure(f"error writing auth control file '{path}': {ex}", ex)
        log.error(e.message, extra={"auth_control_file": path})
        raise e from ex
    log.debug(f"Wrote {'1' if accepted else '0'} to {os.path.abspath(path)}")
