"""Interactive (test) mode: prompt for credentials on the terminal instead of reading OpenVPN's environment."""

import getpass
import logging
from typing import Callable, Optional

from infrastructure.identity.okta_provider import OktaProvider
from infrastructure.network.public_ip_provider import PublicIPProvider
from services import geoip_service
from services.settings_service import AuthSettings
from use_cases import auth_flow
from use_cases.domain_models import AuthOutcome, AuthRequest

log = logging.getLogger(__name__)


def prompt_request(
    settings: AuthSettings,
    ip_provider: Optional[PublicIPProvider] = None,
    read_input: Callable[[str], str] = input,
    read_secret: Callable[[str], str] = getpass.getpass,
) -> AuthRequest:
    username = read_input("Username: ").strip()
    password = read_secret("Password: ")

    ip_provider = ip_provider or PublicIPProvider(timeout=settings.request_timeout)
    client_ip = ip_provider.get_public_ip()
    location = geoip_service.lookup_location(client_ip, settings.geoip_db_path, settings.geoip_locale)
    return AuthRequest(username=username, password=password, client_ip=client_ip, location=location)


def run_interactive(
    settings: AuthSettings,
    provider: Optional[OktaProvider] = None,
    ip_provider: Optional[PublicIPProvider] = None,
    read_input: Callable[[str], str] = input,
    read_secret: Callable[[str], str] = getpass.getpass,
    write: Callable[[str], None] = print,
) -> AuthOutcome:
    """Runs one attempt from prompted credentials and prints the outcome."""
    request = prompt_request(settings, ip_provider, read_input, read_secret)
    write(f"Authenticating '{request.username}' from {request.client_ip or '(unknown IP)'} ({request.location})")

    outcome = auth_flow.authenticate(request, settings, provider)
    if outcome.accepted:
        write("Authentication succeeded")
    else:
        write(f"Authentication failed [{outcome.kind}]: {outcome.reason}")
    return outcome
