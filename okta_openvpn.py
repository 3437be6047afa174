"""
Okta OpenVPN Auth Plugin.

Run by OpenVPN as an auth-user-pass-verify script (via-env): credentials come
from the environment and the decision is written to auth_control_file.

    okta-openvpn [-f FILE] [-j] [-l LEVEL] auth [options]
    okta-openvpn version [-s]
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional

import errors
import version
from services import settings_service
from use_cases import auth_flow, interactive_flow
from use_cases.bootstrap import run_startup
from utils import openvpn_env

log = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        self.print_usage(sys.stderr)
        raise errors.UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="okta-openvpn", description=f"{version.TITLE}: authenticate OpenVPN users against Okta")
    parser.add_argument("-f", "--config-file", help="path to the TOML configuration file")
    parser.add_argument(
        "-j", "--enable-json-logging", action="store_true", default=None, help="emit log records as JSON"
    )
    parser.add_argument("-l", "--log-level", help="debug, info, warn, error, fatal, panic or none")

    subparsers = parser.add_subparsers(dest="command")

    auth = subparsers.add_parser("auth", help="authenticate a user against Okta")
    auth.add_argument("--api-key-file", help="file containing the base64-encoded Okta API key")
    auth.add_argument("--geoip-db-path", help="path to a MaxMind GeoIP2/GeoLite2 City database")
    auth.add_argument("--geoip-locale", help="locale used for GeoIP location names")
    auth.add_argument(
        "-i", "--interactive", action="store_true", default=None, help="prompt for credentials (testing)"
    )
    auth.add_argument(
        "--mfa-methods", action="append", help="permitted MFA method (none, totp, push); may be repeated"
    )
    auth.add_argument("--mfa-timeout", help="how long to wait for a PUSH reply, e.g. 30s")
    auth.add_argument("--request-timeout", help="timeout for each Okta API request, e.g. 10s")
    auth.add_argument("--org-name", help="Okta organization name (<org>.okta.com)")

    ver = subparsers.add_parser("version", help="print version information")
    ver.add_argument("-s", "--short", action="store_true", default=None, help="print the version number only")
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    overrides = {
        "global": {
            "log_level": args.log_level,
            "enable_json_logging": args.enable_json_logging,
        }
    }
    if args.command == "auth":
        overrides["auth"] = {
            "api_key_file": args.api_key_file,
            "geoip_db_path": args.geoip_db_path,
            "geoip_locale": args.geoip_locale,
            "interactive": args.interactive,
            "mfa_methods": args.mfa_methods,
            "mfa_timeout": args.mfa_timeout,
            "request_timeout": args.request_timeout,
            "org_name": args.org_name,
        }
    elif args.command == "version":
        overrides["version"] = {"short": args.short}
    return overrides


def run_version(args: argparse.Namespace) -> int:
    startup = run_startup(args.config_file, _overrides(args), validate_auth=False)
    if startup.status == "STOP":
        return startup.error.code
    try:
        short = settings_service.parse_bool_setting("version.short", startup.config.section("version").get("short"))
    except errors.SettingInvalid as e:
        return e.code
    print(version.version_string(short))
    return errors.NONE_CODE


def run_auth(args: argparse.Namespace, environ=None) -> int:
    environ = os.environ if environ is None else environ
    control_file = openvpn_env.get_control_file_path(environ)

    startup = run_startup(args.config_file, _overrides(args), environ=environ)
    if startup.status == "STOP":
        if control_file:
            _deny_quietly(control_file)
        return startup.error.code

    settings = startup.auth_settings
    if settings.interactive:
        outcome = interactive_flow.run_interactive(settings)
        return outcome.exit_code

    if not control_file:
        e = errors.UsageError(f"'{openvpn_env.ENV_CONTROL_FILE}' is not set; is this being run by OpenVPN?")
        log.error(e.message)
        return e.code

    request = openvpn_env.read_client_request(environ, settings)
    outcome = auth_flow.authenticate(request, settings)
    try:
        openvpn_env.write_control_file(control_file, outcome.accepted)
    except errors.GeneralFailure as e:
        return e.code
    return outcome.exit_code


def _deny_quietly(control_file: str) -> None:
    try:
        openvpn_env.write_control_file(control_file, False)
    except errors.GeneralFailure:
        # already logged; the startup error decides the exit code
        return


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except errors.UsageError:
        return errors.USAGE_CODE

    if args.command == "auth":
        return run_auth(args)
    if args.command == "version":
        return run_version(args)

    parser.print_help(sys.stderr)
    return errors.USAGE_CODE


if __name__ == "__main__":
    sys.exit(main())
