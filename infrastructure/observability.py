"""
Centralized Observability Infrastructure.
Provides logging setup (plain text or JSON) and Sentry SDK initialization.
Log level and format come from GlobalSettings; Sentry is governed by the
SENTRY_DSN / SENTRY_ENV environment variables.
"""

import logging
import os
import re
import sys
from typing import Any, Dict, Optional

import sentry_sdk
from pythonjsonlogger import jsonlogger

from services.settings_service import GlobalSettings

log = logging.getLogger(__name__)

TEXT_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Keys whose values never leave the process
SENSITIVE_KEYS = {"password", "passcode", "statetoken", "sessiontoken", "api_key", "authorization"}

# Patterns to scrub in Sentry events
SENSITIVE_PATTERNS = [
    re.compile(r"SSWS\s+\S+"),  # Okta API key header
    re.compile(r"([a-zA-Z0-9_\-]{30,})"),  # Catch tokens/dsn looking strings
]

REDACTED = "[REDACTED]"


class _MaxLevelFilter(logging.Filter):
    """Passes records strictly below the given level."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def _scrub(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _scrub(v)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [_scrub(i) for i in obj]
    if isinstance(obj, str):
        for pattern in SENSITIVE_PATTERNS:
            obj = pattern.sub(REDACTED, obj)
        return obj
    return obj


def _scrub_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any]) -> Dict[str, Any]:
    """
    Sentry before_send hook. Recursively scrubs passwords, state tokens and
    API keys from stack frame locals and log extras.
    """
    for exc in (event.get("exception") or {}).get("values") or []:
        for frame in (exc.get("stacktrace") or {}).get("frames") or []:
            if "vars" in frame:
                frame["vars"] = _scrub(frame["vars"])
    if "extra" in event:
        event["extra"] = _scrub(event["extra"])
    if "logentry" in event:
        event["logentry"] = _scrub(event["logentry"])
    return event


def _build_formatter(enable_json_logging: bool) -> logging.Formatter:
    if enable_json_logging:
        return jsonlogger.JsonFormatter(
            JSON_FORMAT,
            rename_fields={"asctime": "time", "levelname": "level"},
            datefmt=DATE_FORMAT,
        )
    return logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_observability(settings: Optional[GlobalSettings] = None) -> None:
    """
    Initializes global system logging and Sentry (if DSN is present).
    Should be called once at application startup.
    """
    settings = settings or GlobalSettings()
    formatter = _build_formatter(settings.enable_json_logging)

    # DEBUG..WARNING go to stdout, ERROR and above to stderr
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_MaxLevelFilter(logging.ERROR))
    stdout_handler.setFormatter(formatter)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    logging.basicConfig(level=settings.log_level, handlers=[stdout_handler, stderr_handler], force=True)

    sentry_dsn = os.getenv("SENTRY_DSN")
    if sentry_dsn:
        sentry_env = os.getenv("SENTRY_ENV", "production")
        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=sentry_env,
            traces_sample_rate=0.0,
            send_default_pii=False,
            before_send=_scrub_sensitive_data,
        )
        log.debug(f"Sentry SDK initialized (env: {sentry_env})")
    else:
        log.debug("SENTRY_DSN not provided. Running without Sentry.")

    # We also quiet down noisy third-party loggers here
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
