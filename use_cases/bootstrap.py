"""Startup orchestration: configuration, observability and settings validation."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

import errors
from infrastructure import observability
from services import config_loader, settings_service
from services.settings_service import AuthSettings, GlobalSettings

log = logging.getLogger(__name__)

StartupStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]
    config: Optional[config_loader.LoadedConfig] = None
    global_settings: Optional[GlobalSettings] = None
    auth_settings: Optional[AuthSettings] = None
    error: Optional[errors.PluginError] = None


def run_startup(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    environ: Optional[Mapping[str, str]] = None,
    validate_auth: bool = True,
) -> StartupResult:
    """
    Load and validate settings once per process and set up logging.
    Any startup failure stops the run before a single network call is made.
    """
    executed_steps = []
    config = None
    global_settings = None
    try:
        config = config_loader.load_config(config_file, environ=environ, overrides=overrides)
        executed_steps.append("load_config")

        global_settings = settings_service.validate_global_settings(config.section("global"), config.config_dir)
        executed_steps.append("validate_global_settings")

        observability.setup_observability(global_settings)
        executed_steps.append("setup_observability")
        if config.source_file:
            log.debug(f"Using configuration file {config.source_file}")

        auth_settings = None
        if validate_auth:
            auth_settings = settings_service.validate_auth_settings(config.section("auth"))
            executed_steps.append("validate_auth_settings")
    except errors.PluginError as e:
        return StartupResult(
            status="STOP",
            planned_steps=tuple(executed_steps),
            config=config,
            global_settings=global_settings,
            error=e,
        )

    return StartupResult(
        status="CONTINUE",
        planned_steps=tuple(executed_steps),
        config=config,
        global_settings=global_settings,
        auth_settings=auth_settings,
    )
