"""Application layer contracts for orchestrating high-level flows."""

from .auth_flow import authenticate
from .bootstrap import StartupResult, StartupStatus, run_startup
from .domain_models import UNKNOWN_LOCATION, AuthOutcome, AuthRequest, OutcomeKind
from .interactive_flow import run_interactive
from .outcome_policy import authenticated, classify

__all__ = [
    "AuthOutcome",
    "AuthRequest",
    "OutcomeKind",
    "StartupResult",
    "StartupStatus",
    "UNKNOWN_LOCATION",
    "authenticate",
    "authenticated",
    "classify",
    "run_interactive",
    "run_startup",
]
