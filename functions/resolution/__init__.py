# QR scan and preview resolution pipeline
from .params import resolve_param, resolve_params
from .pipeline import bootstrap_preview, resolve_scan
from .redirect_policy import OutcomeKind, RedirectOutcome

__all__ = [
    "resolve_param",
    "resolve_params",
    "resolve_scan",
    "bootstrap_preview",
    "OutcomeKind",
    "RedirectOutcome",
]
