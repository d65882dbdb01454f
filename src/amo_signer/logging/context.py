"""Log context variables propagated across async boundaries."""

from contextvars import ContextVar
from typing import Dict, Optional

_guid: ContextVar[Optional[str]] = ContextVar("guid", default=None)
_version: ContextVar[Optional[str]] = ContextVar("version", default=None)
_stage: ContextVar[Optional[str]] = ContextVar("stage", default=None)
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_VARS = {
    "guid": _guid,
    "version": _version,
    "stage": _stage,
    "request_id": _request_id,
}


def set_log_context(
    guid: Optional[str] = None,
    version: Optional[str] = None,
    stage: Optional[str] = None,
    request_id: Optional[str] = None,
) -> None:
    """
    Set context fields for subsequent log records.

    Only non-None arguments are applied.
    """
    values = {
        "guid": guid,
        "version": version,
        "stage": stage,
        "request_id": request_id,
    }
    for name, value in values.items():
        if value is not None:
            _VARS[name].set(value)


def get_log_context() -> Dict[str, Optional[str]]:
    """Return current context fields."""
    return {name: var.get() for name, var in _VARS.items()}


def clear_log_context() -> None:
    """Reset all context fields."""
    for var in _VARS.values():
        var.set(None)
