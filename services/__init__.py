from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ServiceResult:
    """Outcome of a service call: either data or an error, plus an HTTP status hint."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: int = 200
    meta: dict = field(default_factory=dict)
    message: Optional[str] = None


def ok(data=None, status_code: int = 200, message: Optional[str] = None, **meta) -> ServiceResult:
    return ServiceResult(True, data=data, status_code=status_code, meta=meta, message=message)


def fail(error: str, status_code: int = 500) -> ServiceResult:
    return ServiceResult(False, error=error, status_code=status_code)


def parse_id(value) -> Optional[int]:
    """Strict integer parse for ids taken from paths or query strings."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None
