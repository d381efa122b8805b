from __future__ import annotations
"""Request payload helpers shared by the route modules.

All helpers abort with 400 so handlers can call them inline without
try/except noise.
"""
import math
from typing import Any, Iterable, Mapping, Optional
from flask import abort


def validate_choice(value: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Return value if it is one of allowed, else abort with 400."""
    if value not in allowed:
        abort(400, description=f"{field_name} invalid")
    return value


def require_fields(data: Mapping[str, Any], *names: str):
    missing = [n for n in names if data.get(n) in (None, '')]
    if missing:
        abort(400, description=f"{', '.join(missing)} required")


def coerce_number(value: Any, default: float = 0.0) -> float:
    """Lenient numeric coercion: anything unparseable becomes ``default``.

    Matches how item quantities/rates typed into the bill form are treated.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(num) or math.isinf(num):
        return default
    return num


def strict_number(value: Any, field_name: str, minimum: Optional[float] = None) -> float:
    """Numeric coercion for fields where bad input is an error."""
    if value is None or value == '' or isinstance(value, bool):
        abort(400, description=f'{field_name} must be a number')
    try:
        num = float(value)
    except (TypeError, ValueError):
        abort(400, description=f'{field_name} must be a number')
    if math.isnan(num) or math.isinf(num):
        abort(400, description=f'{field_name} must be a number')
    if minimum is not None and num < minimum:
        abort(400, description=f'{field_name} must be >= {minimum:g}')
    return num


def parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        abort(400, description=f'{field_name} must be an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    abort(400, description=f'{field_name} must be an integer')

__all__ = ['validate_choice', 'require_fields', 'coerce_number', 'strict_number', 'parse_int']
