import math
import re
from typing import Dict, List, Optional

DEV_RELEASABLE_HOURS = "dev_releasable_hours_per_month"
STANDARD_HOURS = "standard_hours_per_month"
QA_RATIO = "qa_ratio"
BA_RATIO = "ba_ratio"
MARGIN = "margin"
RISK = "risk"
EXCHANGE_RATIO = "exchange_ratio"
ANNUAL_INCREASE = "annual_increase"

REQUIRED_SETTINGS: List[str] = [
    DEV_RELEASABLE_HOURS,
    STANDARD_HOURS,
    QA_RATIO,
    BA_RATIO,
    MARGIN,
    RISK,
]

# Used whenever a setting is absent from the effective settings.
SETTING_DEFAULTS: Dict[str, float] = {
    DEV_RELEASABLE_HOURS: 100.0,
    STANDARD_HOURS: 160.0,
    QA_RATIO: 0.5,
    BA_RATIO: 0.25,
    MARGIN: 0.2,
    RISK: 0.1,
    ANNUAL_INCREASE: 0.0,
}

_LEADING_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_WHOLE_FLOAT = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\s*")
_WHOLE_INT = re.compile(r"\s*[+-]?\d+\s*")


def _parse_float(value: str) -> Optional[float]:
    match = _LEADING_FLOAT.match(value or "")
    if not match:
        return None
    parsed = float(match.group(1))
    return parsed if math.isfinite(parsed) else None


def _parse_int(value: str) -> Optional[float]:
    match = _LEADING_INT.match(value or "")
    if not match:
        return None
    return float(int(match.group(1), 10))


def parse_setting(value: Optional[str], value_type: str) -> float:
    """Convert a stored setting string into a number.

    Numbers are read from the leading numeric part of the string. Anything
    that cannot be read yields 0.0; this never raises.
    """
    if value_type == "boolean":
        return 1.0 if value == "true" else 0.0
    if value_type == "integer":
        parsed = _parse_int(value)
    else:
        parsed = _parse_float(value)
    return 0.0 if parsed is None else parsed


def is_well_formed(value: Optional[str], value_type: str) -> bool:
    """Whether the whole stored string is a value of its type.

    Stricter than ``parse_setting``: "12abc" parses as 12 but is not well formed.
    """
    if value_type == "string":
        return True
    if value_type == "boolean":
        return value in ("true", "false")
    if value_type == "integer":
        return _WHOLE_INT.fullmatch(value or "") is not None
    return _WHOLE_FLOAT.fullmatch(value or "") is not None and _parse_float(value) is not None


def get_setting(settings: Dict[str, float], key: str, default: Optional[float] = None) -> float:
    if key in settings:
        return settings[key]
    if default is not None:
        return default
    return SETTING_DEFAULTS.get(key, 0.0)


def get_exchange_ratio(settings: Dict[str, float]) -> Optional[float]:
    ratio = settings.get(EXCHANGE_RATIO)
    if ratio is None or ratio <= 0:
        return None
    return ratio
