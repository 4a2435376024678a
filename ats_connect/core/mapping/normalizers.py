"""
Fixed normalizers that fold provider vocabularies into the canonical one.

Every normalizer is total: unrecognized input falls back to the documented
default instead of raising.
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional

from dateutil import parser as date_parser

from ats_connect.utils.constants import (
    APPLICATION_STATUS_ALIASES,
    AVAILABILITY_ALIASES,
    EMPLOYMENT_TYPE_ALIASES,
    EXPERIENCE_LEVEL_KEYWORDS,
    JOB_STATUS_ALIASES,
    TRUTHY_VALUES,
    ApplicationStatus,
    Availability,
    EmploymentType,
    ExperienceLevel,
    JobStatus,
)

_SALARY_RANGE = re.compile(r"\$?\s*([\d,]+(?:\.\d+)?)\s*(?:-|–|to)\s*\$?\s*([\d,]+(?:\.\d+)?)", re.IGNORECASE)
_FIRST_AMOUNT = re.compile(r"\$?\s*([\d,]*\d(?:\.\d+)?)")

# Epoch values above this are taken as milliseconds
_EPOCH_MS_THRESHOLD = 100_000_000_000


def fold(value: Any) -> str:
    """Lowercase, trim and treat '-', '_' and runs of spaces as one space."""
    text = str(value).strip().lower().replace("-", " ").replace("_", " ")
    return " ".join(text.split())


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


# =============================================================================
# Categorical Fields
# =============================================================================


def normalize_employment_type(value: Any) -> EmploymentType:
    if is_empty(value):
        return EmploymentType.FULL_TIME
    return EMPLOYMENT_TYPE_ALIASES.get(fold(value), EmploymentType.FULL_TIME)


def normalize_experience_level(value: Any) -> ExperienceLevel:
    """Substring match; a missing level is treated as entry-level."""
    if is_empty(value):
        return ExperienceLevel.ENTRY
    text = str(value).strip().lower()
    for keywords, level in EXPERIENCE_LEVEL_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return level
    return ExperienceLevel.MID


def normalize_job_status(value: Any) -> JobStatus:
    if is_empty(value):
        return JobStatus.ACTIVE
    return JOB_STATUS_ALIASES.get(fold(value), JobStatus.ACTIVE)


def normalize_application_status(value: Any) -> ApplicationStatus:
    if is_empty(value):
        return ApplicationStatus.NEW
    return APPLICATION_STATUS_ALIASES.get(fold(value), ApplicationStatus.NEW)


def normalize_availability(value: Any) -> Availability:
    if is_empty(value):
        return Availability.IMMEDIATE
    return AVAILABILITY_ALIASES.get(fold(value), Availability.IMMEDIATE)


# =============================================================================
# Scalars
# =============================================================================


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in TRUTHY_VALUES


def as_text(value: Any) -> Optional[str]:
    """
    Render a payload value as display text.

    Objects contribute their ``name``/``label``/``value`` entry and lists are
    joined, which covers the ``{"id": 1, "name": "Engineering"}`` shapes most
    providers use for departments and locations.
    """
    if is_empty(value):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        for key in ("name", "label", "value", "text", "title"):
            if not is_empty(value.get(key)):
                return as_text(value[key])
        parts = [as_text(v) for v in value.values() if isinstance(v, (str, int, float))]
        return ", ".join(p for p in parts if p) or None
    if isinstance(value, (list, tuple)):
        parts = [as_text(v) for v in value]
        return ", ".join(p for p in parts if p) or None
    return str(value)


def _to_float(text: str) -> Optional[float]:
    try:
        return float(text.replace(",", ""))
    except ValueError:
        return None


def parse_amount(value: Any) -> Optional[float]:
    """A number, or the first number found in text."""
    if is_empty(value) or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _FIRST_AMOUNT.search(value)
        return _to_float(match.group(1)) if match else None
    return None


def parse_salary_range(value: Any) -> tuple[Optional[float], Optional[float]]:
    """
    Salary bounds from an object, a bare number or free text.

    ``{"min": 50000, "max": 70000}``, ``60000`` and ``"$50,000 - $70,000"``
    are all understood; a single figure in text only sets the minimum.
    """
    if is_empty(value) or isinstance(value, bool):
        return None, None
    if isinstance(value, dict):
        low = value.get("min", value.get("minimum"))
        high = value.get("max", value.get("maximum"))
        return parse_amount(low), parse_amount(high)
    if isinstance(value, (int, float)):
        return float(value), None

    text = str(value)
    match = _SALARY_RANGE.search(text)
    if match:
        return _to_float(match.group(1)), _to_float(match.group(2))
    return parse_amount(text), None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse dates, ISO strings and epoch seconds/milliseconds to naive UTC."""
    if is_empty(value) or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if value > _EPOCH_MS_THRESHOLD else value
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        try:
            parsed = date_parser.parse(str(value))
        except (ValueError, OverflowError):
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


# =============================================================================
# Lists
# =============================================================================


def collect_list(data: dict[str, Any], keys: Iterable[str]) -> list[Any]:
    """Merge every present source key: lists are concatenated, scalars appended."""
    collected: list[Any] = []
    for key in keys:
        value = data.get(key)
        if is_empty(value):
            continue
        if isinstance(value, (list, tuple)):
            collected.extend(value)
        else:
            collected.append(value)
    return collected
