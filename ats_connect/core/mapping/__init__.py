"""
Field mapping: path extraction, rule-based transformations and the
normalizers that turn raw provider records into canonical records.
"""

from .normalizers import (
    normalize_application_status,
    normalize_availability,
    normalize_employment_type,
    normalize_experience_level,
    normalize_job_status,
    parse_salary_range,
)
from .paths import extract_path
from .record_mapper import RecordMapper, get_record_mapper
from .transformations import RuleKind, TransformationEngine, get_transformation_engine

__all__ = [
    "extract_path",
    "normalize_application_status",
    "normalize_availability",
    "normalize_employment_type",
    "normalize_experience_level",
    "normalize_job_status",
    "parse_salary_range",
    "RecordMapper",
    "get_record_mapper",
    "RuleKind",
    "TransformationEngine",
    "get_transformation_engine",
]
