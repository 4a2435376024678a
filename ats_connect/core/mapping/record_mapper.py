"""
Record mapper: one raw provider record in, one canonical record out.

Each canonical field is resolved in this order:

1. a FieldMapping row for (connection, entity type, field), run through the
   transformation engine;
2. the connection's ``field_mapping`` path override (``title_field`` etc.),
   either flat or scoped under the entity type (``{"job": {...}}``);
3. the provider adapter's native path;
4. the generic default path.

The field's fixed normalizer is applied last in every case, so categorical
fields always land in the canonical vocabulary. Top-level raw keys that no
field consulted are carried over verbatim in ``custom_fields``.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from ats_connect.core.exceptions import RecordValidationError
from ats_connect.core.mapping.normalizers import (
    as_bool,
    as_text,
    collect_list,
    is_empty,
    normalize_application_status,
    normalize_availability,
    normalize_employment_type,
    normalize_experience_level,
    normalize_job_status,
    parse_amount,
    parse_datetime,
    parse_salary_range,
)
from ats_connect.core.mapping.paths import extract_path, root_key
from ats_connect.core.mapping.transformations import TransformationEngine, get_transformation_engine
from ats_connect.core.providers import get_adapter
from ats_connect.data.models.base import utcnow
from ats_connect.data.models.connection import AtsConnection
from ats_connect.data.models.field_mapping import FieldMapping
from ats_connect.utils.constants import LIST_FIELD_SOURCES, EntityType
from ats_connect.utils.logger import LoggerMixin


@dataclass(frozen=True)
class SourceField:
    """Where a canonical field is read from when no FieldMapping covers it."""

    name: str
    override_key: str
    default_path: str


JOB_FIELDS: dict[str, SourceField] = {
    f.name: f
    for f in (
        SourceField("external_job_id", "id_field", "id"),
        SourceField("title", "title_field", "title"),
        SourceField("description", "description_field", "description"),
        SourceField("department", "department_field", "department"),
        SourceField("location", "location_field", "location"),
        SourceField("employment_type", "employment_type_field", "employment_type"),
        SourceField("experience_level", "experience_level_field", "experience_level"),
        SourceField("salary", "salary_field", "salary"),
        SourceField("hiring_manager", "hiring_manager_field", "hiring_manager"),
        SourceField("recruiter", "recruiter_field", "recruiter"),
        SourceField("status", "status_field", "status"),
        SourceField("posted_at", "posted_date_field", "posted_date"),
        SourceField("expires_at", "expires_date_field", "expires_date"),
        SourceField("applications_count", "applications_count_field", "applications_count"),
    )
}

CANDIDATE_FIELDS: dict[str, SourceField] = {
    f.name: f
    for f in (
        SourceField("external_candidate_id", "candidate_id_field", "id"),
        SourceField("first_name", "first_name_field", "first_name"),
        SourceField("last_name", "last_name_field", "last_name"),
        SourceField("email", "email_field", "email"),
        SourceField("phone", "phone_field", "phone"),
        SourceField("address", "address_field", "address"),
        SourceField("linkedin_url", "linkedin_field", "linkedin_url"),
        SourceField("portfolio_url", "portfolio_field", "portfolio_url"),
        SourceField("current_title", "current_title_field", "current_title"),
        SourceField("current_company", "current_company_field", "current_company"),
        SourceField("desired_salary", "desired_salary_field", "desired_salary"),
        SourceField("availability", "availability_field", "availability"),
        SourceField("open_to_remote", "remote_field", "open_to_remote"),
    )
}

APPLICATION_FIELDS: dict[str, SourceField] = {
    f.name: f
    for f in (
        SourceField("external_application_id", "application_id_field", "id"),
        SourceField("external_job_id", "job_id_field", "job_id"),
        SourceField("external_candidate_id", "candidate_id_field", "candidate_id"),
        SourceField("status", "status_field", "status"),
        SourceField("cover_letter", "cover_letter_field", "cover_letter"),
        SourceField("offered_salary", "offered_salary_field", "offered_salary"),
        SourceField("applied_at", "applied_date_field", "applied_at"),
        SourceField("status_updated_at", "status_updated_field", "status_updated_at"),
        SourceField("rejection_reason", "rejection_reason_field", "rejection_reason"),
    )
}


def as_external_id(value: Any) -> Optional[str]:
    """External ids are stored as strings; integral floats lose their '.0'."""
    if is_empty(value) or isinstance(value, (dict, list, bool)):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def as_email(value: Any) -> Optional[str]:
    text = as_text(value)
    return text.lower() if text else None


def as_count(value: Any) -> int:
    amount = parse_amount(value)
    return int(amount) if amount is not None and amount >= 0 else 0


def as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def as_dict(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


class _RecordContext:
    """Resolution state for one raw record."""

    def __init__(
        self,
        engine: TransformationEngine,
        connection: AtsConnection,
        raw: dict[str, Any],
        entity_type: EntityType,
        field_mappings: Optional[dict[str, FieldMapping]],
    ) -> None:
        self.engine = engine
        self.raw = raw
        self.field_mappings = field_mappings or {}
        self.provider_paths = get_adapter(connection.provider).default_field_paths(entity_type)
        self.overrides = self._path_overrides(connection.field_mapping, entity_type)
        self.consumed: set[str] = set()

    @staticmethod
    def _path_overrides(field_mapping: dict[str, Any], entity_type: EntityType) -> dict[str, str]:
        overrides = {k: v for k, v in field_mapping.items() if isinstance(v, str) and v}
        scoped = field_mapping.get(entity_type.value)
        if isinstance(scoped, dict):
            overrides.update({k: v for k, v in scoped.items() if isinstance(v, str) and v})
        return overrides

    def _consume(self, path: str) -> None:
        key = root_key(path)
        if key:
            self.consumed.add(key)

    def source_value(self, source: SourceField) -> Any:
        """Raw value of a source field via override, provider path, then default path."""
        override = self.overrides.get(source.override_key)
        if override:
            paths = [override]
        else:
            paths = [p for p in (self.provider_paths.get(source.name), source.default_path) if p]

        for path in paths:
            self._consume(path)
            value = extract_path(self.raw, path)
            if value is not None:
                return value
        return None

    def list_value(self, field: str) -> list[Any]:
        keys = LIST_FIELD_SOURCES.get(field, (field,))
        self.consumed.update(keys)
        return collect_list(self.raw, keys)

    def resolve(
        self,
        field: str,
        fallback: Callable[[], Any],
        coerce: Callable[[Any], Any],
    ) -> Any:
        """Value of a canonical field: the FieldMapping pipeline if one exists, else ``fallback``."""
        mapping = self.field_mappings.get(field)
        if mapping is None:
            return coerce(fallback())

        self._consume(mapping.ats_field)
        value = self.engine.transform(extract_path(self.raw, mapping.ats_field), mapping)
        if not self.engine.validate(value, mapping):
            raise RecordValidationError(f"Required field '{field}' is empty")
        return coerce(value)

    def field(self, fields: dict[str, SourceField], name: str, coerce: Callable[[Any], Any]) -> Any:
        return self.resolve(name, lambda: self.source_value(fields[name]), coerce)

    def custom_fields(self, known_fields: set[str]) -> dict[str, Any]:
        """Unconsumed raw keys plus FieldMappings that target no canonical field."""
        mapped: dict[str, Any] = {}
        for local_field, mapping in self.field_mappings.items():
            if local_field in known_fields:
                continue
            self._consume(mapping.ats_field)
            value = self.engine.transform(extract_path(self.raw, mapping.ats_field), mapping)
            if not self.engine.validate(value, mapping):
                raise RecordValidationError(f"Required field '{local_field}' is empty")
            mapped[local_field] = value

        custom = {k: v for k, v in self.raw.items() if k not in self.consumed}
        custom.update(mapped)
        return custom


class RecordMapper(LoggerMixin):
    """Maps raw provider records onto the canonical job, candidate and application shapes."""

    def __init__(self, engine: Optional[TransformationEngine] = None) -> None:
        self._engine = engine or get_transformation_engine()

    def _context(
        self,
        connection: AtsConnection,
        raw: dict[str, Any],
        entity_type: EntityType,
        field_mappings: Optional[dict[str, FieldMapping]],
    ) -> _RecordContext:
        if not isinstance(raw, dict):
            raise RecordValidationError(f"Expected an object record, got {type(raw).__name__}")
        return _RecordContext(self._engine, connection, raw, entity_type, field_mappings)

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    def map_job(
        self,
        connection: AtsConnection,
        raw: dict[str, Any],
        field_mappings: Optional[dict[str, FieldMapping]] = None,
    ) -> dict[str, Any]:
        ctx = self._context(connection, raw, EntityType.JOB, field_mappings)
        salary_min, salary_max = parse_salary_range(ctx.source_value(JOB_FIELDS["salary"]))

        record = {
            "external_job_id": ctx.field(JOB_FIELDS, "external_job_id", as_external_id),
            "title": ctx.field(JOB_FIELDS, "title", as_text),
            "description": ctx.field(JOB_FIELDS, "description", as_text),
            "department": ctx.field(JOB_FIELDS, "department", as_text),
            "location": ctx.field(JOB_FIELDS, "location", as_text),
            "employment_type": ctx.field(JOB_FIELDS, "employment_type", normalize_employment_type),
            "experience_level": ctx.field(JOB_FIELDS, "experience_level", normalize_experience_level),
            "salary_min": ctx.resolve("salary_min", lambda: salary_min, parse_amount),
            "salary_max": ctx.resolve("salary_max", lambda: salary_max, parse_amount),
            "salary_currency": ctx.resolve("salary_currency", lambda: "USD", lambda v: as_text(v) or "USD"),
            "requirements": ctx.resolve("requirements", lambda: ctx.list_value("requirements"), as_list),
            "benefits": ctx.resolve("benefits", lambda: ctx.list_value("benefits"), as_list),
            "hiring_manager": ctx.field(JOB_FIELDS, "hiring_manager", as_text),
            "recruiter": ctx.field(JOB_FIELDS, "recruiter", as_text),
            "status": ctx.field(JOB_FIELDS, "status", normalize_job_status),
            "posted_at": ctx.field(JOB_FIELDS, "posted_at", parse_datetime),
            "expires_at": ctx.field(JOB_FIELDS, "expires_at", parse_datetime),
            "applications_count": ctx.field(JOB_FIELDS, "applications_count", as_count),
            "last_updated_at": utcnow(),
        }
        record["custom_fields"] = ctx.custom_fields(set(record))

        if not record["external_job_id"]:
            raise RecordValidationError("Job record has no external id")
        if not record["title"]:
            raise RecordValidationError(f"Job {record['external_job_id']} has no title")
        return record

    # -------------------------------------------------------------------------
    # Candidates
    # -------------------------------------------------------------------------

    def map_candidate(
        self,
        connection: AtsConnection,
        raw: dict[str, Any],
        field_mappings: Optional[dict[str, FieldMapping]] = None,
    ) -> dict[str, Any]:
        ctx = self._context(connection, raw, EntityType.CANDIDATE, field_mappings)

        record = {
            "external_candidate_id": ctx.field(CANDIDATE_FIELDS, "external_candidate_id", as_external_id),
            "first_name": ctx.field(CANDIDATE_FIELDS, "first_name", as_text),
            "last_name": ctx.field(CANDIDATE_FIELDS, "last_name", as_text),
            "email": ctx.field(CANDIDATE_FIELDS, "email", as_email),
            "phone": ctx.field(CANDIDATE_FIELDS, "phone", as_text),
            "address": ctx.field(CANDIDATE_FIELDS, "address", as_text),
            "linkedin_url": ctx.field(CANDIDATE_FIELDS, "linkedin_url", as_text),
            "portfolio_url": ctx.field(CANDIDATE_FIELDS, "portfolio_url", as_text),
            "skills": ctx.resolve("skills", lambda: ctx.list_value("skills"), as_list),
            "education": ctx.resolve("education", lambda: ctx.list_value("education"), as_list),
            "experience": ctx.resolve("experience", lambda: ctx.list_value("experience"), as_list),
            "current_title": ctx.field(CANDIDATE_FIELDS, "current_title", as_text),
            "current_company": ctx.field(CANDIDATE_FIELDS, "current_company", as_text),
            "desired_salary": ctx.field(CANDIDATE_FIELDS, "desired_salary", parse_amount),
            "availability": ctx.field(CANDIDATE_FIELDS, "availability", normalize_availability),
            "open_to_remote": ctx.field(CANDIDATE_FIELDS, "open_to_remote", as_bool),
            "last_updated_at": utcnow(),
        }
        record["custom_fields"] = ctx.custom_fields(set(record))

        if not record["external_candidate_id"]:
            raise RecordValidationError("Candidate record has no external id")
        return record

    # -------------------------------------------------------------------------
    # Applications
    # -------------------------------------------------------------------------

    def map_application(
        self,
        connection: AtsConnection,
        raw: dict[str, Any],
        field_mappings: Optional[dict[str, FieldMapping]] = None,
    ) -> dict[str, Any]:
        """
        Map an application record.

        The result carries ``external_job_id`` and ``external_candidate_id``
        for the caller to resolve against the mirror store.
        """
        ctx = self._context(connection, raw, EntityType.APPLICATION, field_mappings)

        record = {
            "external_application_id": ctx.field(APPLICATION_FIELDS, "external_application_id", as_external_id),
            "external_job_id": ctx.field(APPLICATION_FIELDS, "external_job_id", as_external_id),
            "external_candidate_id": ctx.field(APPLICATION_FIELDS, "external_candidate_id", as_external_id),
            "status": ctx.field(APPLICATION_FIELDS, "status", normalize_application_status),
            "cover_letter": ctx.field(APPLICATION_FIELDS, "cover_letter", as_text),
            "attachments": ctx.resolve("attachments", lambda: ctx.list_value("attachments"), as_list),
            "questionnaire_responses": ctx.resolve(
                "questionnaire_responses", lambda: ctx.list_value("questionnaire_responses"), as_list
            ),
            "offered_salary": ctx.field(APPLICATION_FIELDS, "offered_salary", parse_amount),
            "applied_at": ctx.field(APPLICATION_FIELDS, "applied_at", parse_datetime),
            "status_updated_at": ctx.field(APPLICATION_FIELDS, "status_updated_at", parse_datetime),
            "rejection_reason": ctx.field(APPLICATION_FIELDS, "rejection_reason", as_text),
            "interview_notes": ctx.resolve("interview_notes", lambda: ctx.list_value("interview_notes"), as_list),
            "assessment_scores": ctx.resolve(
                "assessment_scores", lambda: self._assessment_scores(ctx), as_dict
            ),
        }
        record["custom_fields"] = ctx.custom_fields(set(record))

        if not record["external_job_id"] or not record["external_candidate_id"]:
            raise RecordValidationError(
                f"Application {record['external_application_id'] or '<no id>'} "
                "does not reference both a job and a candidate"
            )
        return record

    @staticmethod
    def _assessment_scores(ctx: _RecordContext) -> Any:
        ctx.consumed.add("assessment_scores")
        return ctx.raw.get("assessment_scores")

    def map_record(
        self,
        entity_type: EntityType,
        connection: AtsConnection,
        raw: dict[str, Any],
        field_mappings: Optional[dict[str, FieldMapping]] = None,
    ) -> dict[str, Any]:
        """Dispatch to the mapper of ``entity_type``."""
        mapper = {
            EntityType.JOB: self.map_job,
            EntityType.CANDIDATE: self.map_candidate,
            EntityType.APPLICATION: self.map_application,
        }[EntityType(entity_type)]
        return mapper(connection, raw, field_mappings)


# Singleton instance
_record_mapper: Optional[RecordMapper] = None


def get_record_mapper() -> RecordMapper:
    """Get the record mapper singleton instance."""
    global _record_mapper
    if _record_mapper is None:
        _record_mapper = RecordMapper()
    return _record_mapper
