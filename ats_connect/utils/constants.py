"""
Application-wide constants for ATS Connect.

This module holds the provider catalogue, the canonical vocabularies that
external ATS values are normalized into, and the lookup tables used to get
there. Modify these values to customize behavior without changing code logic.
"""

from enum import Enum
from typing import Final, Optional


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "ATS-Connect"
APP_DISPLAY_NAME: Final[str] = "Applicant Tracking System Integration Engine"
VERSION: Final[str] = "0.1.0"


# =============================================================================
# Providers
# =============================================================================


class AtsProvider(str, Enum):
    """Supported Applicant Tracking System providers."""

    WORKDAY = "workday"
    GREENHOUSE = "greenhouse"
    LEVER = "lever"
    BAMBOOHR = "bamboohr"
    SUCCESSFACTORS = "successfactors"
    TALEO = "taleo"
    ICIMS = "icims"
    JAZZ = "jazz"
    BULLHORN = "bullhorn"
    JOBVITE = "jobvite"

    @property
    def display_name(self) -> str:
        return PROVIDER_DISPLAY_NAMES[self.value]

    @classmethod
    def from_value(cls, value: Optional[str]) -> Optional["AtsProvider"]:
        """Resolve a stored provider id, returning None for unknown providers."""
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


PROVIDER_DISPLAY_NAMES: Final[dict[str, str]] = {
    "workday": "Workday",
    "greenhouse": "Greenhouse",
    "lever": "Lever",
    "bamboohr": "BambooHR",
    "successfactors": "SAP SuccessFactors",
    "taleo": "Oracle Taleo",
    "icims": "iCIMS",
    "jazz": "JazzHR",
    "bullhorn": "Bullhorn",
    "jobvite": "Jobvite",
}

# Syncs allowed per trailing hour
PROVIDER_HOURLY_LIMITS: Final[dict[str, int]] = {
    "workday": 100,
    "greenhouse": 200,
    "lever": 150,
    "bamboohr": 50,
    "successfactors": 75,
    "taleo": 100,
    "icims": 120,
    "jazz": 180,
    "bullhorn": 250,
    "jobvite": 160,
}

DEFAULT_HOURLY_LIMIT: Final[int] = 100


# =============================================================================
# Sync & Webhook Constants
# =============================================================================


class EntityType(str, Enum):
    """Kinds of records mirrored from an ATS."""

    JOB = "job"
    CANDIDATE = "candidate"
    APPLICATION = "application"

    @property
    def display_name(self) -> str:
        return {
            "job": "Job Posting",
            "candidate": "Candidate",
            "application": "Application",
        }[self.value]


class FieldType(str, Enum):
    """Target type a mapped field is cast to."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def display_name(self) -> str:
        return {
            "string": "Text",
            "number": "Number",
            "boolean": "Yes/No",
            "date": "Date",
            "array": "List",
            "object": "Object",
        }[self.value]


class SyncType(str, Enum):
    """Scope of a sync run."""

    JOBS = "jobs"
    CANDIDATES = "candidates"
    APPLICATIONS = "applications"
    FULL = "full"

    @property
    def entity_types(self) -> tuple[EntityType, ...]:
        """Entity types covered by this run, in dependency order."""
        if self is SyncType.FULL:
            return (EntityType.JOB, EntityType.CANDIDATE, EntityType.APPLICATION)
        return ({
            "jobs": EntityType.JOB,
            "candidates": EntityType.CANDIDATE,
            "applications": EntityType.APPLICATION,
        }[self.value],)


class SyncStatus(str, Enum):
    """Lifecycle of a sync run."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


class WebhookStatus(str, Enum):
    """Processing state of a received webhook."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class WebhookEventType(str, Enum):
    """Webhook event types understood by the ingestor."""

    JOB_CREATED = "job_created"
    JOB_UPDATED = "job_updated"
    JOB_CLOSED = "job_closed"
    CANDIDATE_CREATED = "candidate_created"
    CANDIDATE_UPDATED = "candidate_updated"
    APPLICATION_SUBMITTED = "application_submitted"
    APPLICATION_UPDATED = "application_updated"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    OFFER_EXTENDED = "offer_extended"
    HIRE_COMPLETED = "hire_completed"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


MAX_WEBHOOK_RETRIES: Final[int] = 3
UNKNOWN_EVENT_TYPE: Final[str] = "unknown"


class AuditType(str, Enum):
    """Categories of the audit trail."""

    SYNC = "SYNC"
    WEBHOOK = "WEBHOOK"
    CONNECTION = "CONNECTION"


# Key fragments whose values never reach a log record
SENSITIVE_KEY_FRAGMENTS: Final[tuple[str, ...]] = (
    "password", "passwd", "secret", "token", "api_key", "apikey",
    "auth", "credential", "private_key", "oauth", "customer_id",
)


# =============================================================================
# Canonical Vocabularies
# =============================================================================


class EmploymentType(str, Enum):
    """Canonical employment type."""

    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    TEMPORARY = "temporary"
    INTERNSHIP = "internship"


class ExperienceLevel(str, Enum):
    """Canonical experience level."""

    ENTRY = "entry-level"
    MID = "mid-level"
    SENIOR = "senior"
    EXECUTIVE = "executive"


class JobStatus(str, Enum):
    """Canonical status of a mirrored job posting."""

    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"
    DRAFT = "draft"


class ApplicationStatus(str, Enum):
    """Canonical stage of an application in the hiring pipeline."""

    NEW = "new"
    SCREENING = "screening"
    INTERVIEW = "interview"
    ASSESSMENT = "assessment"
    OFFER = "offer"
    HIRED = "hired"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Availability(str, Enum):
    """Canonical candidate availability."""

    IMMEDIATE = "immediate"
    TWO_WEEKS = "2-weeks"
    ONE_MONTH = "1-month"
    FLEXIBLE = "flexible"


# =============================================================================
# Normalization Tables
# =============================================================================

# Keys are compared after lowercasing and folding "-"/"_" to spaces
EMPLOYMENT_TYPE_ALIASES: Final[dict[str, EmploymentType]] = {
    "full time": EmploymentType.FULL_TIME,
    "fulltime": EmploymentType.FULL_TIME,
    "permanent": EmploymentType.FULL_TIME,
    "part time": EmploymentType.PART_TIME,
    "parttime": EmploymentType.PART_TIME,
    "contract": EmploymentType.CONTRACT,
    "contractor": EmploymentType.CONTRACT,
    "freelance": EmploymentType.CONTRACT,
    "temp": EmploymentType.TEMPORARY,
    "temporary": EmploymentType.TEMPORARY,
    "intern": EmploymentType.INTERNSHIP,
    "internship": EmploymentType.INTERNSHIP,
}

# Checked in order, first substring hit wins
EXPERIENCE_LEVEL_KEYWORDS: Final[tuple[tuple[tuple[str, ...], ExperienceLevel], ...]] = (
    (("entry", "junior", "associate"), ExperienceLevel.ENTRY),
    (("senior", "lead"), ExperienceLevel.SENIOR),
    (("executive", "director", "manager"), ExperienceLevel.EXECUTIVE),
)

JOB_STATUS_ALIASES: Final[dict[str, JobStatus]] = {
    "active": JobStatus.ACTIVE,
    "open": JobStatus.ACTIVE,
    "published": JobStatus.ACTIVE,
    "live": JobStatus.ACTIVE,
    "paused": JobStatus.PAUSED,
    "hold": JobStatus.PAUSED,
    "on hold": JobStatus.PAUSED,
    "closed": JobStatus.CLOSED,
    "filled": JobStatus.CLOSED,
    "expired": JobStatus.CLOSED,
    "draft": JobStatus.DRAFT,
    "pending": JobStatus.DRAFT,
}

APPLICATION_STATUS_ALIASES: Final[dict[str, ApplicationStatus]] = {
    "new": ApplicationStatus.NEW,
    "submitted": ApplicationStatus.NEW,
    "applied": ApplicationStatus.NEW,
    "reviewing": ApplicationStatus.SCREENING,
    "screening": ApplicationStatus.SCREENING,
    "phone screen": ApplicationStatus.SCREENING,
    "interview": ApplicationStatus.INTERVIEW,
    "interviewing": ApplicationStatus.INTERVIEW,
    "interview scheduled": ApplicationStatus.INTERVIEW,
    "onsite": ApplicationStatus.INTERVIEW,
    "assessment": ApplicationStatus.ASSESSMENT,
    "testing": ApplicationStatus.ASSESSMENT,
    "technical": ApplicationStatus.ASSESSMENT,
    "offer": ApplicationStatus.OFFER,
    "offer extended": ApplicationStatus.OFFER,
    "offer sent": ApplicationStatus.OFFER,
    "hired": ApplicationStatus.HIRED,
    "accepted": ApplicationStatus.HIRED,
    "rejected": ApplicationStatus.REJECTED,
    "declined": ApplicationStatus.REJECTED,
    "not selected": ApplicationStatus.REJECTED,
    "withdrawn": ApplicationStatus.WITHDRAWN,
    "cancelled": ApplicationStatus.WITHDRAWN,
}

AVAILABILITY_ALIASES: Final[dict[str, Availability]] = {
    "immediate": Availability.IMMEDIATE,
    "immediately": Availability.IMMEDIATE,
    "asap": Availability.IMMEDIATE,
    "now": Availability.IMMEDIATE,
    "2 weeks": Availability.TWO_WEEKS,
    "2weeks": Availability.TWO_WEEKS,
    "two weeks": Availability.TWO_WEEKS,
    "1 month": Availability.ONE_MONTH,
    "1month": Availability.ONE_MONTH,
    "one month": Availability.ONE_MONTH,
    "30 days": Availability.ONE_MONTH,
    "flexible": Availability.FLEXIBLE,
    "negotiable": Availability.FLEXIBLE,
    "open": Availability.FLEXIBLE,
}

TRUTHY_VALUES: Final[frozenset[str]] = frozenset({"true", "1", "yes", "y", "on"})

# Container keys tried, in order, when a provider wraps a collection
COLLECTION_ENVELOPE_KEYS: Final[dict[EntityType, tuple[str, ...]]] = {
    EntityType.JOB: ("jobs", "data", "results", "items", "postings"),
    EntityType.CANDIDATE: ("candidates", "data", "results", "items", "people"),
    EntityType.APPLICATION: ("applications", "data", "results", "items"),
}

# Raw keys gathered into canonical list fields
LIST_FIELD_SOURCES: Final[dict[str, tuple[str, ...]]] = {
    "requirements": ("requirements", "qualifications", "skills_required", "must_have"),
    "benefits": ("benefits", "perks", "compensation_benefits"),
    "skills": ("skills", "technologies", "expertise", "competencies"),
    "education": ("education",),
    "experience": ("experience", "work_history"),
    "attachments": ("attachments", "files"),
    "questionnaire_responses": ("questionnaire_responses", "custom_questions"),
    "interview_notes": ("interview_notes",),
}


# =============================================================================
# Collections
# =============================================================================

COLLECTIONS: Final[dict[str, str]] = {
    "connections": "ats_connections",
    "field_mappings": "ats_field_mappings",
    "job_postings": "ats_job_postings",
    "candidates": "ats_candidates",
    "applications": "ats_applications",
    "sync_logs": "ats_sync_logs",
    "webhooks": "ats_webhooks",
}
