"""
Mirrored job posting model.

One document per (connection, external job id); every sync or webhook
sighting overwrites the mapped fields in place.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from ats_connect.utils.constants import EmploymentType, ExperienceLevel, JobStatus

from .base import BaseDocument, PyObjectId


class JobPosting(BaseDocument):
    """A job posting as known to the provider, in canonical form."""

    connection_id: PyObjectId
    external_job_id: str = Field(..., min_length=1)

    # Basic Information
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None

    # Employment Details
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    experience_level: ExperienceLevel = ExperienceLevel.ENTRY
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_currency: str = "USD"

    requirements: list[Any] = Field(default_factory=list)
    benefits: list[Any] = Field(default_factory=list)

    # People
    hiring_manager: Optional[str] = None
    recruiter: Optional[str] = None

    # Status & Dates
    status: JobStatus = JobStatus.ACTIVE
    posted_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    applications_count: int = 0

    custom_fields: dict[str, Any] = Field(default_factory=dict)
    last_updated_at: Optional[datetime] = None

    @field_validator("salary_min", "salary_max")
    @classmethod
    def validate_amount(cls, v: Optional[float]) -> Optional[float]:
        """Salary amounts are non-negative."""
        if v is not None and v < 0:
            raise ValueError("Salary amount must be non-negative")
        return v

    @property
    def salary_display(self) -> Optional[str]:
        if self.salary_min is None and self.salary_max is None:
            return None
        if self.salary_max is None:
            return f"{self.salary_currency} {self.salary_min:,.0f}+"
        if self.salary_min is None:
            return f"up to {self.salary_currency} {self.salary_max:,.0f}"
        return f"{self.salary_currency} {self.salary_min:,.0f} - {self.salary_max:,.0f}"

    @property
    def is_open(self) -> bool:
        return self.status == JobStatus.ACTIVE

    class Settings:
        """MongoDB collection settings."""

        name = "ats_job_postings"
        indexes = [("connection_id", "external_job_id"), "status"]
