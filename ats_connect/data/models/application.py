"""
Mirrored application model.

An application joins a mirrored job posting and a mirrored candidate; it is
only stored once both sides exist locally.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from ats_connect.utils.constants import ApplicationStatus

from .base import BaseDocument, PyObjectId, utcnow


class Application(BaseDocument):
    """A candidate's application to a job, in canonical form."""

    connection_id: PyObjectId
    job_posting_id: PyObjectId
    candidate_id: PyObjectId
    external_application_id: Optional[str] = None

    status: ApplicationStatus = ApplicationStatus.NEW
    cover_letter: Optional[str] = None
    attachments: list[Any] = Field(default_factory=list)
    questionnaire_responses: list[Any] = Field(default_factory=list)
    offered_salary: Optional[float] = None

    applied_at: Optional[datetime] = None
    status_updated_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    interview_notes: list[Any] = Field(default_factory=list)
    assessment_scores: dict[str, Any] = Field(default_factory=dict)

    custom_fields: dict[str, Any] = Field(default_factory=dict)

    def update_status(self, new_status: ApplicationStatus, reason: Optional[str] = None) -> None:
        """Move the application to a new stage; a rejection records its reason."""
        self.status = ApplicationStatus(new_status).value
        self.status_updated_at = utcnow()
        if new_status == ApplicationStatus.REJECTED and reason:
            self.rejection_reason = reason

    def add_interview_note(self, note: str, interviewer: Optional[str] = None) -> dict[str, Any]:
        """Append a timestamped interview note and return it."""
        entry = {"note": note, "interviewer": interviewer, "created_at": utcnow()}
        self.interview_notes.append(entry)
        return entry

    def set_assessment_score(self, assessment: str, score: Any) -> None:
        self.assessment_scores[assessment] = score

    @property
    def is_closed(self) -> bool:
        return self.status in (
            ApplicationStatus.HIRED,
            ApplicationStatus.REJECTED,
            ApplicationStatus.WITHDRAWN,
        )

    class Settings:
        """MongoDB collection settings."""

        name = "ats_applications"
        indexes = [("job_posting_id", "candidate_id"), ("connection_id", "external_application_id"), "status"]
