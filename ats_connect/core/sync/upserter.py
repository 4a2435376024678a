"""
Writes canonical records into the mirror store.

Jobs and candidates are keyed by (connection, external id). Applications are
keyed by the resolved (job posting, candidate) pair and are refused while
either side is missing locally.
"""

from typing import Any, Optional

from pydantic import ValidationError

from ats_connect.core.exceptions import OrphanApplicationError, RecordValidationError
from ats_connect.data.models import Application, AtsConnection, Candidate, JobPosting
from ats_connect.data.models.base import BaseDocument
from ats_connect.data.repositories import (
    ApplicationRepository,
    CandidateRepository,
    JobPostingRepository,
    get_application_repository,
    get_candidate_repository,
    get_job_posting_repository,
)
from ats_connect.utils.constants import EntityType
from ats_connect.utils.logger import LoggerMixin


class RecordUpserter(LoggerMixin):
    """Upserts mapped records; every method returns ``(stored_model, created)``."""

    def __init__(
        self,
        job_postings: Optional[JobPostingRepository] = None,
        candidates: Optional[CandidateRepository] = None,
        applications: Optional[ApplicationRepository] = None,
    ) -> None:
        self._job_postings = job_postings or get_job_posting_repository()
        self._candidates = candidates or get_candidate_repository()
        self._applications = applications or get_application_repository()

    @staticmethod
    def _build(model_class: type[BaseDocument], **data: Any) -> Any:
        try:
            return model_class(**data)
        except ValidationError as e:
            raise RecordValidationError(
                f"Invalid {model_class.__name__}: {e.error_count()} field error(s)"
            ) from e

    def upsert_job(self, connection: AtsConnection, record: dict[str, Any]) -> tuple[JobPosting, bool]:
        posting = self._build(JobPosting, connection_id=connection.id, **record)
        return self._job_postings.upsert_posting(posting)

    def upsert_candidate(
        self, connection: AtsConnection, record: dict[str, Any]
    ) -> tuple[Candidate, bool]:
        candidate = self._build(Candidate, connection_id=connection.id, **record)
        return self._candidates.upsert_candidate(candidate)

    def upsert_application(
        self, connection: AtsConnection, record: dict[str, Any]
    ) -> tuple[Application, bool]:
        """Resolve the referenced job and candidate, then upsert the application."""
        data = dict(record)
        external_job_id = data.pop("external_job_id")
        external_candidate_id = data.pop("external_candidate_id")

        job = self._job_postings.get_by_external_id(connection.id, external_job_id)
        if job is None:
            raise OrphanApplicationError(
                f"Application references job {external_job_id}, which has not been synced"
            )
        candidate = self._candidates.get_by_external_id(connection.id, external_candidate_id)
        if candidate is None:
            raise OrphanApplicationError(
                f"Application references candidate {external_candidate_id}, which has not been synced"
            )

        application = self._build(
            Application,
            connection_id=connection.id,
            job_posting_id=job.id,
            candidate_id=candidate.id,
            **data,
        )
        return self._applications.upsert_application(application)

    def upsert(
        self, entity_type: EntityType, connection: AtsConnection, record: dict[str, Any]
    ) -> tuple[BaseDocument, bool]:
        """Dispatch to the upsert of ``entity_type``."""
        handler = {
            EntityType.JOB: self.upsert_job,
            EntityType.CANDIDATE: self.upsert_candidate,
            EntityType.APPLICATION: self.upsert_application,
        }[EntityType(entity_type)]
        return handler(connection, record)
