"""
Job posting repository for ATS Connect.

Postings are keyed by (connection, external job id); writes go through the
base upsert so a repeated sighting updates rather than duplicates.
"""

from typing import Optional

from bson import ObjectId

from ats_connect.data.models.job_posting import JobPosting
from ats_connect.utils.constants import COLLECTIONS, JobStatus

from .base import BaseRepository


class JobPostingRepository(BaseRepository[JobPosting]):
    """Repository for mirrored job postings."""

    @property
    def collection_name(self) -> str:
        return COLLECTIONS["job_postings"]

    @property
    def model_class(self) -> type[JobPosting]:
        return JobPosting

    def upsert_posting(self, posting: JobPosting) -> tuple[JobPosting, bool]:
        """Insert or overwrite a posting by its dedup key."""
        key = {
            "connection_id": posting.connection_id,
            "external_job_id": posting.external_job_id,
        }
        return self.upsert(key, posting)

    def get_by_external_id(
        self, connection_id: str | ObjectId, external_job_id: str
    ) -> Optional[JobPosting]:
        return self.find_one(
            {
                "connection_id": self._to_object_id(connection_id),
                "external_job_id": str(external_job_id),
            }
        )

    def get_for_connection(
        self,
        connection_id: str | ObjectId,
        status: Optional[JobStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[JobPosting]:
        query = {"connection_id": self._to_object_id(connection_id)}
        if status:
            query["status"] = JobStatus(status).value
        return self.find(query, skip=skip, limit=limit)

    def delete_for_connection(self, connection_id: str | ObjectId) -> int:
        return self.delete_many({"connection_id": self._to_object_id(connection_id)})


# Singleton instance
_job_posting_repository: Optional[JobPostingRepository] = None


def get_job_posting_repository() -> JobPostingRepository:
    """Get the job posting repository singleton instance."""
    global _job_posting_repository
    if _job_posting_repository is None:
        _job_posting_repository = JobPostingRepository()
    return _job_posting_repository
