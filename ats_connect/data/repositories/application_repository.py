"""
Application repository for ATS Connect.

Applications are keyed by the resolved (job posting, candidate) pair; the
external application id is kept for webhook lookups only.
"""

from typing import Any, Optional

from bson import ObjectId

from ats_connect.data.models.application import Application
from ats_connect.utils.constants import COLLECTIONS

from .base import BaseRepository


class ApplicationRepository(BaseRepository[Application]):
    """Repository for mirrored applications."""

    @property
    def collection_name(self) -> str:
        return COLLECTIONS["applications"]

    @property
    def model_class(self) -> type[Application]:
        return Application

    def upsert_application(self, application: Application) -> tuple[Application, bool]:
        key = {
            "job_posting_id": application.job_posting_id,
            "candidate_id": application.candidate_id,
        }
        return self.upsert(key, application)

    def get_by_external_id(
        self, connection_id: str | ObjectId, external_application_id: str
    ) -> Optional[Application]:
        return self.find_one(
            {
                "connection_id": self._to_object_id(connection_id),
                "external_application_id": str(external_application_id),
            }
        )

    def save_changes(self, application: Application) -> Optional[Application]:
        """Persist the lifecycle fields of an in-memory application."""
        changes: dict[str, Any] = application.model_dump(
            include={
                "status",
                "status_updated_at",
                "rejection_reason",
                "offered_salary",
                "interview_notes",
                "assessment_scores",
                "custom_fields",
            }
        )
        return self.update(application.id, changes)

    def delete_for_connection(self, connection_id: str | ObjectId) -> int:
        return self.delete_many({"connection_id": self._to_object_id(connection_id)})


# Singleton instance
_application_repository: Optional[ApplicationRepository] = None


def get_application_repository() -> ApplicationRepository:
    """Get the application repository singleton instance."""
    global _application_repository
    if _application_repository is None:
        _application_repository = ApplicationRepository()
    return _application_repository
