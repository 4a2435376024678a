"""
Candidate repository for ATS Connect.
"""

from typing import Optional

from bson import ObjectId

from ats_connect.data.models.candidate import Candidate
from ats_connect.utils.constants import COLLECTIONS

from .base import BaseRepository


class CandidateRepository(BaseRepository[Candidate]):
    """Repository for mirrored candidates, keyed by (connection, external candidate id)."""

    @property
    def collection_name(self) -> str:
        return COLLECTIONS["candidates"]

    @property
    def model_class(self) -> type[Candidate]:
        return Candidate

    def upsert_candidate(self, candidate: Candidate) -> tuple[Candidate, bool]:
        key = {
            "connection_id": candidate.connection_id,
            "external_candidate_id": candidate.external_candidate_id,
        }
        return self.upsert(key, candidate)

    def get_by_external_id(
        self, connection_id: str | ObjectId, external_candidate_id: str
    ) -> Optional[Candidate]:
        return self.find_one(
            {
                "connection_id": self._to_object_id(connection_id),
                "external_candidate_id": str(external_candidate_id),
            }
        )

    def get_by_email(self, email: str) -> list[Candidate]:
        return self.find({"email": email.strip().lower()})

    def delete_for_connection(self, connection_id: str | ObjectId) -> int:
        return self.delete_many({"connection_id": self._to_object_id(connection_id)})


# Singleton instance
_candidate_repository: Optional[CandidateRepository] = None


def get_candidate_repository() -> CandidateRepository:
    """Get the candidate repository singleton instance."""
    global _candidate_repository
    if _candidate_repository is None:
        _candidate_repository = CandidateRepository()
    return _candidate_repository
