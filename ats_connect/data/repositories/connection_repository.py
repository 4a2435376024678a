"""
Connection repository for ATS Connect.

Credentials are sealed with the credential cipher on every write and opened
on every read, so plaintext never reaches MongoDB.
"""

from typing import Any, Optional

from bson import ObjectId
from pymongo.database import Database

from ats_connect.data.models.base import utcnow
from ats_connect.data.models.connection import AtsConnection, ConnectionCreate, ConnectionUpdate
from ats_connect.utils.constants import COLLECTIONS
from ats_connect.utils.crypto import CredentialCipher, get_credential_cipher
from ats_connect.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class ConnectionRepository(BaseRepository[AtsConnection]):
    """Repository for ATS connection documents."""

    def __init__(
        self,
        database: Optional[Database] = None,
        cipher: Optional[CredentialCipher] = None,
    ) -> None:
        super().__init__(database)
        self._cipher = cipher

    @property
    def collection_name(self) -> str:
        return COLLECTIONS["connections"]

    @property
    def model_class(self) -> type[AtsConnection]:
        return AtsConnection

    @property
    def cipher(self) -> CredentialCipher:
        if self._cipher is None:
            self._cipher = get_credential_cipher()
        return self._cipher

    # -------------------------------------------------------------------------
    # Document Conversion
    # -------------------------------------------------------------------------

    def _to_model(self, document: Optional[dict[str, Any]]) -> Optional[AtsConnection]:
        connection = super()._to_model(document)
        if connection is not None:
            connection.credentials = self.cipher.decrypt(connection.encrypted_credentials)
        return connection

    def _to_document(self, model: AtsConnection) -> dict[str, Any]:
        model.encrypted_credentials = self.cipher.encrypt(model.credentials)
        return model.model_dump_mongo()

    # -------------------------------------------------------------------------
    # Create / Update Operations
    # -------------------------------------------------------------------------

    def create_from_schema(self, data: ConnectionCreate, owner_id: Optional[str] = None) -> AtsConnection:
        """Create a connection from a create schema."""
        connection = AtsConnection(
            owner_id=owner_id,
            name=data.name,
            provider=data.provider.value,
            api_endpoint=str(data.api_endpoint),
            credentials=data.credentials,
            configuration=data.configuration,
            field_mapping=data.field_mapping,
            is_active=data.is_active,
        )
        return self.create(connection)

    def update_from_schema(
        self, connection_id: str | ObjectId, data: ConnectionUpdate
    ) -> Optional[AtsConnection]:
        """Apply the fields set on an update schema."""
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "credentials" in changes:
            changes["encrypted_credentials"] = self.cipher.encrypt(changes.pop("credentials"))
        if "api_endpoint" in changes:
            changes["api_endpoint"] = str(changes["api_endpoint"])
        if not changes:
            return self.get_by_id(connection_id)
        return self.update(connection_id, changes)

    def set_active(self, connection_id: str | ObjectId, is_active: bool) -> Optional[AtsConnection]:
        return self.update(connection_id, {"is_active": is_active})

    def record_sync_stats(
        self,
        connection_id: str | ObjectId,
        last_sync: dict[str, Any],
        records_processed: int,
        success_rate: float,
    ) -> None:
        """Fold a completed run into the connection's rolling statistics."""
        now = utcnow()
        self._get_sync_collection().update_one(
            {"_id": self._to_object_id(connection_id)},
            {
                "$set": {
                    "last_sync_at": now,
                    "updated_at": now,
                    "sync_stats.last_sync": last_sync,
                    "sync_stats.success_rate": success_rate,
                },
                "$inc": {
                    "sync_stats.total_synced": records_processed,
                    "sync_stats.total_runs": 1,
                },
            },
        )
        logger.debug(f"Recorded sync stats for connection {connection_id}")

    # -------------------------------------------------------------------------
    # Query Operations
    # -------------------------------------------------------------------------

    def get_active(self, limit: int = 1000) -> list[AtsConnection]:
        """Get every active connection."""
        return self.find({"is_active": True}, limit=limit, sort_by="created_at", sort_order=1)

    def get_by_provider(self, provider: str, active_only: bool = True) -> list[AtsConnection]:
        query: dict[str, Any] = {"provider": provider.lower()}
        if active_only:
            query["is_active"] = True
        return self.find(query, limit=1000, sort_by="created_at", sort_order=1)

    def get_by_owner(self, owner_id: str, skip: int = 0, limit: int = 100) -> list[AtsConnection]:
        return self.find({"owner_id": owner_id}, skip=skip, limit=limit)


# Singleton instance
_connection_repository: Optional[ConnectionRepository] = None


def get_connection_repository() -> ConnectionRepository:
    """Get the connection repository singleton instance."""
    global _connection_repository
    if _connection_repository is None:
        _connection_repository = ConnectionRepository()
    return _connection_repository
