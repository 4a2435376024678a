"""
Field mapping repository for ATS Connect.
"""

from typing import Optional

from bson import ObjectId

from ats_connect.data.models.field_mapping import FieldMapping, FieldMappingCreate
from ats_connect.utils.constants import COLLECTIONS, EntityType
from ats_connect.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class FieldMappingRepository(BaseRepository[FieldMapping]):
    """Repository for per-connection field mapping overrides."""

    @property
    def collection_name(self) -> str:
        return COLLECTIONS["field_mappings"]

    @property
    def model_class(self) -> type[FieldMapping]:
        return FieldMapping

    def save_mapping(
        self, connection_id: str | ObjectId, data: FieldMappingCreate
    ) -> tuple[FieldMapping, bool]:
        """Create or replace the mapping for (connection, entity type, canonical field)."""
        mapping = FieldMapping(connection_id=self._to_object_id(connection_id), **data.model_dump())
        key = {
            "connection_id": mapping.connection_id,
            "entity_type": EntityType(data.entity_type).value,
            "local_field": mapping.local_field,
        }
        return self.upsert(key, mapping)

    def get_for_entity(
        self, connection_id: str | ObjectId, entity_type: EntityType
    ) -> dict[str, FieldMapping]:
        """Mappings of one entity type, keyed by canonical field."""
        mappings = self.find(
            {
                "connection_id": self._to_object_id(connection_id),
                "entity_type": EntityType(entity_type).value,
            },
            limit=500,
            sort_by="local_field",
            sort_order=1,
        )
        return {m.local_field: m for m in mappings}

    def get_for_connection(self, connection_id: str | ObjectId) -> list[FieldMapping]:
        return self.find(
            {"connection_id": self._to_object_id(connection_id)},
            limit=1000,
            sort_by="entity_type",
            sort_order=1,
        )

    def delete_for_connection(self, connection_id: str | ObjectId) -> int:
        return self.delete_many({"connection_id": self._to_object_id(connection_id)})


# Singleton instance
_field_mapping_repository: Optional[FieldMappingRepository] = None


def get_field_mapping_repository() -> FieldMappingRepository:
    """Get the field mapping repository singleton instance."""
    global _field_mapping_repository
    if _field_mapping_repository is None:
        _field_mapping_repository = FieldMappingRepository()
    return _field_mapping_repository
