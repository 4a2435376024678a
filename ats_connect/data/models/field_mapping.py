"""
Field mapping data models.

A field mapping binds one canonical field of an entity type to a path in the
provider's payload, together with the rules and target type used to turn the
raw value into the stored one.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ats_connect.utils.constants import EntityType, FieldType

from .base import BaseDocument, PyObjectId


class TransformationRule(BaseModel):
    """
    One step of a transformation pipeline.

    ``type`` selects the rule; every other key is a rule parameter, e.g.
    ``{"type": "replace", "search": "-", "replace": " "}``.
    """

    model_config = ConfigDict(extra="allow")

    type: str

    @property
    def params(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)


class FieldMapping(BaseDocument):
    """Per-connection override of how one canonical field is extracted."""

    connection_id: PyObjectId
    entity_type: EntityType
    local_field: str = Field(..., min_length=1)
    ats_field: str = Field(..., min_length=1)
    field_type: FieldType = FieldType.STRING
    transformation_rules: list[TransformationRule] = Field(default_factory=list)
    is_required: bool = False
    default_value: Optional[Any] = None

    @property
    def entity_display_name(self) -> str:
        return EntityType(self.entity_type).display_name

    @property
    def field_type_display_name(self) -> str:
        return FieldType(self.field_type).display_name

    class Settings:
        """MongoDB collection settings."""

        name = "ats_field_mappings"
        indexes = [("connection_id", "entity_type", "local_field")]


class FieldMappingCreate(BaseModel):
    """Schema for creating a field mapping."""

    entity_type: EntityType
    local_field: str = Field(..., min_length=1)
    ats_field: str = Field(..., min_length=1)
    field_type: FieldType = FieldType.STRING
    transformation_rules: list[TransformationRule] = Field(default_factory=list)
    is_required: bool = False
    default_value: Optional[Any] = None
