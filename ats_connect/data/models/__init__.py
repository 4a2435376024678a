"""
Pydantic data models and schemas for ATS Connect.

This module provides the connection configuration, the mirrored entities and
the audit records used throughout the application.
"""

# Base models
from .base import BaseDocument, EmbeddedModel, PyObjectId, TimestampMixin, utcnow

# Connection models
from .connection import AtsConnection, ConnectionCreate, ConnectionUpdate, SyncStats

# Field mapping models
from .field_mapping import FieldMapping, FieldMappingCreate, TransformationRule

# Mirrored entities
from .application import Application
from .candidate import Candidate
from .job_posting import JobPosting

# Audit records
from .sync_log import SyncLog
from .webhook import Webhook

__all__ = [
    # Base
    "BaseDocument",
    "EmbeddedModel",
    "PyObjectId",
    "TimestampMixin",
    "utcnow",
    # Connection
    "AtsConnection",
    "ConnectionCreate",
    "ConnectionUpdate",
    "SyncStats",
    # Field mapping
    "FieldMapping",
    "FieldMappingCreate",
    "TransformationRule",
    # Mirrored entities
    "Application",
    "Candidate",
    "JobPosting",
    # Audit
    "SyncLog",
    "Webhook",
]
