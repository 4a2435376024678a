"""
Database repositories for ATS Connect data access.

This module provides repository classes for all database collections,
implementing the repository pattern for clean data access.
"""

# Base repository
from .base import BaseRepository

# Configuration repositories
from .connection_repository import ConnectionRepository, get_connection_repository
from .field_mapping_repository import FieldMappingRepository, get_field_mapping_repository

# Mirror repositories
from .job_posting_repository import JobPostingRepository, get_job_posting_repository
from .candidate_repository import CandidateRepository, get_candidate_repository
from .application_repository import ApplicationRepository, get_application_repository

# Audit repositories
from .sync_log_repository import SyncLogRepository, get_sync_log_repository
from .webhook_repository import WebhookRepository, get_webhook_repository

__all__ = [
    # Base
    "BaseRepository",
    # Connection
    "ConnectionRepository",
    "get_connection_repository",
    # Field mapping
    "FieldMappingRepository",
    "get_field_mapping_repository",
    # Job posting
    "JobPostingRepository",
    "get_job_posting_repository",
    # Candidate
    "CandidateRepository",
    "get_candidate_repository",
    # Application
    "ApplicationRepository",
    "get_application_repository",
    # Sync log
    "SyncLogRepository",
    "get_sync_log_repository",
    # Webhook
    "WebhookRepository",
    "get_webhook_repository",
]
