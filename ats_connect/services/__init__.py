"""Application services for ATS Connect."""

from .integration_service import AtsIntegrationService, get_integration_service

__all__ = ["AtsIntegrationService", "get_integration_service"]
