from typing import Optional

from fastapi import Header

from ats_connect.services.integration_service import AtsIntegrationService, get_integration_service


def get_service() -> AtsIntegrationService:
    return get_integration_service()


def get_owner_id(x_owner_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Owner of the request, as asserted by the authenticating proxy in front of the API."""
    return x_owner_id
