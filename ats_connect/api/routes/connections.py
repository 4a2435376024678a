from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status as http_status
from pymongo.errors import PyMongoError

from ats_connect.api.dependencies import get_owner_id, get_service
from ats_connect.api.schemas import ConnectionOut, ConnectionTestOut, SyncOut, SyncRequest
from ats_connect.core.exceptions import ConfigurationError, NotFoundError, RateLimitedError
from ats_connect.data.models import AtsConnection, ConnectionCreate, ConnectionUpdate
from ats_connect.services.integration_service import AtsIntegrationService

router = APIRouter()


def _load(service: AtsIntegrationService, connection_id: str) -> AtsConnection:
    try:
        return service.get_connection(connection_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PyMongoError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


@router.post("", response_model=ConnectionOut, status_code=http_status.HTTP_201_CREATED)
def create_connection(
    payload: ConnectionCreate,
    owner_id: Optional[str] = Depends(get_owner_id),
    service: AtsIntegrationService = Depends(get_service),
) -> ConnectionOut:
    try:
        connection = service.create_connection(owner_id, payload)
    except ConfigurationError as exc:
        raise HTTPException(status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    except PyMongoError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return ConnectionOut.from_model(connection)


@router.get("/{connection_id}", response_model=ConnectionOut)
def get_connection(
    connection_id: str, service: AtsIntegrationService = Depends(get_service)
) -> ConnectionOut:
    return ConnectionOut.from_model(_load(service, connection_id))


@router.patch("/{connection_id}", response_model=ConnectionOut)
def update_connection(
    connection_id: str,
    payload: ConnectionUpdate,
    service: AtsIntegrationService = Depends(get_service),
) -> ConnectionOut:
    _load(service, connection_id)
    try:
        connection = service.update_connection(connection_id, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return ConnectionOut.from_model(connection)


@router.post("/{connection_id}/test", response_model=ConnectionTestOut)
def test_connection(
    connection_id: str, service: AtsIntegrationService = Depends(get_service)
) -> ConnectionTestOut:
    connection = _load(service, connection_id)
    return ConnectionTestOut(**service.test_connection(connection))


@router.post("/{connection_id}/sync", response_model=SyncOut)
def sync_connection(
    connection_id: str,
    payload: Optional[SyncRequest] = None,
    service: AtsIntegrationService = Depends(get_service),
) -> SyncOut:
    _load(service, connection_id)
    payload = payload or SyncRequest()
    try:
        result = service.sync_connection(
            connection_id, filters=payload.filters(), sync_type=payload.sync_type
        )
    except RateLimitedError as exc:
        raise HTTPException(status_code=http_status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)) from exc

    if result.success:
        message = "Sync completed successfully"
    else:
        message = f"Sync failed: {result.error}" if result.error else "Sync failed"
    return SyncOut(success=result.success, message=message, result=result.to_dict())
