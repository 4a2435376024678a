from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status as http_status
from pymongo.errors import PyMongoError

from ats_connect.api.dependencies import get_service
from ats_connect.api.schemas import WebhookAck
from ats_connect.core.exceptions import NotFoundError
from ats_connect.services.integration_service import AtsIntegrationService

router = APIRouter()


@router.post(
    "/{connection_id}/webhook",
    response_model=WebhookAck,
    status_code=http_status.HTTP_202_ACCEPTED,
)
def receive_webhook(
    connection_id: str,
    payload: Any = Body(...),
    service: AtsIntegrationService = Depends(get_service),
) -> WebhookAck:
    """
    Accept a provider webhook.

    The delivery is stored before processing, so a processing failure is
    still acknowledged; the webhook stays retryable.
    """
    try:
        result = service.receive_webhook(connection_id, payload)
    except NotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PyMongoError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    return WebhookAck(
        webhook_id=result.webhook_id,
        event_type=result.event_type,
        status=result.status,
        error=result.error,
    )
