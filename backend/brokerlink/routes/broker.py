import logging
from fastapi import APIRouter, Depends, Response, status

from brokerlink.auth.broker_service import BrokerConnectionService, get_broker_service
from brokerlink.auth.service import get_current_user
from brokerlink.core.exceptions import InternalError, ServiceError
from brokerlink.models.schemas import (
    AuthUrlResponse,
    CallbackRequest,
    CallbackResponse,
    CredentialsResponse,
    DisconnectResponse,
    UpstoxCredentialsRequest,
)

router = APIRouter(prefix="/broker", tags=["broker"])


def _run(logger: logging.Logger, label: str, failure: str, func, *args, **kwargs):
    """Call a service method, letting ServiceError through and hiding anything else"""
    try:
        return func(*args, **kwargs)
    except ServiceError as e:
        logger.warning(f"[API {label}] {e.status_code}: {e.message}")
        raise
    except Exception:
        logger.exception(f"[API {label}] Unexpected error")
        raise InternalError(failure)


@router.post("/upstox/credentials", response_model=CredentialsResponse)
def save_upstox_credentials(
    payload: UpstoxCredentialsRequest,
    response: Response,
    claims: dict = Depends(get_current_user),
    broker_service: BrokerConnectionService = Depends(get_broker_service),
):
    """Store Upstox API credentials for the current user"""
    logger = logging.getLogger("broker.credentials")
    created, connection = _run(
        logger, "POST /broker/upstox/credentials", "Failed to save credentials",
        broker_service.upsert_credentials,
        claims["userId"], payload.api_key, payload.api_secret, payload.redirect_uri,
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
        message = "Upstox credentials saved successfully"
    else:
        message = "Upstox credentials updated successfully"
    return CredentialsResponse(message=message, connection_id=connection.connection_id)


@router.get("/upstox/auth-url", response_model=AuthUrlResponse)
def upstox_auth_url(
    claims: dict = Depends(get_current_user),
    broker_service: BrokerConnectionService = Depends(get_broker_service),
):
    """Generate the Upstox OAuth authorization URL"""
    logger = logging.getLogger("broker.auth_url")
    result = _run(
        logger, "GET /broker/upstox/auth-url", "Failed to generate authorization URL",
        broker_service.build_authorization_url, claims["userId"],
    )
    return AuthUrlResponse(**result)


@router.post("/upstox/callback", response_model=CallbackResponse)
def upstox_callback(
    payload: CallbackRequest,
    claims: dict = Depends(get_current_user),
    broker_service: BrokerConnectionService = Depends(get_broker_service),
):
    """Exchange the Upstox authorization code for tokens"""
    logger = logging.getLogger("broker.callback")
    result = _run(
        logger, "POST /broker/upstox/callback", "Failed to process authorization callback",
        broker_service.exchange_code, claims["userId"], payload.code, payload.state,
    )
    return CallbackResponse(**result)


@router.get("/upstox/status")
def upstox_status(
    claims: dict = Depends(get_current_user),
    broker_service: BrokerConnectionService = Depends(get_broker_service),
):
    """Get Upstox connection status for the current user"""
    logger = logging.getLogger("broker.status")
    return _run(
        logger, "GET /broker/upstox/status", "Failed to get connection status",
        broker_service.get_status, claims["userId"],
    )


@router.delete("/upstox/disconnect", response_model=DisconnectResponse)
def upstox_disconnect(
    claims: dict = Depends(get_current_user),
    broker_service: BrokerConnectionService = Depends(get_broker_service),
):
    """Disconnect and remove the Upstox connection"""
    logger = logging.getLogger("broker.disconnect")
    connection_id = _run(
        logger, "DELETE /broker/upstox/disconnect", "Failed to disconnect Upstox connection",
        broker_service.disconnect, claims["userId"],
    )
    return DisconnectResponse(
        message="Upstox connection disconnected successfully",
        disconnected_connection_id=connection_id,
    )
