from datetime import datetime, timedelta, timezone
import secrets
from typing import Optional, Tuple
from jose import JWTError, jwt
from fastapi import Depends, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from brokerlink.brokers.upstox import UpstoxOAuthClient
from brokerlink.core.config import Settings
from brokerlink.core.database import get_db
from brokerlink.core.exceptions import NotFound, ValidationError
from brokerlink.core.logger import logger
from brokerlink.core.market_hours import as_utc, next_session_reset, utc_now
from brokerlink.core.security import DecryptionError, EncryptionManager
from brokerlink.models.auth import UPSTOX, BrokerConnection

OAUTH_STATE_PURPOSE = "upstox_oauth"


class BrokerConnectionService:
    """Manage a user's Upstox credentials and OAuth tokens"""

    def __init__(
        self,
        db: Session,
        settings: Settings,
        encryption_manager: EncryptionManager,
        upstox_client: UpstoxOAuthClient,
    ):
        self.db = db
        self.settings = settings
        self.encryption_manager = encryption_manager
        self.upstox_client = upstox_client

    def _find(self, user_id: str) -> Optional[BrokerConnection]:
        return self.db.query(BrokerConnection).filter(
            (BrokerConnection.user_id == user_id) &
            (BrokerConnection.broker_name == UPSTOX)
        ).first()

    def _require(self, user_id: str, message: str) -> BrokerConnection:
        connection = self._find(user_id)
        if not connection:
            raise NotFound(message)
        return connection

    def _decrypt(self, value: str) -> str:
        try:
            return self.encryption_manager.decrypt_credentials(value)
        except DecryptionError:
            raise ValidationError(
                "Stored Upstox credentials cannot be decrypted. Please submit them again."
            )

    def _apply_credentials(self, connection, api_key, api_secret, redirect_uri) -> None:
        connection.api_key = self.encryption_manager.encrypt_credentials(api_key)
        connection.api_secret = self.encryption_manager.encrypt_credentials(api_secret)
        connection.redirect_uri = redirect_uri
        connection.is_active = True
        # New credentials invalidate any session obtained with the old ones
        connection.access_token = None
        connection.refresh_token = None
        connection.token_valid_until = None

    def upsert_credentials(
        self,
        user_id: str,
        api_key: str,
        api_secret: str,
        redirect_uri: str,
    ) -> Tuple[bool, BrokerConnection]:
        """Store encrypted credentials; returns (created, connection)"""
        connection = self._find(user_id)
        if connection is None:
            connection = BrokerConnection(user_id=user_id, broker_name=UPSTOX)
            self._apply_credentials(connection, api_key, api_secret, redirect_uri)
            self.db.add(connection)
            try:
                self.db.commit()
            except IntegrityError:
                # Either a concurrent request inserted the row first, or the user is gone
                self.db.rollback()
                connection = self._find(user_id)
                if connection is None:
                    raise NotFound("User account not found")
            else:
                self.db.refresh(connection)
                logger.log_info("Upstox credentials created", {
                    "user_id": user_id,
                    "connection_id": connection.connection_id,
                })
                return True, connection

        self._apply_credentials(connection, api_key, api_secret, redirect_uri)
        self.db.commit()
        self.db.refresh(connection)
        logger.log_info("Upstox credentials updated", {
            "user_id": user_id,
            "connection_id": connection.connection_id,
        })
        return False, connection

    def create_state(self, user_id: str) -> str:
        expire = datetime.now(timezone.utc) + timedelta(seconds=self.settings.OAUTH_STATE_TTL_SECONDS)
        return jwt.encode(
            {
                "userId": user_id,
                "purpose": OAUTH_STATE_PURPOSE,
                "nonce": secrets.token_urlsafe(8),
                "exp": expire,
            },
            self.settings.SECRET_KEY,
            algorithm=self.settings.ALGORITHM,
        )

    def verify_state(self, user_id: str, state: str) -> None:
        try:
            payload = jwt.decode(state, self.settings.SECRET_KEY, algorithms=[self.settings.ALGORITHM])
        except JWTError:
            raise ValidationError("Invalid or expired OAuth state")
        if payload.get("purpose") != OAUTH_STATE_PURPOSE or payload.get("userId") != user_id:
            raise ValidationError("Invalid or expired OAuth state")

    def build_authorization_url(self, user_id: str) -> dict:
        connection = self._require(user_id, "Upstox credentials not found. Please add credentials first.")
        api_key = self._decrypt(connection.api_key)
        state = self.create_state(user_id)
        auth_url = self.upstox_client.build_authorization_url(
            client_id=api_key,
            redirect_uri=connection.redirect_uri,
            state=state,
        )
        return {
            "auth_url": auth_url,
            "state": state,
            "expires_in": self.settings.OAUTH_STATE_TTL_SECONDS,
        }

    def exchange_code(self, user_id: str, code: str, state: Optional[str] = None) -> dict:
        """Exchange an authorization code for tokens and persist them"""
        connection = self._require(user_id, "Upstox connection not found")
        if state is not None:
            self.verify_state(user_id, state)

        api_key = self._decrypt(connection.api_key)
        api_secret = self._decrypt(connection.api_secret)

        tokens = self.upstox_client.exchange_code(
            code=code,
            client_id=api_key,
            client_secret=api_secret,
            redirect_uri=connection.redirect_uri,
        )

        token_valid_until = next_session_reset(settings=self.settings)
        refresh_token = tokens.get("refresh_token")
        connection.access_token = self.encryption_manager.encrypt_credentials(tokens["access_token"])
        connection.refresh_token = (
            self.encryption_manager.encrypt_credentials(refresh_token) if refresh_token else None
        )
        connection.token_valid_until = token_valid_until
        connection.is_active = True
        self.db.commit()

        logger.log_info("Upstox connection established", {
            "user_id": user_id,
            "connection_id": connection.connection_id,
            "token_valid_until": token_valid_until.isoformat(),
        })
        return {
            "message": "Upstox connection established successfully",
            "token_valid_until": token_valid_until,
            "has_extended_token": bool(tokens.get("extended_token")),
        }

    def get_status(self, user_id: str) -> dict:
        connection = self._find(user_id)
        if not connection:
            return {
                "isConnected": False,
                "hasCredentials": False,
                "message": "No Upstox connection found",
            }

        token_valid_until = as_utc(connection.token_valid_until)
        has_credentials = bool(connection.api_key and connection.api_secret)
        has_valid_token = bool(
            connection.access_token
            and token_valid_until
            and token_valid_until > utc_now()
        )
        return {
            "isConnected": has_valid_token,
            "hasCredentials": has_credentials,
            "isActive": connection.is_active,
            "tokenValidUntil": token_valid_until,
            "connectionId": connection.connection_id,
            "createdAt": as_utc(connection.created_at),
        }

    def disconnect(self, user_id: str) -> str:
        """Delete the user's Upstox connection; returns its id"""
        connection = self._require(user_id, "No Upstox connection found to disconnect")
        connection_id = connection.connection_id
        self.db.delete(connection)
        self.db.commit()
        logger.log_info("Upstox connection removed", {"user_id": user_id, "connection_id": connection_id})
        return connection_id


def get_broker_service(request: Request, db: Session = Depends(get_db)) -> BrokerConnectionService:
    state = request.app.state
    return BrokerConnectionService(db, state.settings, state.encryption_manager, state.upstox_client)
