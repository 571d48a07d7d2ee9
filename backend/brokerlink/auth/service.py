from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from brokerlink.core.config import Settings
from brokerlink.core.database import get_db
from brokerlink.core.exceptions import Conflict, InvalidCredentials, Unauthorized
from brokerlink.core.logger import logger
from brokerlink.core.security import EncryptionManager
from brokerlink.models.auth import PlatformUser

# auto_error=False so a missing header is reported as 401 by introspect()
security = HTTPBearer(auto_error=False)


class AuthService:
    """Signup, login and JWT session management"""

    def __init__(self, db: Session, settings: Settings, encryption_manager: EncryptionManager):
        self.db = db
        self.settings = settings
        self.encryption_manager = encryption_manager

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token"""
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        if expires_delta is None:
            expires_delta = timedelta(days=self.settings.ACCESS_TOKEN_EXPIRE_DAYS)
        to_encode.update({"iat": now, "exp": now + expires_delta})
        return jwt.encode(to_encode, self.settings.SECRET_KEY, algorithm=self.settings.ALGORITHM)

    def issue_session_token(self, user: PlatformUser) -> str:
        return self.create_access_token({
            "sub": user.user_id,
            "userId": user.user_id,
            "email": user.email,
        })

    def signup(self, email: str, password: str) -> PlatformUser:
        """Register new user"""
        email = email.lower()
        existing_user = self.db.query(PlatformUser).filter(PlatformUser.email == email).first()
        if existing_user:
            raise Conflict()

        user = PlatformUser(
            email=email,
            password_hash=self.encryption_manager.hash_password(password),
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # A concurrent signup won the unique email index
            self.db.rollback()
            raise Conflict()
        self.db.refresh(user)
        logger.log_info("User signed up", {"user_id": user.user_id})
        return user

    def login(self, email: str, password: str) -> str:
        """Authenticate user and return a session token"""
        user = self.db.query(PlatformUser).filter(PlatformUser.email == email.lower()).first()

        # Same error for unknown email and wrong password
        if not user or not self.encryption_manager.verify_password(password, user.password_hash):
            raise InvalidCredentials()

        return self.issue_session_token(user)

    def introspect(self, token: Optional[str]) -> dict:
        """Verify a bearer token and return its claims without touching the store"""
        if not token:
            raise Unauthorized()
        try:
            payload = jwt.decode(token, self.settings.SECRET_KEY, algorithms=[self.settings.ALGORITHM])
        except JWTError:
            raise Unauthorized()

        user_id = payload.get("userId")
        email = payload.get("email")
        if not user_id or not email:
            raise Unauthorized()
        return {"userId": user_id, "email": email}


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    state = request.app.state
    return AuthService(db, state.settings, state.encryption_manager)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Claims of the authenticated caller"""
    token = credentials.credentials if credentials else None
    return auth_service.introspect(token)
