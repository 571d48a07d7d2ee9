import logging
from fastapi import APIRouter, Depends, status

from brokerlink.auth.service import AuthService, get_auth_service, get_current_user
from brokerlink.core.exceptions import InternalError, ServiceError
from brokerlink.models.schemas import LoginRequest, SignupRequest, TokenResponse, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Register new user"""
    logger = logging.getLogger("auth.signup")
    logger.info(f"[API POST /auth/signup] Accessed for email={payload.email}")
    try:
        user = auth_service.signup(payload.email, payload.password)
    except ServiceError as e:
        logger.warning(f"[API POST /auth/signup] Rejected: {e.message}")
        raise
    except Exception:
        logger.exception("[API POST /auth/signup] Unexpected error")
        raise InternalError("Failed to create user")
    logger.info(f"[API POST /auth/signup] Success: user_id={user.user_id}")
    return UserResponse(user_id=user.user_id, email=user.email)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Login user and get a session token"""
    logger = logging.getLogger("auth.login")
    logger.info(f"Login attempt: email={payload.email}")
    try:
        token = auth_service.login(payload.email, payload.password)
    except ServiceError:
        logger.warning(f"Login failed: email={payload.email}")
        raise
    except Exception:
        logger.exception(f"Login error: email={payload.email}")
        raise InternalError("Failed to log in")
    logger.info(f"Login successful: email={payload.email}")
    return TokenResponse(token=token)


@router.get("/me", response_model=UserResponse)
def me(claims: dict = Depends(get_current_user)):
    """Get the claims of the current session"""
    return UserResponse(user_id=claims["userId"], email=claims["email"])
