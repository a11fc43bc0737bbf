"""Authentication routes.

This module handles HTTP endpoints for user authentication and registration,
and provides the token and role dependencies used by the other routers.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

import pytz
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import EmailStr

from quiz_arena import config
from quiz_arena.core.dependencies import UserManagerDep, VerificationManagerDep
from quiz_arena.core.exceptions import MailDeliveryError, VerificationError
from quiz_arena.schemas.user import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    Role,
    UpdateProfileRequest,
    User,
    VerifyAndRegisterRequest,
)
from quiz_arena.utils.user_manager import UserAlreadyExistsError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

# HTTP Bearer token security; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


def _credentials_error(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        user: The user the token is issued to.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    expire = datetime.now(pytz.utc) + (
        expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "sub": user.user_id,
        "role": user.role.value,
        "type": ACCESS_TOKEN_TYPE,
        "exp": expire,
    }
    return jwt.encode(to_encode, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def create_refresh_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived JWT refresh token, signed with its own secret."""
    expire = datetime.now(pytz.utc) + (
        expires_delta or timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS)
    )
    to_encode = {"sub": user.user_id, "type": REFRESH_TOKEN_TYPE, "exp": expire}
    return jwt.encode(
        to_encode, config.JWT_REFRESH_SECRET_KEY, algorithm=config.JWT_ALGORITHM
    )


def decode_token(token: str, secret: str, expected_type: str) -> dict:
    """Decode a JWT and check its type claim.

    Raises:
        HTTPException: 401 if the token is invalid, expired or of the wrong type.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise _credentials_error("Token expired")
    except JWTError:
        raise _credentials_error()
    if payload.get("type") != expected_type:
        raise _credentials_error("Invalid token type")
    if payload.get("sub") is None:
        raise _credentials_error()
    return payload


def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Verify the access token from the Authorization header.

    Args:
        credentials: HTTP Bearer token credentials.

    Returns:
        Decoded token payload.

    Raises:
        HTTPException: If the token is missing, invalid or expired.
    """
    if credentials is None:
        raise _credentials_error("Not authenticated")
    return decode_token(
        credentials.credentials, config.JWT_SECRET_KEY, ACCESS_TOKEN_TYPE
    )


def get_current_user(
    user_manager: UserManagerDep,
    token_payload: dict = Depends(verify_token),
) -> User:
    """Get current authenticated user.

    The user is re-read from storage on every request, so role changes made
    by an admin apply immediately rather than when the token expires.

    Args:
        user_manager: Injected UserManager instance.
        token_payload: Decoded JWT token payload.

    Returns:
        Current User object.

    Raises:
        HTTPException: If user is not found.
    """
    user = user_manager.get_user_by_id(token_payload["sub"])
    if user is None:
        raise _credentials_error("User not found")
    return user


def require_roles(*roles: Role) -> Callable[..., User]:
    """Build a dependency that only lets users with one of `roles` through."""

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied for role '%s'" % current_user.role.value,
            )
        return current_user

    return dependency


require_admin = require_roles(Role.ADMIN)
require_teacher = require_roles(Role.TEACHER, Role.ADMIN)
require_student = require_roles(Role.STUDENT)


def _check_registration_role(req: RegisterRequest) -> None:
    """Admin accounts can only be registered with the configured ADMIN_TOKEN."""
    if req.role != Role.ADMIN:
        return
    if not config.ADMIN_TOKEN:
        logger.error("Admin registration attempted but ADMIN_TOKEN is not set")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin registration is not configured. ADMIN_TOKEN not set.",
        )
    if req.admin_token is None or not secrets.compare_digest(
        req.admin_token.encode(), config.ADMIN_TOKEN.encode()
    ):
        logger.warning("Admin registration rejected for %s: token mismatch", req.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin token",
        )


def _email_taken(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register a user")
def register(req: RegisterRequest, user_manager: UserManagerDep) -> dict:
    """Register a new user.

    Registration requirements:
    - Admin: Requires ADMIN_TOKEN from environment variable
    - Teacher/Student: Open

    Args:
        req: Registration request with name, email, password, role.
        user_manager: Injected UserManager instance.

    Returns:
        Dictionary with success message and user_id.

    Raises:
        HTTPException: If registration fails.
    """
    _check_registration_role(req)
    try:
        user = user_manager.create_user(
            name=req.name,
            email=req.email,
            role=req.role,
            password=req.password,
        )
    except UserAlreadyExistsError as e:
        raise _email_taken(e)

    return {
        "success": True,
        "message": "User registered successfully",
        "user_id": user.user_id,
    }


@router.post(
    "/send-verification-code",
    response_model=MessageResponse,
    summary="Start an email-verified registration",
)
def send_verification_code(
    req: RegisterRequest, verification_manager: VerificationManagerDep
) -> MessageResponse:
    """Park the registration and email a 6-digit verification code."""
    _check_registration_role(req)
    try:
        verification_manager.request_code(req.name, req.email, req.password, req.role)
    except UserAlreadyExistsError as e:
        raise _email_taken(e)
    except MailDeliveryError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return MessageResponse(message="Verification code sent")


@router.get(
    "/send-verification-code",
    response_model=MessageResponse,
    summary="Resend a verification code",
)
def resend_verification_code(
    verification_manager: VerificationManagerDep,
    email: EmailStr = Query(...),
) -> MessageResponse:
    try:
        verification_manager.resend_code(email)
    except VerificationError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except MailDeliveryError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return MessageResponse(message="Verification code sent")


@router.post(
    "/verify-and-register",
    status_code=status.HTTP_201_CREATED,
    summary="Complete an email-verified registration",
)
def verify_and_register(
    req: VerifyAndRegisterRequest, verification_manager: VerificationManagerDep
) -> dict:
    try:
        user = verification_manager.verify_and_register(req.email, req.code)
    except VerificationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserAlreadyExistsError as e:
        raise _email_taken(e)
    return {
        "success": True,
        "message": "User registered successfully",
        "user_id": user.user_id,
    }


@router.post("/login", response_model=LoginResponse, summary="Log in")
def login(req: LoginRequest, user_manager: UserManagerDep) -> LoginResponse:
    """Login with email and password.

    Args:
        req: Login request with email and password.
        user_manager: Injected UserManager instance.

    Returns:
        LoginResponse with user information, access and refresh tokens.

    Raises:
        HTTPException: If login fails.
    """
    user = user_manager.authenticate(req.email, req.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    logger.info("User logged in: %s", user.user_id)
    return LoginResponse(
        token=create_access_token(user),
        refresh_token=create_refresh_token(user),
        role=user.role,
        user=user.to_public(),
    )


@router.post("/refresh", response_model=RefreshResponse, summary="Refresh the access token")
def refresh(req: RefreshRequest, user_manager: UserManagerDep) -> RefreshResponse:
    payload = decode_token(
        req.refresh_token, config.JWT_REFRESH_SECRET_KEY, REFRESH_TOKEN_TYPE
    )
    user = user_manager.get_user_by_id(payload["sub"])
    if user is None:
        raise _credentials_error("User not found")
    return RefreshResponse(token=create_access_token(user))


@router.post("/logout", summary="Log out")
def logout() -> dict:
    """Acknowledge a logout.

    Tokens are not tracked on the server; the client drops both tokens.
    """
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse, summary="Get the current user")
def get_current_user_info(
    current_user: User = Depends(get_current_user),
) -> CurrentUserResponse:
    return CurrentUserResponse(user=current_user.to_public())


@router.put("/me", response_model=CurrentUserResponse, summary="Update the current user")
def update_current_user(
    req: UpdateProfileRequest,
    user_manager: UserManagerDep,
    current_user: User = Depends(get_current_user),
) -> CurrentUserResponse:
    """Update the caller's name, email or password. The role cannot be changed here."""
    try:
        user = user_manager.update_user(
            current_user.user_id,
            name=req.name,
            email=req.email,
            password=req.password,
        )
    except UserAlreadyExistsError as e:
        raise _email_taken(e)
    return CurrentUserResponse(user=user.to_public())
