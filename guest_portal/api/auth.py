"""Management user registration, login and identity endpoints."""

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from guest_portal.api.deps import Claims, DbSession
from guest_portal.config import get_settings
from guest_portal.core.authorization import RequesterClaims
from guest_portal.core.security import create_access_token, hash_password, verify_password
from guest_portal.db.identity_store import IdentityStore
from guest_portal.db.models import ManagementUser
from guest_portal.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    Token,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, db: DbSession) -> RegisterResponse:
    """Register a management user.

    Meant for initial setup. ``REGISTRATION_ENABLED=false`` switches the
    endpoint off; ``REGISTRATION_BOOTSTRAP_ONLY=true`` keeps it open only
    until the first user exists.

    Raises:
        HTTPException: 403 if registration is closed, 409 if the username exists
    """
    settings = get_settings()
    store = IdentityStore(db)

    if not settings.registration_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration is disabled.",
        )
    if settings.registration_bootstrap_only and store.count_users() > 0:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration is closed after initial setup.",
        )

    if store.get_user_by_username(request.username):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists",
        )

    user = ManagementUser(
        username=request.username,
        password_hash=hash_password(request.password),
        role=request.role,
        departments=list(request.departments),
    )
    try:
        store.add_user(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already exists",
        ) from None
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Registration error: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error during registration",
        ) from e

    logger.info(f"User registered: {user.username} (Role: {user.role})")
    return RegisterResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest, db: DbSession) -> Token:
    """Verify a management user's password and issue a bearer token.

    Raises:
        HTTPException: 401 if credentials are invalid
    """
    user = IdentityStore(db).get_user_by_username(credentials.username)

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning(f"Login attempt failed for user: {credentials.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = RequesterClaims(
        user_id=user.id,
        username=user.username,
        role=user.role,
        departments=tuple(user.departments or []),
    )
    token = create_access_token(claims)

    logger.info(f"User logged in: {user.username}")
    return Token(token=token)


@router.get("/me", response_model=UserResponse)
async def me(claims: Claims) -> UserResponse:
    """Echo the caller's token claims."""
    return UserResponse(
        id=claims.user_id,
        username=claims.username,
        role=claims.role,
        departments=list(claims.departments),
    )
