"""API dependencies for authentication and database access."""

import logging
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from guest_portal.core.authorization import RequesterClaims
from guest_portal.core.provisioning import ProvisioningEngine
from guest_portal.core.security import verify_token
from guest_portal.db.database import Database

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    """Get the database handle from app state.

    Raises:
        HTTPException: If the application has not connected yet
    """
    database = getattr(request.app.state, "database", None)
    if database is None or not database.is_connected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection not available",
        )
    return database


def get_db(database: Database = Depends(get_database)) -> Generator[Session, None, None]:  # noqa: B008
    """Get a database session.

    Yields:
        Database session that is automatically closed after use
    """
    yield from database.get_db()


def get_provisioning_engine(request: Request) -> ProvisioningEngine:
    """Get the provisioning engine from app state."""
    engine = getattr(request.app.state, "provisioning", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Provisioning engine not available",
        )
    return engine


async def require_claims(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),  # noqa: B008
) -> RequesterClaims:
    """Require a valid bearer token and return the caller's claims.

    Args
    ----
        request: FastAPI request object
        credentials: Bearer token credentials

    Returns
    -------
        Claims decoded from the token

    Raises
    ------
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if not credentials:
        logger.info(
            f"Auth: No token provided from {request.client.host if request.client else 'unknown'}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = verify_token(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Auth: User {claims.user_id} ({claims.role}) authenticated.")
    return claims


# Type aliases for dependency injection
DbSession = Annotated[Session, Depends(get_db)]
Claims = Annotated[RequesterClaims, Depends(require_claims)]
Provisioning = Annotated[ProvisioningEngine, Depends(get_provisioning_engine)]
