"""
Authentication dependencies for FastAPI route protection.
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.db_handlers.user import UserDBHandler
from app.models import User
from app.utils.auth import extract_user_id_from_token
from app.utils.logger import setup_logger

logger = setup_logger("dependencies.auth")

# Missing headers are reported by get_current_user with the shared 401 message
security = HTTPBearer(auto_error=False)

NOT_AUTHENTICATED_DETAIL = "Not authorized to access this route"


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=NOT_AUTHENTICATED_DETAIL,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_app_db),
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.

    A missing header, a bad signature, an expired token and a deleted user
    all produce the same 401 response.
    """
    if credentials is None:
        logger.debug("No bearer token provided")
        raise _credentials_exception()

    user_id = extract_user_id_from_token(credentials.credentials)
    if user_id is None:
        logger.debug("Bearer token failed verification")
        raise _credentials_exception()

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise _credentials_exception() from None

    user = await UserDBHandler().get(user_uuid, db=db)
    if user is None:
        logger.debug(f"User {user_id} from token no longer exists")
        raise _credentials_exception()

    return user


def require_roles(*roles: str):
    """
    Dependency factory restricting a route to the given roles.

    Rejects with 403 naming the caller's role and the accepted set.
    """
    allowed = [getattr(role, "value", role) for role in roles]

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.info(
                f"Role check failed for user {current_user.id}: "
                f"role={current_user.role}, required={allowed}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=(
                    f"User role {current_user.role} is not authorized to access "
                    f"this route (requires: {', '.join(allowed)})"
                ),
            )
        return current_user

    return role_checker
