"""
User Management API Routes - administrator-only account management.

Lists accounts, changes roles and deletes users. Deleting a user also removes
the tasks they are assignee or creator of.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.db_handlers import UserDBHandler
from app.dependencies.auth import require_roles
from app.dependencies.tasks import parse_object_id
from app.models import User
from app.models.enums import UserRole
from app.schemas import ApiResponse, RoleUpdate, UserInfo
from app.services import user_service
from app.utils.logger import setup_logger

logger = setup_logger("api.users")

router = APIRouter(prefix="/api/auth/users", tags=["User Management"])

require_admin = require_roles(UserRole.ADMIN)


async def _get_target_user(
    user_id: str, db: AsyncSession, user_db_handler: UserDBHandler
) -> User:
    user = await user_db_handler.get(parse_object_id(user_id), db=db)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("", response_model=ApiResponse[list[UserInfo]])
async def get_all_users(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Retrieve every account with its devices and assigned task ids."""
    users = await user_db_handler.list_users(db=db)
    infos = await user_service.users_to_info(users, db)
    return ApiResponse(data=infos, count=len(infos))


@router.delete("/{user_id}", response_model=ApiResponse[dict])
async def delete_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Delete another account. Administrators cannot delete themselves."""
    target_id = parse_object_id(user_id)
    if target_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )

    user = await _get_target_user(user_id, db, user_db_handler)
    try:
        await user_service.delete_user(user, db)
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail=f"Failed to delete user: {str(e)}"
        ) from e

    logger.info(f"Admin {current_user.id} deleted user {user_id}")
    return ApiResponse(data={}, message="User deleted successfully")


@router.put("/{user_id}/role", response_model=ApiResponse[UserInfo])
async def update_user_role(
    user_id: str,
    role_data: RoleUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Change the role of an account."""
    user = await _get_target_user(user_id, db, user_db_handler)
    user = await user_db_handler.update(user, {"role": role_data.role.value}, db=db)
    logger.info(f"Admin {current_user.id} set role of user {user.id} to {user.role}")
    return ApiResponse(
        data=await user_service.user_to_info(user, db), message="User role updated"
    )
