# Authentication API routes for registration, login, profile and device management

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.db_handlers.user import UserDBHandler
from app.dependencies.auth import get_current_user
from app.models import User
from app.schemas import (
    ApiResponse,
    AuthResult,
    DeviceInfo,
    ProfileUpdate,
    UserInfo,
    UserLogin,
    UserRegister,
)
from app.services.user_service import user_to_info
from app.utils.auth import create_user_token, get_password_hash, verify_password
from app.utils.logger import setup_logger

logger = setup_logger("api.auth")

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def _client_device(request: Request) -> tuple[str, str]:
    device_name = request.headers.get("user-agent") or "Unknown device"
    ip_address = request.client.host if request.client else "unknown"
    return device_name[:255], ip_address


@router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    user_data: UserRegister,
    request: Request,
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Register a new account and log it in straight away."""
    existing_user = await user_db_handler.get_user_by_email(user_data.email, db=db)
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )

    user = await user_db_handler.create(
        {
            "name": user_data.name,
            "email": user_data.email,
            "hashed_password": get_password_hash(user_data.password),
            "role": user_data.role.value,
        },
        db=db,
    )
    device_name, ip_address = _client_device(request)
    user = await user_db_handler.record_login(user, device_name, ip_address, db=db)
    logger.info(f"Registered user {user.id} with role {user.role}")

    return ApiResponse(
        data=AuthResult(
            token=create_user_token(user.id), user=await user_to_info(user, db)
        )
    )


@router.post("/login", response_model=ApiResponse[AuthResult])
async def login_user(
    user_data: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Authenticate user and return a JWT token for API access."""
    user = await user_db_handler.get_user_by_email(user_data.email, db=db)

    if not user or not verify_password(user_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    device_name, ip_address = _client_device(request)
    user = await user_db_handler.record_login(user, device_name, ip_address, db=db)
    logger.info(f"User {user.id} logged in from {ip_address}")

    return ApiResponse(
        data=AuthResult(
            token=create_user_token(user.id), user=await user_to_info(user, db)
        )
    )


@router.get("/profile", response_model=ApiResponse[UserInfo])
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
):
    """Retrieve the current user's profile, devices and assigned task ids."""
    return ApiResponse(data=await user_to_info(current_user, db))


@router.put("/profile", response_model=ApiResponse[UserInfo])
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    user_db_handler: UserDBHandler = Depends(),
):
    """Update name, email or password of the current user. The role is not editable here."""
    changes = profile_data.model_dump(exclude_unset=True, exclude_none=True)

    if "email" in changes:
        other = await user_db_handler.get_user_by_email(changes["email"], db=db)
        if other and other.id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already in use",
            )
    if "password" in changes:
        changes["hashed_password"] = get_password_hash(changes.pop("password"))

    user = await user_db_handler.update(current_user, changes, db=db)
    logger.info(f"User {user.id} updated profile fields {sorted(changes)}")
    return ApiResponse(
        data=await user_to_info(user, db), message="Profile updated successfully"
    )


@router.get("/devices", response_model=ApiResponse[list[DeviceInfo]])
@router.get("/users/devices", response_model=ApiResponse[list[DeviceInfo]])
async def get_devices(current_user: User = Depends(get_current_user)):
    """List the devices the current user has logged in from, most recent first."""
    devices = [DeviceInfo.model_validate(device) for device in current_user.devices]
    return ApiResponse(data=devices, count=len(devices))
