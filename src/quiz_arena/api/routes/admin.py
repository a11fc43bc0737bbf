"""Administration routes.

User management and role changes. Every route requires an admin.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from quiz_arena.api.routes.auth import require_admin
from quiz_arena.core.dependencies import UserManagerDep
from quiz_arena.core.exceptions import RoleChangeError, UserNotFoundError
from quiz_arena.schemas.user import (
    AdminUpdateUserRequest,
    MessageResponse,
    Role,
    User,
    UserInfo,
)
from quiz_arena.utils.user_manager import UserAlreadyExistsError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)


def _user_not_found(user_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"User with id '{user_id}' not found.",
    )


@router.get("/users", response_model=List[UserInfo], summary="List users")
def list_users(
    user_manager: UserManagerDep,
    role: Optional[Role] = None,
) -> List[UserInfo]:
    return [user.to_public() for user in user_manager.list_users(role=role)]


@router.get("/users/{user_id}", response_model=UserInfo, summary="Get a user")
def get_user(user_id: str, user_manager: UserManagerDep) -> UserInfo:
    user = user_manager.get_user_by_id(user_id)
    if user is None:
        raise _user_not_found(user_id)
    return user.to_public()


@router.put("/users/{user_id}", response_model=UserInfo, summary="Update a user")
def update_user(
    user_id: str,
    req: AdminUpdateUserRequest,
    user_manager: UserManagerDep,
) -> UserInfo:
    try:
        user = user_manager.update_user(user_id, name=req.name, email=req.email)
    except UserNotFoundError:
        raise _user_not_found(user_id)
    except UserAlreadyExistsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return user.to_public()


@router.delete("/users/{user_id}", response_model=MessageResponse, summary="Delete a user")
def delete_user(
    user_id: str,
    user_manager: UserManagerDep,
    current_admin: User = Depends(require_admin),
) -> MessageResponse:
    """Delete a user account.

    Args:
        user_id: The user to delete.
        user_manager: Injected UserManager instance.
        current_admin: The admin performing the deletion.

    Returns:
        MessageResponse confirming the deletion.

    Raises:
        HTTPException: 404 if the user does not exist, 400 if the user is
            the last remaining admin.
    """
    try:
        user_manager.delete_user(user_id)
    except UserNotFoundError:
        raise _user_not_found(user_id)
    except RoleChangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info("Admin %s deleted user %s", current_admin.user_id, user_id)
    return MessageResponse(message="User deleted successfully")


@router.put("/promote/{user_id}", response_model=UserInfo, summary="Promote a user")
def promote_user(user_id: str, user_manager: UserManagerDep) -> UserInfo:
    """Promote one step: student -> teacher -> admin."""
    try:
        user = user_manager.promote_user(user_id)
    except UserNotFoundError:
        raise _user_not_found(user_id)
    except RoleChangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return user.to_public()


@router.put("/demote/{user_id}", response_model=UserInfo, summary="Demote a user")
def demote_user(user_id: str, user_manager: UserManagerDep) -> UserInfo:
    """Demote one step: admin -> teacher -> student. The last admin is kept."""
    try:
        user = user_manager.demote_user(user_id)
    except UserNotFoundError:
        raise _user_not_found(user_id)
    except RoleChangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return user.to_public()
