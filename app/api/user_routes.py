from fastapi import APIRouter, Depends, HTTPException, Body, status
from typing import Any, Dict, List
import logging

from app.core.auth_dependencies import USERS_MANAGE, USERS_READ, require_capability
from app.core.dependencies import get_user_service
from app.core.exceptions import NotFoundError, StoreOperationFailed, ValidationError
from app.helpers.response_builder import (
    build_insert_response,
    build_update_response,
    convert_objectid,
    error_body,
    message_body,
)
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


# Saves a user on first sign-in or refreshes the last login time
@router.post("/user")
async def save_user(
    user_data: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
):
    try:
        outcome = await service.sign_in(user_data)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_body(e.message))
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))

    if outcome.upserted_id is not None:
        return build_insert_response(outcome.upserted_id)
    return build_update_response(outcome)


@router.get(
    "/users",
    response_model=List[Dict[str, Any]],
    dependencies=[Depends(require_capability(USERS_READ))],
)
async def get_all_users(service: UserService = Depends(get_user_service)):
    try:
        users = await service.get_users()
    except StoreOperationFailed as e:
        logger.error(f"Failed to fetch all users: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Server error fetching user list"),
        )
    return convert_objectid(users)


@router.get("/users/{email}", response_model=Dict[str, Any])
async def get_user(email: str, service: UserService = Depends(get_user_service)):
    try:
        user = await service.get_user_by_email(email)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))
    return convert_objectid(user)


@router.get("/user/role/{email}", response_model=Dict[str, Any])
async def get_user_role(email: str, service: UserService = Depends(get_user_service)):
    try:
        return await service.get_user_role(email)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error_body(e.message))


# Admin/manager action
@router.patch("/users/role/{email}", dependencies=[Depends(require_capability(USERS_MANAGE))])
async def update_user_role(
    email: str,
    payload: Dict[str, Any] = Body(...),
    service: UserService = Depends(get_user_service),
):
    role = payload.get("role")
    try:
        changed = await service.update_user_role(email, role)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        logger.error(f"Failed to update user role: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Server error during role update"),
        )

    if not changed:
        return message_body(f"User role for {email} is already set to {role}")
    return message_body(f"User role for {email} updated to {role} successfully")


@router.delete("/users/{email}", dependencies=[Depends(require_capability(USERS_MANAGE))])
async def delete_user(email: str, service: UserService = Depends(get_user_service)):
    try:
        await service.delete_user(email.strip())
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message_body(e.message))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message_body(e.message))
    except StoreOperationFailed as e:
        logger.error(f"Failed to delete user: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Server error during user deletion"),
        )
    return message_body("User deleted successfully from database")
