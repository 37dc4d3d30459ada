import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import DuplicateKey, NotFoundError, ValidationError
from app.database.connection import USERS, MongoGateway, UpdateOutcome
from app.schemas.user_schemas import UserRoleEnum, UserSignIn
from app.utils.loan_application_utils import utc_now_iso

logger = logging.getLogger(__name__)

# Managed by the service, never copied from a sign-in profile
_SERVER_FIELDS = {"_id", "email", "role", "created_at", "last_loggedIn"}


class UserService:
    def __init__(self, gateway: MongoGateway, default_role: str = UserRoleEnum.borrower.value):
        self.gateway = gateway
        self.default_role = default_role

    # Creates the user on first sign-in, otherwise only refreshes last_loggedIn
    async def sign_in(self, payload: Dict[str, Any]) -> UpdateOutcome:
        try:
            profile = UserSignIn.model_validate(payload)
        except PydanticValidationError as e:
            fields = {err["loc"][0] for err in e.errors() if err.get("loc")}
            if "email" in fields:
                raise ValidationError("Email is required") from e
            raise ValidationError(f"Invalid user profile: {', '.join(sorted(map(str, fields)))}") from e

        now = utc_now_iso()
        query = {"email": profile.email}
        on_insert = {k: v for k, v in profile.model_dump().items() if k not in _SERVER_FIELDS}
        on_insert["role"] = profile.role or self.default_role
        on_insert["created_at"] = now
        refresh = {"$set": {"last_loggedIn": now}}

        try:
            outcome = await self.gateway.update_one(
                USERS, query, {**refresh, "$setOnInsert": on_insert}, upsert=True
            )
        except DuplicateKey:
            # Lost the insert race to a concurrent sign-in for the same email
            logger.info(f"Concurrent sign-in for {profile.email}, refreshing login time")
            outcome = await self.gateway.update_one(USERS, query, refresh)

        if outcome.upserted_id is None:
            logger.info(f"User already exists: {profile.email}, updated last login")
        else:
            logger.info(f"New user saved: {profile.email} as {on_insert['role']}")
        return outcome

    async def get_users(self) -> List[Dict[str, Any]]:
        return await self.gateway.find_many(USERS, {})

    async def get_user_by_email(self, email: str) -> Dict[str, Any]:
        user = await self.gateway.find_one(USERS, {"email": email})
        if not user:
            raise NotFoundError("User not found")
        return user

    async def get_user_role(self, email: str) -> Dict[str, Any]:
        user = await self.gateway.find_one(USERS, {"email": email}, projection={"role": 1, "_id": 0})
        if not user:
            raise NotFoundError("User not found")
        return user

    # Returns True when the stored role changed, False when it already matched
    async def update_user_role(self, email: str, role: Any) -> bool:
        if not role or not isinstance(role, str):
            raise ValidationError("Role field is required and must be a string.")
        valid_roles = [r.value for r in UserRoleEnum]
        if role not in valid_roles:
            raise ValidationError(f"Invalid role specified. Must be one of: {', '.join(valid_roles)}")

        outcome = await self.gateway.update_one(USERS, {"email": email}, {"$set": {"role": role}})
        if outcome.matched_count == 0:
            raise NotFoundError(f"User with email {email} not found")

        if outcome.modified_count:
            logger.info(f"Role for {email} changed to {role}")
        return outcome.modified_count > 0

    async def delete_user(self, email: str) -> None:
        if not email:
            raise ValidationError("Email is required")
        deleted = await self.gateway.delete_one(USERS, {"email": email})
        if deleted != 1:
            raise NotFoundError("User not found in database")
        logger.info(f"User deleted: {email}")
