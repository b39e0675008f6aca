"""User administration endpoints."""

from typing import Any, List, Optional

from brewconsole.cache.tags import LIST, Tag, invalidates_item, invalidates_list, provides_item, provides_list
from brewconsole.core.models import (
    AssignUserToBrandRequest,
    AssignUserToLocationRequest,
    UpdateUserProfileRequest,
    User,
    UserRole,
    UserWithRelations,
)
from brewconsole.data.base_api import ResourceApi

USER = "User"
USERS = "Users"


def _assignment_tags(result, error, request):
    return [Tag(USER, request.user_id), Tag(USERS, LIST)]


class UsersApi(ResourceApi):
    """Listing, editing and assigning platform users."""

    async def get_users(self, role_filter: Optional[UserRole] = None, *, force: bool = False) -> List[User]:
        role = UserRole(role_filter).value if role_filter else None
        return await self._query(
            "getUsers", {"role_filter": role}, "/users", User, many=True,
            provides=provides_list(USER, USERS),
            params={"role": role} if role else None,
            force=force,
        )

    async def get_user_by_id(self, user_id: int, *, force: bool = False) -> UserWithRelations:
        return await self._query(
            "getUserById", user_id, f"/users/{user_id}", UserWithRelations,
            provides=provides_item(USER), force=force,
        )

    async def update_user_profile(self, user_id: int, data: UpdateUserProfileRequest) -> User:
        return await self._mutate(
            "updateUserProfile", user_id, "PATCH", f"/users/{user_id}", User,
            json_data=data.to_payload(), invalidates=invalidates_item(USER, USERS),
        )

    async def delete_user(self, user_id: int) -> None:
        await self._mutate(
            "deleteUser", user_id, "DELETE", f"/users/{user_id}",
            invalidates=invalidates_list(USERS),
        )

    async def assign_user_to_brand(self, data: AssignUserToBrandRequest) -> Any:
        return await self._mutate(
            "assignUserToBrand", data, "POST", "/users/assign-to-brand",
            json_data=data.to_payload(), invalidates=_assignment_tags,
        )

    async def assign_user_to_location(self, data: AssignUserToLocationRequest) -> Any:
        return await self._mutate(
            "assignUserToLocation", data, "POST", "/users/assign-to-location",
            json_data=data.to_payload(), invalidates=_assignment_tags,
        )
