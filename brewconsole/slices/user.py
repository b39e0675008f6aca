"""Users slice."""

from brewconsole.slices.base import Operation, ResourceSlice


class UserSlice(ResourceSlice):
    name = "user"
    endpoints = {
        "getUsers": (Operation.LIST, "Failed to fetch users"),
        "getUserById": (Operation.ITEM, "Failed to fetch user"),
        "updateUserProfile": (Operation.UPDATE, "Failed to update user"),
        "deleteUser": (Operation.DELETE, "Failed to delete user"),
    }
