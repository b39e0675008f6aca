"""
Data models and type definitions for BrewConsole.

Resource records mirror what the backend returns. They keep unknown fields so
the client never drops data it does not understand, and they are only ever
replaced by fresh server responses. Request payloads (``*Create`` /
``*Update``) serialize to the backend's camelCase and omit unset fields.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = structlog.get_logger(__name__)


class UserRole(str, Enum):
    """Roles known to the management platform."""

    SUPER_ADMIN = "SUPER_ADMIN"
    COFFEE_SHOP_OWNER = "COFFEE_SHOP_OWNER"
    COFFEE_SHOP_MANAGER = "COFFEE_SHOP_MANAGER"
    COFFEE_SHOP_STAFF = "COFFEE_SHOP_STAFF"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


# Base Models


class ApiModel(BaseModel):
    """Base class for everything exchanged with the backend."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for a request body."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude_unset=True, mode="json")


class Resource(ApiModel):
    """Server-owned record; unknown fields are preserved."""

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


# Auth and Users


class UserProfile(ApiModel):
    """Personal details attached to a user."""

    first_name: str = ""
    last_name: str = ""
    phone_number: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Person(Resource):
    """
    Common shape of users and location staff.

    The backend sends ``UserProfile`` as an array that should hold exactly one
    record. It is exposed here as a single optional ``profile``; an empty
    array becomes ``None`` instead of an index error.
    """

    email: str
    role: UserRole
    profile: Optional[UserProfile] = Field(default=None, alias="UserProfile")

    @field_validator("profile", mode="before")
    @classmethod
    def single_profile(cls, v):
        if isinstance(v, list):
            if not v:
                logger.warning("User payload without profile record")
                return None
            if len(v) > 1:
                logger.warning("User payload with several profile records", count=len(v))
            return v[0]
        return v

    @property
    def display_name(self) -> str:
        if self.profile and self.profile.full_name:
            return self.profile.full_name
        return self.email


class User(Person):
    """Platform user."""


class UserWithRelations(User):
    """User detail view including brand and location links."""

    brands: List[Dict[str, Any]] = Field(default_factory=list, alias="Brand")
    locations: List[Dict[str, Any]] = Field(default_factory=list, alias="Location")
    location_staff: List[Dict[str, Any]] = Field(default_factory=list, alias="LocationStaff")


class AuthTokens(ApiModel):
    """Token pair returned by sign-in and refresh."""

    access_token: str
    refresh_token: str


class SignInCredentials(ApiModel):
    email: str
    password: str


class CreateUserRequest(ApiModel):
    email: str
    password: str
    first_name: str
    last_name: str
    role: UserRole


class InviteUserRequest(ApiModel):
    email: str


class InviteUserResponse(ApiModel):
    message: str = ""
    email: str
    role: Optional[UserRole] = None
    temporary_password: Optional[str] = None


class UpdateUserProfileRequest(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None


class AssignUserToBrandRequest(ApiModel):
    user_id: int
    brand_id: int


class AssignUserToLocationRequest(ApiModel):
    user_id: int
    location_id: int
    is_manager: bool = False


# Brands


class Brand(Resource):
    name: str
    owner_id: Optional[int] = None
    owner: Optional[User] = None
    locations: List[Dict[str, Any]] = Field(default_factory=list, alias="Location")


class BrandCreate(ApiModel):
    name: str
    owner_id: Optional[int] = None


class BrandUpdate(ApiModel):
    name: Optional[str] = None


# Locations


class LocationStaff(Person):
    """User assigned to a location."""


class Location(Resource):
    latitude: float
    longitude: float
    place_id: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    geohash: Optional[str] = None
    timezone: Optional[str] = None
    accuracy: Optional[float] = None
    manager_id: Optional[int] = None
    manager: Optional[User] = None
    brand_id: Optional[int] = Field(default=None, alias="BrandId")
    staff: List[LocationStaff] = Field(default_factory=list, alias="LocationStaff")


class LocationCreate(ApiModel):
    latitude: float
    longitude: float
    brand_id: int = Field(alias="BrandId")
    place_id: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    geohash: Optional[str] = None
    timezone: Optional[str] = None
    accuracy: Optional[float] = None
    manager_id: Optional[int] = None


class LocationUpdate(ApiModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    place_id: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    geohash: Optional[str] = None
    timezone: Optional[str] = None
    accuracy: Optional[float] = None
    manager_id: Optional[int] = None


# Menu templates and items


class MenuTemplate(Resource):
    name: str
    brand_id: int


class MenuTemplateCreate(ApiModel):
    name: str
    brand_id: int


class MenuTemplateUpdate(ApiModel):
    name: Optional[str] = None


class TemplateItemVariant(Resource):
    label: str
    price: float
    template_item_id: Optional[int] = None


class TemplateItemVariantInput(ApiModel):
    """Variant in a create or update payload; ``id`` targets an existing variant."""

    id: Optional[int] = None
    label: Optional[str] = None
    price: Optional[float] = None


class TemplateItem(Resource):
    name: str
    description: str = ""
    category: str
    price: Optional[float] = None
    image_url: Optional[str] = None
    available: bool = True
    menu_order: int = 0
    template_id: int
    variants: List[TemplateItemVariant] = Field(default_factory=list)


class TemplateItemCreate(ApiModel):
    name: str
    description: str = ""
    category: str
    template_id: int
    price: Optional[float] = None
    image_url: Optional[str] = None
    available: Optional[bool] = None
    menu_order: Optional[int] = None
    variants: Optional[List[TemplateItemVariantInput]] = None


class TemplateItemUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    available: Optional[bool] = None
    menu_order: Optional[int] = None
    variants: Optional[List[TemplateItemVariantInput]] = None


# Menus and overrides


class MenuItemOverrideVariant(Resource):
    original_variant_id: int
    label: Optional[str] = None
    price: Optional[float] = None
    available: bool = True
    override_id: Optional[int] = None


class MenuItemOverrideVariantInput(ApiModel):
    original_variant_id: Optional[int] = None
    label: Optional[str] = None
    price: Optional[float] = None
    available: Optional[bool] = None


class MenuItemOverride(Resource):
    template_item_id: int
    menu_id: int
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    available: bool = True
    menu_order: Optional[int] = None
    template_item: Optional[TemplateItem] = None
    variant_overrides: List[MenuItemOverrideVariant] = Field(default_factory=list)


class MenuItemOverrideCreate(ApiModel):
    template_item_id: int
    menu_id: int
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    available: Optional[bool] = None
    menu_order: Optional[int] = None
    variant_overrides: Optional[List[MenuItemOverrideVariantInput]] = None


class MenuItemOverrideUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    available: Optional[bool] = None
    menu_order: Optional[int] = None
    variant_overrides: Optional[List[MenuItemOverrideVariantInput]] = None


class Menu(Resource):
    location_id: int
    template_id: int
    template: Optional[MenuTemplate] = None
    menu_item_overrides: List[MenuItemOverride] = Field(default_factory=list)


class MenuCreate(ApiModel):
    location_id: int
    template_id: int


class MenuUpdate(ApiModel):
    template_id: Optional[int] = None
