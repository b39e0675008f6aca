"""
Local form validation.

Each form checks its input before any request is issued and converts to the
request payload the API clients expect. Failures raise FormValidationError
with one message per field, in the order the console shows them.
"""

import re
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from brewconsole.core.exceptions import FormValidationError
from brewconsole.core.models import (
    AssignUserToBrandRequest,
    AssignUserToLocationRequest,
    BrandCreate,
    BrandUpdate,
    LocationCreate,
    LocationUpdate,
    MenuCreate,
    MenuTemplateCreate,
    MenuTemplateUpdate,
    MenuUpdate,
    SignInCredentials,
    TemplateItemCreate,
    TemplateItemUpdate,
    TemplateItemVariantInput,
    UserRole,
)

EMAIL_PATTERN = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)
MIN_PASSWORD_LENGTH = 6

FormT = TypeVar("FormT", bound="Form")


def _blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _context(info: ValidationInfo) -> Dict[str, Any]:
    return info.context or {}


def _field_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "form"
        ctx = err.get("ctx") or {}
        message = str(ctx["error"]) if "error" in ctx else err["msg"]
        errors.setdefault(field, message)
    return errors


class Form(BaseModel):
    """Base for console forms; every field is validated, including defaults."""

    model_config = ConfigDict(validate_default=True)

    @classmethod
    def check(cls: Type[FormT], creating: bool = True, role: Optional[UserRole] = None, **values: Any) -> FormT:
        """Validate ``values`` or raise FormValidationError."""
        try:
            return cls.model_validate(values, context={"creating": creating, "role": role})
        except ValidationError as exc:
            raise FormValidationError(_field_errors(exc), details={"form": cls.__name__})


class SignInForm(Form):
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if _blank(v):
            raise ValueError("Email is required")
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not v:
            raise ValueError("Password is required")
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v

    def to_credentials(self) -> SignInCredentials:
        return SignInCredentials(email=self.email, password=self.password)


class BrandForm(Form):
    name: Optional[str] = None
    owner_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if _blank(v):
            raise ValueError("Brand name is required")
        return v.strip()

    @field_validator("owner_id")
    @classmethod
    def validate_owner(cls, v, info: ValidationInfo):
        """Super-admins create brands on behalf of an owner."""
        ctx = _context(info)
        if ctx.get("creating") and ctx.get("role") == UserRole.SUPER_ADMIN and v is None:
            raise ValueError("Owner is required")
        return v

    def to_create(self) -> BrandCreate:
        if self.owner_id is not None:
            return BrandCreate(name=self.name, owner_id=self.owner_id)
        return BrandCreate(name=self.name)

    def to_update(self) -> BrandUpdate:
        return BrandUpdate(name=self.name)


class LocationForm(Form):
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    brand_id: Optional[int] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    manager_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if _blank(v):
            raise ValueError("Location name is required")
        return v.strip()

    @field_validator("longitude")
    @classmethod
    def validate_coordinates(cls, v, info: ValidationInfo):
        if v is None or info.data.get("latitude") is None:
            raise ValueError("Latitude and longitude are required")
        return v

    @field_validator("brand_id")
    @classmethod
    def validate_brand(cls, v, info: ValidationInfo):
        if v is None and _context(info).get("creating"):
            raise ValueError("Brand is required")
        return v

    def _optional_fields(self) -> Dict[str, Any]:
        fields = ("address", "city", "state", "country", "postal_code", "manager_id")
        return {f: getattr(self, f) for f in fields if getattr(self, f) not in (None, "")}

    def to_create(self) -> LocationCreate:
        return LocationCreate(
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            brand_id=self.brand_id,
            **self._optional_fields(),
        )

    def to_update(self) -> LocationUpdate:
        return LocationUpdate(
            name=self.name, latitude=self.latitude, longitude=self.longitude, **self._optional_fields()
        )


class MenuForm(Form):
    location_id: Optional[int] = None
    template_id: Optional[int] = None

    @field_validator("location_id")
    @classmethod
    def validate_location(cls, v, info: ValidationInfo):
        if v is None and _context(info).get("creating"):
            raise ValueError("Location is required")
        return v

    @field_validator("template_id")
    @classmethod
    def validate_template(cls, v):
        if v is None:
            raise ValueError("Menu template is required")
        return v

    def to_create(self) -> MenuCreate:
        return MenuCreate(location_id=self.location_id, template_id=self.template_id)

    def to_update(self) -> MenuUpdate:
        return MenuUpdate(template_id=self.template_id)


class MenuTemplateForm(Form):
    name: Optional[str] = None
    brand_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if _blank(v):
            raise ValueError("Template name is required")
        return v.strip()

    @field_validator("brand_id")
    @classmethod
    def validate_brand(cls, v, info: ValidationInfo):
        if v is None and _context(info).get("creating"):
            raise ValueError("Brand is required")
        return v

    def to_create(self) -> MenuTemplateCreate:
        return MenuTemplateCreate(name=self.name, brand_id=self.brand_id)

    def to_update(self) -> MenuTemplateUpdate:
        return MenuTemplateUpdate(name=self.name)


class VariantInput(BaseModel):
    label: str = ""
    price: float = 0


class TemplateItemForm(Form):
    name: Optional[str] = None
    category: Optional[str] = None
    description: str = ""
    image_url: Optional[str] = None
    available: bool = True
    variants: List[VariantInput] = []
    price: Optional[float] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if _blank(v):
            raise ValueError("Item name is required")
        return v.strip()

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        if _blank(v):
            raise ValueError("Category is required")
        return v

    @field_validator("variants")
    @classmethod
    def validate_variants(cls, v):
        if any(not variant.label.strip() or variant.price <= 0 for variant in v):
            raise ValueError("All variants must have a label and a price greater than zero")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v, info: ValidationInfo):
        if "variants" not in info.data or info.data["variants"]:
            return v
        if _context(info).get("creating"):
            if not v or v <= 0:
                raise ValueError("Price is required and must be greater than zero when no variants are defined")
        elif not v:
            raise ValueError("Price is required when no variants are defined")
        return v

    def _variant_inputs(self) -> Optional[List[TemplateItemVariantInput]]:
        if not self.variants:
            return None
        return [TemplateItemVariantInput(label=v.label.strip(), price=v.price) for v in self.variants]

    def to_create(self, template_id: int) -> TemplateItemCreate:
        return TemplateItemCreate(
            name=self.name,
            description=self.description.strip(),
            category=self.category,
            template_id=template_id,
            price=None if self.variants else self.price,
            image_url=(self.image_url or "").strip() or None,
            available=self.available,
            variants=self._variant_inputs(),
        )

    def to_update(self) -> TemplateItemUpdate:
        return TemplateItemUpdate(
            name=self.name,
            description=self.description.strip(),
            category=self.category,
            price=None if self.variants else self.price,
            image_url=(self.image_url or "").strip() or None,
            available=self.available,
            variants=self._variant_inputs(),
        )


class BrandAssignmentForm(Form):
    user_id: int
    brand_id: Optional[int] = None

    @field_validator("brand_id")
    @classmethod
    def validate_brand(cls, v):
        if v is None:
            raise ValueError("Please select a brand")
        return v

    def to_request(self) -> AssignUserToBrandRequest:
        return AssignUserToBrandRequest(user_id=self.user_id, brand_id=self.brand_id)


class LocationAssignmentForm(Form):
    user_id: int
    location_id: Optional[int] = None
    is_manager: bool = False

    @field_validator("location_id")
    @classmethod
    def validate_location(cls, v):
        if v is None:
            raise ValueError("Please select a location")
        return v

    def to_request(self) -> AssignUserToLocationRequest:
        return AssignUserToLocationRequest(
            user_id=self.user_id, location_id=self.location_id, is_manager=self.is_manager
        )
