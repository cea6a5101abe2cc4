from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


def _not_blank(v):
    if isinstance(v, str):
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
    return v


def _password(v):
    # checked but never stripped, spaces are part of the password
    if isinstance(v, str) and not v.strip():
        raise ValueError("must not be empty")
    return v


def _whole_number(v):
    # lax int would take JSON true/false as 1/0
    if isinstance(v, bool):
        raise ValueError("must be a whole number")
    return v


# ----------------------------
# Auth
# ----------------------------

class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator('name', mode='before')
    @classmethod
    def required_name(cls, v):
        return _not_blank(v)

    @field_validator('password', mode='before')
    @classmethod
    def required_password(cls, v):
        return _password(v)

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return _not_blank(v).lower() if isinstance(v, str) else v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('password', mode='before')
    @classmethod
    def required_password(cls, v):
        return _password(v)

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        return _not_blank(v).lower() if isinstance(v, str) else v


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


# ----------------------------
# Products
# ----------------------------

class ProductCreate(BaseModel):
    name: str
    sku: str
    quantity: int = Field(ge=0)
    min_quantity: int = Field(ge=0, validation_alias=AliasChoices('minQuantity', 'min_quantity'))
    category: str = ""

    @field_validator('name', 'sku', mode='before')
    @classmethod
    def required_text(cls, v):
        return _not_blank(v)

    @field_validator('quantity', 'min_quantity', mode='before')
    @classmethod
    def no_booleans(cls, v):
        return _whole_number(v)

    @field_validator('category', mode='before')
    @classmethod
    def default_category(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    min_quantity: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices('minQuantity', 'min_quantity')
    )
    category: Optional[str] = None

    @field_validator('name', 'sku', mode='before')
    @classmethod
    def required_text(cls, v):
        return _not_blank(v)

    @field_validator('quantity', 'min_quantity', mode='before')
    @classmethod
    def no_booleans(cls, v):
        return _whole_number(v)

    @model_validator(mode='after')
    def no_explicit_nulls(self):
        for field in ('name', 'sku', 'quantity', 'min_quantity'):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        if 'category' in data and data['category'] is None:
            data['category'] = ""
        return data


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    sku: str
    quantity: int = 0
    min_quantity: int = Field(default=0, serialization_alias='minQuantity')
    category: str = ""
    created_at: Optional[datetime] = Field(default=None, serialization_alias='createdAt')
    updated_at: Optional[datetime] = Field(default=None, serialization_alias='lastUpdated')
    status: str

    @field_validator('quantity', 'min_quantity', mode='before')
    @classmethod
    def missing_is_zero(cls, v):
        return 0 if v is None else v

    @field_validator('category', mode='before')
    @classmethod
    def missing_category(cls, v):
        return v or ""
