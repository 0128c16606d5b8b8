"""Pydantic schemas for request validation.

Request bodies use camelCase keys on the wire; attributes stay snake_case.
"""
from typing import Any, Dict, List, Literal, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from farmdirect.exceptions import ValidationError

Category = Literal["vegetables", "fruits", "grains"]
UserType = Literal["buyer", "farmer"]

ModelT = TypeVar("ModelT", bound=BaseModel)


class CamelModel(BaseModel):
    """Base schema accepting camelCase aliases or field names."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class RegisterRequest(CamelModel):
    """Schema for registering a buyer or farmer."""
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=6, max_length=72)
    type: UserType
    phone: Optional[str] = None
    farm_location: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _loose_email(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if "@" not in v or " " in v:
            raise ValueError("invalid email format (expected something like user@host)")
        return v


class LoginRequest(CamelModel):
    """Schema for login request."""
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return (v or "").strip().lower()


class ProductCreate(CamelModel):
    """Schema for creating a product. Owner fields come from the caller's identity."""
    name: str = Field(..., min_length=1)
    category: Category
    farmer_price: float = Field(..., ge=0)
    market_price: float = Field(..., ge=0)
    stock: int = Field(..., ge=0)
    image: Optional[str] = None
    description: Optional[str] = None


class ProductUpdate(CamelModel):
    """Schema for a partial product update."""
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[Category] = None
    farmer_price: Optional[float] = Field(None, ge=0)
    market_price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    location: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    description: Optional[str] = None


class StockUpdate(CamelModel):
    """Schema for setting a product's stock level."""
    stock: int = Field(..., ge=0)


class OrderItemRequest(CamelModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class OrderCreate(CamelModel):
    """Schema for placing an order."""
    items: List[OrderItemRequest] = Field(..., min_length=1)


class OrderStatusUpdate(CamelModel):
    status: str


class MarketPriceUpdate(CamelModel):
    """Schema for updating a market price snapshot."""
    commodity: Optional[str] = Field(None, min_length=1)
    market_price: Optional[float] = Field(None, ge=0)
    farmer_price: Optional[float] = Field(None, ge=0)
    change: Optional[float] = None
    category: Optional[Category] = None


def format_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """Render pydantic error dicts as ``field: reason`` pairs."""
    parts = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location)
        parts.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def parse_payload(schema: Type[ModelT], payload: Any) -> ModelT:
    """Validate a raw request body, raising the marketplace ValidationError."""
    try:
        return schema.model_validate(payload if payload is not None else {})
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e.errors()))
