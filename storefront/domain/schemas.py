# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Generic, List, Literal, TypeVar
from decimal import Decimal
from datetime import datetime

from storefront.domain.enums import UserRole

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Wspolna koperta odpowiedzi {success, data, message}."""

    success: bool = True
    data: T | None = None
    message: str | None = None


# ===================== users =====================

class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    name: str = Field(..., min_length=2, max_length=100, description="Imię użytkownika")
    email: EmailStr
    role: UserRole = UserRole.CLIENT


class UserRead(BaseModel):
    """Schema dla użytkownika (response)."""

    id: int
    name: str
    email: str
    role: UserRole
    active: bool

    model_config = ConfigDict(from_attributes=True)


# ===================== katalog =====================

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = None


class CategoryUpdate(BaseModel):
    """Czesciowa aktualizacja, pola None sa pomijane."""

    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = None
    active: bool | None = None


class StatusIn(BaseModel):
    active: bool


class CategoryOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SubcategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = None
    category_id: int = Field(..., gt=0)


class SubcategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = None
    active: bool | None = None


class SubcategoryOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    category_id: int
    active: bool

    model_config = ConfigDict(from_attributes=True)


class CategoryWithSubcategoriesOut(CategoryOut):
    subcategories: List[SubcategoryOut] = []


class CategoryDetailOut(CategoryWithSubcategoriesOut):
    total_products: int


class SubcategoryDetailOut(SubcategoryOut):
    category: CategoryOut | None = None
    total_products: int


class StatusChangeOut(BaseModel):
    """Wynik zmiany statusu wraz z liczba elementow objetych kaskada."""

    id: int
    active: bool
    subcategories_affected: int = 0
    products_affected: int = 0


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = None
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    category_id: int | None = Field(None, gt=0)
    subcategory_id: int | None = Field(None, gt=0)
    active: bool | None = None


class StockIn(BaseModel):
    """Operacja na stanie magazynowym (tylko staff/admin)."""

    operation: Literal["increase", "decrease", "set"]
    quantity: int = Field(..., ge=0)


class ProductOut(BaseModel):
    id: int
    name: str
    description: str | None = None
    price: Decimal
    stock: int
    image: str | None = None
    image_url: str | None = None
    category_id: int
    subcategory_id: int
    active: bool

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    items: List[ProductOut]
    total: int
    page: int
    limit: int
    pages: int


class CatalogStatsOut(BaseModel):
    id: int
    name: str
    active: bool
    total_products: int
    active_products: int
    inactive_products: int
    stock_total: int
    inventory_value: Decimal


# ===================== koszyk =====================

class CartLineIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(1, gt=0, description="Ilość produktu (musi być > 0)")


class CartLineUpdate(BaseModel):
    quantity: int = Field(..., gt=0)


class CartLineOut(BaseModel):
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    user_id: int
    items: List[CartLineOut]
    item_count: int
    total: Decimal


class CartClearedOut(BaseModel):
    deleted: int


# ===================== zamowienia =====================

class OrderCreate(BaseModel):
    """Schema dla tworzenia zamówienia z koszyka."""

    shipping_address: str = Field(..., min_length=10, max_length=500)
    phone: str = Field(..., min_length=1, max_length=20, pattern=r"^[0-9+\-\s()]+$")
    notes: str | None = None


class OrderStatusIn(BaseModel):
    #zwykly str, nieznany status to InvalidState a nie 422
    status: str


class OrderLineUpdate(BaseModel):
    quantity: int = Field(..., gt=0)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    user_id: int
    status: str
    total: Decimal
    shipping_address: str
    phone: str
    notes: str | None = None
    paid_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class BestSellerOut(BaseModel):
    product_id: int
    total_quantity: int
