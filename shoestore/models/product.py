"""Product models for the shoe catalog"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .common import Pagination


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    UNISEX = "unisex"


class ProductCategory(str, Enum):
    CASUAL = "casual"
    SPORT = "sport"
    FASHION = "fashion"
    NORMAL = "normal"


class Season(str, Enum):
    SUMMER = "summer"
    WINTER = "winter"
    ALL = "all"


class Product(BaseModel):
    """Shoe in the catalog"""
    id: str
    name: str
    description: Optional[str] = None
    price: float = Field(gt=0)
    discount: float = Field(default=0, ge=0, le=100)
    brand: Optional[str] = None
    images: list[str] = []
    sizes: list[float] = []
    stock: int = Field(ge=0, default=0)
    gender: Gender
    category: ProductCategory
    season: Season = Season.ALL
    is_archived: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductSummary(BaseModel):
    """Product fields resolved into cart and order lines for display"""
    id: str
    name: str
    price: Optional[float] = None
    discount: Optional[float] = None
    brand: Optional[str] = None
    images: list[str] = []
    sizes: Optional[list[float]] = None
    stock: Optional[int] = None
    description: Optional[str] = None


class ProductCreate(BaseModel):
    """Fields accepted when creating a product"""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(gt=0)
    discount: float = Field(default=0, ge=0, le=100)
    brand: Optional[str] = None
    sizes: list[float] = []
    stock: int = Field(default=0, ge=0)
    gender: Gender
    category: ProductCategory
    season: Season = Season.ALL


class ProductUpdate(BaseModel):
    """Partial product update; unset fields are left alone"""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, gt=0)
    discount: Optional[float] = Field(default=None, ge=0, le=100)
    brand: Optional[str] = None
    sizes: Optional[list[float]] = None
    stock: Optional[int] = Field(default=None, ge=0)
    gender: Optional[Gender] = None
    category: Optional[ProductCategory] = None
    season: Optional[Season] = None


class StockUpdateRequest(BaseModel):
    """Request to set a product's stock count"""
    stock: int = Field(ge=0)


class BulkUpdateItem(ProductUpdate):
    """One entry of a bulk update; ``id`` is checked per item"""
    id: Optional[str] = None


class BulkUpdateRequest(BaseModel):
    """Request to update many products independently"""
    updates: list[BulkUpdateItem] = Field(min_length=1)


class BulkUpdateResult(BaseModel):
    """Outcome of one bulk update entry"""
    id: Optional[str] = None
    success: bool
    message: Optional[str] = None
    product: Optional[Product] = None


class BulkUpdateResponse(BaseModel):
    results: list[BulkUpdateResult]


class ProductPage(BaseModel):
    """A page of products"""
    products: list[Product]
    pagination: Pagination
