"""
Catalog request/response schemas.
Pydantic models for products, categories, images and inventory.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Prices are stored as NUMERIC(10, 2)
MAX_PRICE = 100_000_000


class CategoryResponse(BaseModel):
    """Category as returned by the API."""

    id: int
    name: str

    model_config = {"from_attributes": True}


class ProductImageResponse(BaseModel):
    """Product image."""

    id: int
    product_id: int
    url: str
    is_primary: bool

    model_config = {"from_attributes": True}


class InventoryResponse(BaseModel):
    """Inventory row."""

    product_id: int
    stock: int
    low_stock_threshold: int

    model_config = {"from_attributes": True}


class ProductBase(BaseModel):
    """Product columns without relations."""

    id: int
    sku: str
    name: str
    description: Optional[str] = None
    category_id: Optional[int] = None
    retail_price: float = Field(..., description="Unit price below the distributor threshold")
    distributor_price: float = Field(..., description="Unit price at the distributor tier")
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductResponse(ProductBase):
    """Product with category, images and inventory."""

    category: Optional[CategoryResponse] = None
    images: List[ProductImageResponse] = Field(default_factory=list)
    inventory: Optional[InventoryResponse] = None


# ==========================================
# Queries
# ==========================================


class ProductQueryParams(BaseModel):
    """Filters, sorting and pagination for product listings."""

    page: int = Field(default=1, description="Page number (1-based)")
    limit: int = Field(default=20, description="Page size (1-100)")
    category_id: Optional[int] = None
    search: Optional[str] = None
    active: Literal["true", "false", "all"] = "true"
    sort: Literal["name", "price", "created_at"] = "created_at"
    order: Literal["asc", "desc"] = "desc"

    @field_validator("page", mode="after")
    @classmethod
    def clamp_page(cls, v: int) -> int:
        return max(1, v)

    @field_validator("limit", mode="after")
    @classmethod
    def clamp_limit(cls, v: int) -> int:
        return min(100, max(1, v))


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class ProductFilters(BaseModel):
    category_id: Optional[int] = None
    search: Optional[str] = None
    active: Optional[bool] = None


class ProductListResponse(BaseModel):
    """Response schema for product listings."""

    message: str = "Products retrieved successfully"
    products: List[ProductResponse]
    pagination: Pagination
    filters: ProductFilters
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ProductDetailResponse(BaseModel):
    message: str = "Product retrieved successfully"
    product: ProductResponse
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class CategoryListResponse(BaseModel):
    message: str = "Categories retrieved successfully"
    categories: List[CategoryResponse]
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ProductsByCategoryResponse(BaseModel):
    message: str = "Products by category retrieved successfully"
    category: CategoryResponse
    products: List[ProductResponse]
    count: int
    timestamp: datetime = Field(default_factory=datetime.utcnow)


# ==========================================
# Admin requests
# ==========================================


class CreateProductRequest(BaseModel):
    """Request schema for creating a product."""

    sku: str = Field(..., min_length=1, description="Unique stock keeping unit")
    name: str = Field(..., min_length=1, description="Product name")
    description: Optional[str] = None
    category_id: Optional[int] = None
    retail_price: float = Field(..., allow_inf_nan=False, lt=MAX_PRICE)
    distributor_price: float = Field(..., allow_inf_nan=False, lt=MAX_PRICE)
    active: bool = True
    initial_stock: int = Field(default=0, ge=0, description="Stock for the new inventory row")
    low_stock_threshold: int = Field(default=5, ge=0)


class UpdateProductRequest(BaseModel):
    """Request schema for a partial product update."""

    sku: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category_id: Optional[int] = None
    retail_price: Optional[float] = Field(None, allow_inf_nan=False, lt=MAX_PRICE)
    distributor_price: Optional[float] = Field(None, allow_inf_nan=False, lt=MAX_PRICE)
    active: Optional[bool] = None


class CategoryRequest(BaseModel):
    """Request schema for creating or renaming a category."""

    name: str = Field(..., description="Category name")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class ImageUploadRequest(BaseModel):
    """Request schema for a signed upload URL."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(..., min_length=1)
    content_type: str = Field(..., alias="contentType", min_length=1)
    file_size: Optional[int] = Field(
        None,
        alias="fileSize",
        ge=0,
        description="File size in bytes, checked against the upload limit",
    )
    is_primary: bool = False


class ImageUploadResponse(BaseModel):
    message: str = "Upload URL generated successfully"
    upload_url: str
    public_url: str
    filename: str = Field(..., description="Object path inside the bucket")
    expires_in: int = Field(..., description="Seconds the upload URL stays valid")
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class AddImageRequest(BaseModel):
    """Request schema for registering an uploaded image."""

    model_config = ConfigDict(populate_by_name=True)

    public_url: str = Field(..., alias="publicUrl", min_length=1)
    is_primary: bool = False


class UpdateImageRequest(BaseModel):
    is_primary: bool


class ImageResponse(BaseModel):
    message: str
    image: ProductImageResponse
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ImageListResponse(BaseModel):
    images: List[ProductImageResponse]
    count: int


class UpdateInventoryRequest(BaseModel):
    stock: int
    low_stock_threshold: Optional[int] = Field(None, ge=0)


class AdjustStockRequest(BaseModel):
    adjustment: int = Field(..., description="Units to add (positive) or remove (negative)")
    reason: Optional[str] = Field(None, max_length=255)


class ProductRef(BaseModel):
    id: int
    name: str
    sku: str

    model_config = {"from_attributes": True}


class InventoryUpdateResponse(BaseModel):
    message: str = "Inventory updated successfully"
    inventory: InventoryResponse
    product: ProductRef
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class LowStockProduct(BaseModel):
    product_id: int
    stock: int
    low_stock_threshold: int
    product: ProductBase


class LowStockResponse(BaseModel):
    low_stock_products: List[LowStockProduct]
    count: int


class InventoryStats(BaseModel):
    total_products: int
    low_stock_count: int
    out_of_stock_count: int
    total_stock_value: float


class ProductStats(BaseModel):
    total: int
    active: int
    inactive: int
    with_images: int
    categories: int


class CategoryStat(BaseModel):
    category: CategoryResponse
    product_count: int


class CategoryStatsResponse(BaseModel):
    categories: List[CategoryStat]


class ProductMutationResponse(BaseModel):
    message: str
    product: ProductResponse
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class CategoryMutationResponse(BaseModel):
    message: str
    category: CategoryResponse
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class MessageResponse(BaseModel):
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
