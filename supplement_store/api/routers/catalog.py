"""
Catalog Endpoints
Public product and category listings.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_category_service, get_product_service
from ..errors import ResourceNotFoundError
from ..schemas.catalog import (
    CategoryListResponse,
    CategoryResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductQueryParams,
    ProductResponse,
    ProductsByCategoryResponse,
)
from ..services.category_service import CategoryService
from ..services.product_service import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


@router.get("/products", response_model=ProductListResponse, status_code=status.HTTP_200_OK)
def list_products(
    page: int = Query(1, description="Page number (1-based)"),
    limit: int = Query(20, description="Page size (max 100)"),
    category_id: Optional[int] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Search in name, description and SKU"),
    sort: Literal["name", "price", "created_at"] = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    products: ProductService = Depends(get_product_service),
):
    """
    List active products.

    Supports filtering by category, free-text search, sorting and pagination.
    """
    params = ProductQueryParams(
        page=page,
        limit=limit,
        category_id=category_id,
        search=search,
        active="true",
        sort=sort,
        order=order,
    )
    items, pagination, filters = products.get_products(params)

    return ProductListResponse(
        products=[ProductResponse.model_validate(p) for p in items],
        pagination=pagination,
        filters=filters,
    )


@router.get(
    "/products/category/{category_id}",
    response_model=ProductsByCategoryResponse,
    status_code=status.HTTP_200_OK,
)
def list_products_by_category(
    category_id: int,
    products: ProductService = Depends(get_product_service),
    categories: CategoryService = Depends(get_category_service),
):
    """List the active products of a category by name."""
    category = categories.get_category_by_id(category_id)
    if category is None:
        raise ResourceNotFoundError("Category", category_id)

    items = products.get_products_by_category(category_id)
    return ProductsByCategoryResponse(
        category=CategoryResponse.model_validate(category),
        products=[ProductResponse.model_validate(p) for p in items],
        count=len(items),
    )


@router.get(
    "/products/{product_id}",
    response_model=ProductDetailResponse,
    status_code=status.HTTP_200_OK,
)
def get_product(
    product_id: int,
    products: ProductService = Depends(get_product_service),
):
    """Get one active product with its category, images and inventory."""
    product = products.get_product_by_id(product_id)
    if product is None or not product.active:
        raise ResourceNotFoundError("Product", product_id)

    return ProductDetailResponse(product=ProductResponse.model_validate(product))


@router.get("/categories", response_model=CategoryListResponse, status_code=status.HTTP_200_OK)
def list_categories(categories: CategoryService = Depends(get_category_service)):
    """List all categories by name."""
    return CategoryListResponse(
        categories=[CategoryResponse.model_validate(c) for c in categories.get_all_categories()]
    )
