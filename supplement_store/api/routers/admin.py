"""
Admin Endpoints
User roles, statistics and catalog management. Every route requires the
admin role.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from ..dependencies import (
    get_auth_gateway,
    get_category_service,
    get_image_service,
    get_inventory_service,
    get_product_service,
    get_profile_service,
    require_admin,
)
from ..errors import InvalidRequestError, ResourceNotFoundError
from ..schemas.admin import (
    RoleUpdatedUser,
    SystemStats,
    UpdateRoleRequest,
    UpdateRoleResponse,
    UserListResponse,
    UserWithProfile,
)
from ..schemas.auth import AuthUser, ProfileResponse
from ..schemas.catalog import (
    AddImageRequest,
    AdjustStockRequest,
    CategoryMutationResponse,
    CategoryRequest,
    CategoryResponse,
    CategoryStat,
    CategoryStatsResponse,
    CreateProductRequest,
    ImageListResponse,
    ImageResponse,
    ImageUploadRequest,
    ImageUploadResponse,
    InventoryResponse,
    InventoryStats,
    InventoryUpdateResponse,
    LowStockProduct,
    LowStockResponse,
    MessageResponse,
    ProductBase,
    ProductImageResponse,
    ProductMutationResponse,
    ProductRef,
    ProductResponse,
    ProductStats,
    UpdateImageRequest,
    UpdateInventoryRequest,
    UpdateProductRequest,
)
from ..services.category_service import CategoryService
from ..services.image_service import ImageService
from ..services.inventory_service import InventoryService
from ..services.product_service import ProductService
from ..services.profile_service import ROLES, ProfileService
from ..supabase_client import SupabaseAuthGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ==========================================
# Users
# ==========================================


@router.get("/users", response_model=UserListResponse, status_code=status.HTTP_200_OK)
def list_users(
    limit: int = Query(50, ge=1, le=1000, description="Users per page"),
    offset: int = Query(0, ge=0, description="Users to skip"),
    admin: AuthUser = Depends(require_admin),
    gateway: SupabaseAuthGateway = Depends(get_auth_gateway),
    profiles: ProfileService = Depends(get_profile_service),
):
    """
    List users with their profiles.

    Users come from Supabase Auth a page at a time, so offset is rounded down
    to a multiple of limit.
    """
    users = gateway.list_users(page=offset // limit + 1, per_page=limit)
    by_user = {p.user_id: p for p in profiles.get_profiles([u.id for u in users])}

    result = [
        UserWithProfile(
            **user.model_dump(),
            profile=ProfileResponse.model_validate(by_user[user.id]) if user.id in by_user else None,
        )
        for user in users
    ]

    logger.info(
        "Admin retrieved users list",
        extra={"admin_id": str(admin.id), "users_returned": len(result)},
    )
    return UserListResponse(users=result, count=len(result), limit=limit, offset=offset)


@router.patch(
    "/users/{user_id}/role",
    response_model=UpdateRoleResponse,
    status_code=status.HTTP_200_OK,
)
def update_user_role(
    user_id: UUID,
    request: UpdateRoleRequest,
    admin: AuthUser = Depends(require_admin),
    gateway: SupabaseAuthGateway = Depends(get_auth_gateway),
    profiles: ProfileService = Depends(get_profile_service),
):
    """Set the role of a user."""
    if request.role not in ROLES:
        raise InvalidRequestError("Role must be either 'user' or 'admin'", field="role")

    user = gateway.get_user_by_id(user_id)
    if user is None:
        raise ResourceNotFoundError("User", str(user_id))

    profiles.get_or_create_profile(user_id)
    profile = profiles.update_profile(user_id, role=request.role)

    logger.info(
        "Admin updated user role",
        extra={"admin_id": str(admin.id), "target_user_id": str(user_id), "role": request.role},
    )
    return UpdateRoleResponse(
        user=RoleUpdatedUser(
            id=user.id, email=user.email, profile=ProfileResponse.model_validate(profile)
        )
    )


@router.get("/stats", response_model=SystemStats, status_code=status.HTTP_200_OK)
def get_system_stats(
    admin: AuthUser = Depends(require_admin),
    profiles: ProfileService = Depends(get_profile_service),
):
    """User and terms-acceptance statistics."""
    return SystemStats(**profiles.get_profile_stats())


# ==========================================
# Categories
# ==========================================


@router.post(
    "/categories",
    response_model=CategoryMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_category(
    request: CategoryRequest,
    admin: AuthUser = Depends(require_admin),
    categories: CategoryService = Depends(get_category_service),
):
    category = categories.create_category(request.name)
    return CategoryMutationResponse(
        message="Category created successfully",
        category=CategoryResponse.model_validate(category),
    )


@router.get(
    "/categories/stats",
    response_model=CategoryStatsResponse,
    status_code=status.HTTP_200_OK,
)
def get_category_stats(
    admin: AuthUser = Depends(require_admin),
    categories: CategoryService = Depends(get_category_service),
):
    """Product count per category."""
    return CategoryStatsResponse(
        categories=[
            CategoryStat(
                category=CategoryResponse.model_validate(row["category"]),
                product_count=row["product_count"],
            )
            for row in categories.get_category_stats()
        ]
    )


@router.put(
    "/categories/{category_id}",
    response_model=CategoryMutationResponse,
    status_code=status.HTTP_200_OK,
)
def update_category(
    category_id: int,
    request: CategoryRequest,
    admin: AuthUser = Depends(require_admin),
    categories: CategoryService = Depends(get_category_service),
):
    category = categories.update_category(category_id, request.name)
    return CategoryMutationResponse(
        message="Category updated successfully",
        category=CategoryResponse.model_validate(category),
    )


@router.delete(
    "/categories/{category_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
def delete_category(
    category_id: int,
    admin: AuthUser = Depends(require_admin),
    categories: CategoryService = Depends(get_category_service),
):
    """Delete a category; its products keep existing without a category."""
    categories.delete_category(category_id)
    return MessageResponse(message="Category deleted successfully")


# ==========================================
# Products
# ==========================================


@router.post(
    "/products",
    response_model=ProductMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    request: CreateProductRequest,
    admin: AuthUser = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
):
    """Create a product and its inventory row."""
    product = products.create_product(request)

    logger.info(
        "Admin created product",
        extra={"admin_id": str(admin.id), "product_id": product.id, "sku": product.sku},
    )
    return ProductMutationResponse(
        message="Product created successfully",
        product=ProductResponse.model_validate(product),
    )


@router.get("/products/stats", response_model=ProductStats, status_code=status.HTTP_200_OK)
def get_product_stats(
    admin: AuthUser = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
):
    return ProductStats(**products.get_product_stats())


@router.put(
    "/products/{product_id}",
    response_model=ProductMutationResponse,
    status_code=status.HTTP_200_OK,
)
def update_product(
    product_id: int,
    request: UpdateProductRequest,
    admin: AuthUser = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
):
    """Partially update a product."""
    product = products.update_product(product_id, request)
    return ProductMutationResponse(
        message="Product updated successfully",
        product=ProductResponse.model_validate(product),
    )


@router.delete(
    "/products/{product_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
def delete_product(
    product_id: int,
    admin: AuthUser = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
):
    """Delete a product with its images, inventory and cart lines."""
    products.delete_product(product_id)

    logger.info(
        "Admin deleted product",
        extra={"admin_id": str(admin.id), "product_id": product_id},
    )
    return MessageResponse(message="Product deleted successfully")


@router.patch(
    "/products/{product_id}/toggle-status",
    response_model=ProductMutationResponse,
    status_code=status.HTTP_200_OK,
)
def toggle_product_status(
    product_id: int,
    admin: AuthUser = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
):
    product = products.toggle_product_status(product_id)
    state = "activated" if product.active else "deactivated"
    return ProductMutationResponse(
        message=f"Product {state} successfully",
        product=ProductResponse.model_validate(product),
    )


# ==========================================
# Images
# ==========================================


def _require_product(products: ProductService, product_id: int) -> None:
    if products.get_product_by_id(product_id) is None:
        raise ResourceNotFoundError("Product", product_id)


@router.post(
    "/products/{product_id}/images/upload",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_200_OK,
)
def generate_image_upload_url(
    product_id: int,
    request: ImageUploadRequest,
    admin: AuthUser = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
    images: ImageService = Depends(get_image_service),
):
    """
    Get a signed URL to upload a product image to Storage.

    After the upload, register the image with the returned public URL.
    """
    _require_product(products, product_id)
    upload = images.generate_upload_url(
        product_id, request.filename, request.content_type, request.file_size
    )
    return ImageUploadResponse(**upload)


@router.post(
    "/products/{product_id}/images",
    response_model=ImageResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_product_image(
    product_id: int,
    request: AddImageRequest,
    admin: AuthUser = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
    images: ImageService = Depends(get_image_service),
):
    """Register an uploaded image."""
    _require_product(products, product_id)
    image = images.add_image_to_product(product_id, request.public_url, request.is_primary)
    return ImageResponse(
        message="Image added to product successfully",
        image=ProductImageResponse.model_validate(image),
    )


@router.get(
    "/products/{product_id}/images",
    response_model=ImageListResponse,
    status_code=status.HTTP_200_OK,
)
def list_product_images(
    product_id: int,
    admin: AuthUser = Depends(require_admin),
    products: ProductService = Depends(get_product_service),
    images: ImageService = Depends(get_image_service),
):
    _require_product(products, product_id)
    result = [ProductImageResponse.model_validate(i) for i in images.get_product_images(product_id)]
    return ImageListResponse(images=result, count=len(result))


@router.patch("/images/{image_id}", response_model=ImageResponse, status_code=status.HTTP_200_OK)
def update_image(
    image_id: int,
    request: UpdateImageRequest,
    admin: AuthUser = Depends(require_admin),
    images: ImageService = Depends(get_image_service),
):
    image = images.update_image(image_id, request.is_primary)
    return ImageResponse(
        message="Image updated successfully",
        image=ProductImageResponse.model_validate(image),
    )


@router.delete("/images/{image_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
def delete_image(
    image_id: int,
    admin: AuthUser = Depends(require_admin),
    images: ImageService = Depends(get_image_service),
):
    images.delete_image(image_id)
    return MessageResponse(message="Image deleted successfully")


# ==========================================
# Inventory
# ==========================================


@router.get(
    "/inventory/low-stock",
    response_model=LowStockResponse,
    status_code=status.HTTP_200_OK,
)
def get_low_stock_products(
    admin: AuthUser = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory_service),
):
    """Products whose stock is at or below their low-stock threshold."""
    rows = [
        LowStockProduct(
            product_id=row.product_id,
            stock=row.stock,
            low_stock_threshold=row.low_stock_threshold,
            product=ProductBase.model_validate(row.product),
        )
        for row in inventory.get_low_stock_products()
    ]
    return LowStockResponse(low_stock_products=rows, count=len(rows))


@router.get("/inventory/stats", response_model=InventoryStats, status_code=status.HTTP_200_OK)
def get_inventory_stats(
    admin: AuthUser = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory_service),
):
    return InventoryStats(**inventory.get_inventory_stats())


@router.put(
    "/inventory/{product_id}",
    response_model=InventoryUpdateResponse,
    status_code=status.HTTP_200_OK,
)
def update_inventory(
    product_id: int,
    request: UpdateInventoryRequest,
    admin: AuthUser = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory_service),
):
    """Set the stock (and optionally the low-stock threshold) of a product."""
    row, product = inventory.update_inventory(
        product_id, request.stock, request.low_stock_threshold
    )

    logger.info(
        "Admin updated inventory",
        extra={"admin_id": str(admin.id), "product_id": product_id, "stock": row.stock},
    )
    return InventoryUpdateResponse(
        inventory=InventoryResponse.model_validate(row),
        product=ProductRef.model_validate(product),
    )


@router.post(
    "/inventory/{product_id}/adjust",
    response_model=InventoryUpdateResponse,
    status_code=status.HTTP_200_OK,
)
def adjust_stock(
    product_id: int,
    request: AdjustStockRequest,
    admin: AuthUser = Depends(require_admin),
    inventory: InventoryService = Depends(get_inventory_service),
):
    """Add or remove units; the stock cannot go below zero."""
    row = inventory.adjust_stock(product_id, request.adjustment, request.reason)
    return InventoryUpdateResponse(
        message="Stock adjusted successfully",
        inventory=InventoryResponse.model_validate(row),
        product=ProductRef.model_validate(row.product),
    )
