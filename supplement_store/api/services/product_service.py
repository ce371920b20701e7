"""
Product Service
Product catalog queries and admin CRUD.
"""

import logging
import math
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ...db.models import CartItem, Category, Product, ProductImage
from ..errors import ConflictError, InternalError, InvalidRequestError, ResourceNotFoundError
from ..schemas.catalog import (
    CreateProductRequest,
    Pagination,
    ProductFilters,
    ProductQueryParams,
    UpdateProductRequest,
)
from .image_service import ImageService
from .inventory_service import InventoryService

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.retail_price,
    "created_at": Product.created_at,
}


def _with_relations(query):
    return query.options(
        selectinload(Product.category),
        selectinload(Product.images),
        selectinload(Product.inventory),
    )


class ProductService:
    """
    Product catalog service.

    Public listings read through get_products; the admin endpoints use the
    create/update/delete operations, which keep the inventory row and the
    images of a product in step with it.
    """

    def __init__(self, db: Session, images: ImageService):
        self.db = db
        self.images = images
        self.inventory = InventoryService(db)

    def get_products(
        self, params: ProductQueryParams
    ) -> Tuple[List[Product], Pagination, ProductFilters]:
        """
        List products with filters, sorting and pagination.

        Args:
            params: Query parameters (page, limit, category, search, active, sort, order)

        Returns:
            Tuple of (products, pagination, applied filters)
        """
        query = self.db.query(Product)

        if params.active == "true":
            query = query.filter(Product.active.is_(True))
        elif params.active == "false":
            query = query.filter(Product.active.is_(False))

        if params.category_id is not None:
            query = query.filter(Product.category_id == params.category_id)

        search = params.search.strip() if params.search else None
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.sku.ilike(pattern),
                )
            )

        column = SORT_COLUMNS[params.sort]
        ordering = column.asc() if params.order == "asc" else column.desc()
        offset = (params.page - 1) * params.limit

        try:
            total = query.order_by(None).count()
            products = (
                _with_relations(query)
                .order_by(ordering, Product.id.asc())
                .offset(offset)
                .limit(params.limit)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching products: {e}", extra={"params": params.model_dump()})
            raise InternalError("Failed to fetch products")

        total_pages = math.ceil(total / params.limit) if total else 0
        pagination = Pagination(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=total_pages,
            has_next=params.page < total_pages,
            has_prev=params.page > 1,
        )
        filters = ProductFilters(
            category_id=params.category_id,
            search=search,
            active=None if params.active == "all" else params.active == "true",
        )

        logger.debug(f"Fetched {len(products)} of {total} products")
        return products, pagination, filters

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        """Product with category, images and inventory, or None."""
        try:
            return _with_relations(self.db.query(Product)).filter(Product.id == product_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching product: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to fetch product")

    def get_product_by_sku(self, sku: str) -> Optional[Product]:
        try:
            return self.db.query(Product).filter(Product.sku == sku).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching product by SKU: {e}", extra={"sku": sku})
            raise InternalError("Failed to fetch product by SKU")

    def _check_prices(self, retail_price: Optional[float], distributor_price: Optional[float]):
        if retail_price is not None and retail_price < 0:
            raise InvalidRequestError("Price cannot be negative", field="retail_price")
        if distributor_price is not None and distributor_price < 0:
            raise InvalidRequestError("Price cannot be negative", field="distributor_price")

    def _check_category(self, category_id: Optional[int]):
        if category_id is None:
            return
        if self.db.query(Category.id).filter(Category.id == category_id).first() is None:
            raise InvalidRequestError(
                f"Category {category_id} does not exist", field="category_id"
            )

    def create_product(self, request: CreateProductRequest) -> Product:
        """
        Create a product together with its inventory row.

        Raises:
            InvalidRequestError: on negative prices or an unknown category
            ConflictError: if the SKU is taken
        """
        self._check_prices(request.retail_price, request.distributor_price)
        if self.get_product_by_sku(request.sku) is not None:
            raise ConflictError("Product", "SKU", request.sku)
        self._check_category(request.category_id)

        now = datetime.utcnow()
        product = Product(
            sku=request.sku,
            name=request.name,
            description=request.description,
            category_id=request.category_id,
            retail_price=Decimal(str(request.retail_price)),
            distributor_price=Decimal(str(request.distributor_price)),
            active=request.active,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(product)
            self.db.flush()
            self.inventory.create_inventory(
                product.id,
                stock=request.initial_stock,
                low_stock_threshold=request.low_stock_threshold,
                commit=False,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating product: {e}", extra={"sku": request.sku})
            raise InternalError("Failed to create product")

        logger.info("Product created", extra={"product_id": product.id, "sku": product.sku})
        return self.get_product_by_id(product.id)

    def update_product(self, product_id: int, request: UpdateProductRequest) -> Product:
        """
        Apply a partial update.

        Raises:
            ResourceNotFoundError: if the product does not exist
            ConflictError: if the new SKU belongs to another product
        """
        product = self.get_product_by_id(product_id)
        if product is None:
            raise ResourceNotFoundError("Product", product_id)

        updates = request.model_dump(exclude_unset=True)
        self._check_prices(updates.get("retail_price"), updates.get("distributor_price"))

        sku = updates.get("sku")
        if sku is not None and sku != product.sku:
            if self.get_product_by_sku(sku) is not None:
                raise ConflictError("Product", "SKU", sku)
        if "category_id" in updates:
            self._check_category(updates["category_id"])

        for field, value in updates.items():
            if field in ("retail_price", "distributor_price") and value is not None:
                value = Decimal(str(value))
            if value is None and field not in ("description", "category_id"):
                continue
            setattr(product, field, value)
        product.updated_at = datetime.utcnow()

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating product: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to update product")

        logger.info(
            "Product updated",
            extra={"product_id": product_id, "fields": sorted(updates)},
        )
        return self.get_product_by_id(product_id)

    def delete_product(self, product_id: int) -> None:
        """
        Delete a product with its images, inventory row and cart lines.

        Raises:
            ResourceNotFoundError: if the product does not exist
        """
        product = self.get_product_by_id(product_id)
        if product is None:
            raise ResourceNotFoundError("Product", product_id)

        image_count = len(product.images)
        self.images.remove_files([image.url for image in product.images])
        try:
            self.db.query(CartItem).filter(CartItem.product_id == product_id).delete(
                synchronize_session="fetch"
            )
            # Images and the inventory row go with the product (ORM cascade)
            self.db.delete(product)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting product: {e}", extra={"product_id": product_id})
            raise InternalError("Failed to delete product")

        logger.info(
            "Product deleted",
            extra={"product_id": product_id, "images_deleted": image_count},
        )

    def toggle_product_status(self, product_id: int) -> Product:
        product = self.get_product_by_id(product_id)
        if product is None:
            raise ResourceNotFoundError("Product", product_id)
        return self.update_product(product_id, UpdateProductRequest(active=not product.active))

    def get_products_by_category(self, category_id: int) -> List[Product]:
        """Active products of a category ordered by name."""
        try:
            return (
                _with_relations(self.db.query(Product))
                .filter(Product.category_id == category_id, Product.active.is_(True))
                .order_by(Product.name.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(
                f"Error fetching products by category: {e}",
                extra={"category_id": category_id},
            )
            raise InternalError("Failed to fetch products by category")

    def get_product_stats(self) -> dict:
        try:
            total = self.db.query(func.count(Product.id)).scalar()
            active = (
                self.db.query(func.count(Product.id)).filter(Product.active.is_(True)).scalar()
            )
            with_images = self.db.query(
                func.count(func.distinct(ProductImage.product_id))
            ).scalar()
            categories = self.db.query(func.count(Category.id)).scalar()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching product stats: {e}")
            raise InternalError("Failed to fetch product statistics")

        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "with_images": with_images,
            "categories": categories,
        }
