"""
Category Service
CRUD for product categories.
"""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...db.models import Category, Product
from ..errors import ConflictError, InternalError, InvalidRequestError, ResourceNotFoundError

logger = logging.getLogger(__name__)


class CategoryService:
    """Category CRUD backed by the categories table."""

    def __init__(self, db: Session):
        self.db = db

    def get_all_categories(self) -> List[Category]:
        """All categories ordered by name."""
        try:
            return self.db.query(Category).order_by(Category.name.asc()).all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching categories: {e}")
            raise InternalError("Failed to fetch categories")

    def get_category_by_id(self, category_id: int) -> Optional[Category]:
        try:
            return self.db.query(Category).filter(Category.id == category_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching category: {e}", extra={"category_id": category_id})
            raise InternalError("Failed to fetch category")

    def _get_by_name(self, name: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.name == name).first()

    def _validate_name(self, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise InvalidRequestError("Category name is required", field="name")
        return name

    def create_category(self, name: str) -> Category:
        """
        Create a category.

        Raises:
            InvalidRequestError: if the name is blank
            ConflictError: if the name is already taken
        """
        name = self._validate_name(name)
        if self._get_by_name(name) is not None:
            raise ConflictError("Category", "name", name)

        category = Category(name=name)
        try:
            self.db.add(category)
            self.db.commit()
            self.db.refresh(category)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating category: {e}", extra={"name": name})
            raise InternalError("Failed to create category")

        logger.info("Category created", extra={"category_id": category.id, "name": name})
        return category

    def update_category(self, category_id: int, name: str) -> Category:
        """
        Rename a category.

        Raises:
            ResourceNotFoundError: if the category does not exist
            ConflictError: if another category already has the name
        """
        name = self._validate_name(name)
        category = self.get_category_by_id(category_id)
        if category is None:
            raise ResourceNotFoundError("Category", category_id)

        existing = self._get_by_name(name)
        if existing is not None and existing.id != category_id:
            raise ConflictError("Category", "name", name)

        category.name = name
        try:
            self.db.commit()
            self.db.refresh(category)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating category: {e}", extra={"category_id": category_id})
            raise InternalError("Failed to update category")

        return category

    def delete_category(self, category_id: int) -> None:
        """
        Delete a category; its products are kept and lose their category.

        Raises:
            ResourceNotFoundError: if the category does not exist
        """
        category = self.get_category_by_id(category_id)
        if category is None:
            raise ResourceNotFoundError("Category", category_id)

        try:
            self.db.query(Product).filter(Product.category_id == category_id).update(
                {Product.category_id: None}, synchronize_session="fetch"
            )
            self.db.delete(category)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting category: {e}", extra={"category_id": category_id})
            raise InternalError("Failed to delete category")

        logger.info("Category deleted", extra={"category_id": category_id})

    def get_category_stats(self) -> List[dict]:
        """Product count of every category, ordered by name."""
        try:
            rows = (
                self.db.query(Category, func.count(Product.id))
                .outerjoin(Product, Product.category_id == Category.id)
                .group_by(Category.id)
                .order_by(Category.name.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error fetching category stats: {e}")
            raise InternalError("Failed to fetch category statistics")

        return [{"category": category, "product_count": count} for category, count in rows]
