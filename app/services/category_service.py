import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.storage import BlobStore
from app.models import Category
from app.schemas import CategoryBulkPayload, CategoryPayload

from . import exceptions
from .guards import guarded
from .validation import is_storable_id, validate

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: Session, storage: BlobStore):
        self.db = db
        self.storage = storage

    @guarded("Failed to retrieve categories.", exceptions.RetrievalError)
    def list_categories(self) -> list[Category]:
        return self.db.query(Category).order_by(Category.id).all()

    @guarded("Failed to create category.")
    def create_category(self, data: Any) -> Category:
        payload = validate(CategoryPayload, data)
        category = Category(**payload.model_dump())
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info("Created category id=%s", category.id)
        return category

    @guarded("Failed to create categories in bulk.")
    def bulk_create_categories(self, data: Any) -> list[Category]:
        """Validate the whole batch, then insert it in one transaction, in input order."""
        payload = validate(CategoryBulkPayload, data)
        categories = [Category(**item.model_dump()) for item in payload.categories]
        self.db.add_all(categories)
        self.db.commit()
        for category in categories:
            self.db.refresh(category)
        logger.info("Bulk created %d categories", len(categories))
        return categories

    @guarded("Failed to retrieve category.")
    def get_category(self, category_id: int) -> Category:
        return self._get_category(category_id)

    @guarded("Failed to update category.")
    def update_category(self, category_id: int, data: Any) -> Category:
        payload = validate(CategoryPayload, data)
        category = self._get_category(category_id)
        for key, value in payload.model_dump().items():
            setattr(category, key, value)
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info("Updated category id=%s", category.id)
        return category

    @guarded("Failed to delete category.")
    def delete_category(self, category_id: int) -> None:
        """Delete a category together with its products and their images."""
        category = self._get_category(category_id)
        image_keys = [product.image for product in category.products if product.image]
        self.db.delete(category)
        self.db.flush()
        for key in image_keys:
            self.storage.delete(key)
        self.db.commit()
        logger.info(
            "Deleted category id=%s with %d product image(s)", category_id, len(image_keys)
        )

    def _get_category(self, category_id: int) -> Category:
        category = None
        if is_storable_id(category_id):
            category = self.db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise exceptions.NotFoundError("Category not found.")
        return category
