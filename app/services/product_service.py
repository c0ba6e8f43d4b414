import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from fastapi import UploadFile
from sqlalchemy.orm import Session, selectinload

from app.core.storage import PRODUCT_IMAGE_NAMESPACE, BlobStore
from app.models import Category, Product
from app.schemas import ProductBulkPayload, ProductPayload

from . import exceptions
from .guards import guarded
from .validation import is_storable_id, validate

logger = logging.getLogger(__name__)

INVALID_CATEGORY_MESSAGE = "The selected category id is invalid."
CENT = Decimal("0.01")


class ProductService:
    def __init__(self, db: Session, storage: BlobStore):
        self.db = db
        self.storage = storage

    @guarded("Failed to retrieve products.", exceptions.RetrievalError)
    def list_products(self) -> list[Product]:
        return self._query().order_by(Product.id).all()

    @guarded("Failed to create product.")
    def create_product(self, data: Any) -> Product:
        payload = validate(ProductPayload, data)
        self._ensure_categories_exist({"category_id": payload.category_id})

        stored: list[str] = []
        try:
            product = self._build_product(payload, stored)
            self.db.add(product)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_blobs(stored)
            raise
        logger.info("Created product id=%s image=%s", product.id, product.image)
        return self._get_product(product.id)

    @guarded("Failed to create products in bulk.")
    def bulk_create_products(self, data: Any) -> list[Product]:
        """Validate every item, store each item's image, then insert the batch in one transaction.

        Blobs stored for the batch are removed again if the transaction fails.
        """
        payload = validate(ProductBulkPayload, data)
        self._ensure_categories_exist(
            {f"products.{index}.category_id": item.category_id for index, item in enumerate(payload.products)}
        )

        stored: list[str] = []
        try:
            products = [self._build_product(item, stored) for item in payload.products]
            self.db.add_all(products)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_blobs(stored)
            raise
        logger.info("Bulk created %d products (%d images)", len(products), len(stored))
        return self._load_in_order([product.id for product in products])

    @guarded("Failed to retrieve product.")
    def get_product(self, product_id: int) -> Product:
        return self._get_product(product_id)

    @guarded("Failed to update product.")
    def update_product(self, product_id: int, data: Any) -> Product:
        """Replace the product fields; the image changes only when a new file is sent.

        The new blob is stored first, the previous one is deleted before the
        commit, so a successful update never leaves both keys behind.
        """
        payload = validate(ProductPayload, data)
        self._ensure_categories_exist({"category_id": payload.category_id})
        product = self._get_product(product_id)
        previous_image = product.image

        stored: list[str] = []
        try:
            for key, value in self._product_fields(payload).items():
                setattr(product, key, value)
            if payload.image is not None:
                product.image = self._store_image(payload.image, stored)
                self.db.flush()
                if previous_image:
                    self.storage.delete(previous_image)
            self.db.commit()
        except Exception:
            self.db.rollback()
            self._discard_blobs(stored)
            raise
        logger.info("Updated product id=%s image=%s", product.id, product.image)
        return self._get_product(product.id)

    @guarded("Failed to delete product.")
    def delete_product(self, product_id: int) -> None:
        product = self._get_product(product_id)
        image_key = product.image
        self.db.delete(product)
        self.db.flush()
        if image_key:
            self.storage.delete(image_key)
        self.db.commit()
        logger.info("Deleted product id=%s", product_id)

    def serialize_product(self, product: Product) -> dict:
        category = product.category
        return {
            "id": product.id,
            "name": product.name,
            "description": product.description,
            "price": product.price,
            "category_id": product.category_id,
            "image": product.image,
            "image_url": self.storage.url(product.image),
            "category": (
                {
                    "id": category.id,
                    "name": category.name,
                    "created_at": category.created_at,
                    "updated_at": category.updated_at,
                }
                if category is not None
                else None
            ),
            "created_at": product.created_at,
            "updated_at": product.updated_at,
        }

    def _query(self):
        # Categories for every returned product come from one extra IN query.
        return self.db.query(Product).options(selectinload(Product.category)).populate_existing()

    def _get_product(self, product_id: int) -> Product:
        product = None
        if is_storable_id(product_id):
            product = self._query().filter(Product.id == product_id).first()
        if not product:
            raise exceptions.NotFoundError("Product not found.")
        return product

    def _load_in_order(self, product_ids: list[int]) -> list[Product]:
        by_id = {product.id: product for product in self._query().filter(Product.id.in_(product_ids))}
        return [by_id[product_id] for product_id in product_ids]

    def _ensure_categories_exist(self, category_ids: dict[str, int]) -> None:
        wanted = [
            category_id for category_id in set(category_ids.values()) if is_storable_id(category_id)
        ]
        found = {
            row[0] for row in self.db.query(Category.id).filter(Category.id.in_(wanted)).all()
        }
        details = {
            field: [INVALID_CATEGORY_MESSAGE]
            for field, category_id in category_ids.items()
            if category_id not in found
        }
        if details:
            raise exceptions.ValidationError(details)

    @staticmethod
    def _product_fields(payload: ProductPayload) -> dict[str, Any]:
        fields = payload.model_dump(exclude={"image"})
        fields["price"] = payload.price.quantize(CENT, rounding=ROUND_HALF_UP)
        return fields

    def _build_product(self, payload: ProductPayload, stored: list[str]) -> Product:
        product = Product(**self._product_fields(payload))
        if payload.image is not None:
            product.image = self._store_image(payload.image, stored)
        return product

    def _store_image(self, upload: UploadFile, stored: list[str]) -> str:
        upload.file.seek(0)
        key = self.storage.store(
            upload.file.read(),
            filename=upload.filename or "",
            namespace=PRODUCT_IMAGE_NAMESPACE,
        )
        stored.append(key)
        return key

    def _discard_blobs(self, keys: Iterable[str]) -> None:
        for key in keys:
            try:
                self.storage.delete(key)
            except Exception:
                logger.warning("Could not remove blob %s after a failed write", key, exc_info=True)
