from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.core.config import get_settings

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".bmp", ".svg", ".webp")


def _upload_size(upload: StarletteUploadFile) -> int:
    if upload.size is not None:
        return upload.size
    position = upload.file.tell()
    upload.file.seek(0, 2)
    size = upload.file.tell()
    upload.file.seek(position)
    return size


class CategoryPayload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)


class CategoryBulkPayload(BaseModel):
    categories: list[CategoryPayload] = Field(..., min_length=1)


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductPayload(BaseModel):
    """Writable product fields; ``image`` is an uploaded file, not a key."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    # Upper bound is what NUMERIC(15, 2) can hold.
    price: Decimal = Field(..., ge=0, lt=Decimal("1e13"))
    category_id: int
    image: Optional[UploadFile] = None

    @field_validator("image", mode="before")
    @classmethod
    def blank_image_is_absent(cls, value):
        if value is None or value == "":
            return None
        if isinstance(value, StarletteUploadFile) and not value.filename:
            return None
        return value

    @field_validator("image")
    @classmethod
    def check_image(cls, value: Optional[UploadFile]) -> Optional[UploadFile]:
        if value is None:
            return value
        if Path(value.filename or "").suffix.lower() not in IMAGE_EXTENSIONS:
            raise PydanticCustomError(
                "image_type",
                "The image must be a file of type: {types}.",
                {"types": ", ".join(ext.lstrip(".") for ext in IMAGE_EXTENSIONS)},
            )
        size = _upload_size(value)
        if size == 0:
            raise PydanticCustomError("image_empty", "The image must not be empty.")
        max_kb = get_settings().MAX_IMAGE_SIZE_KB
        if size > max_kb * 1024:
            raise PydanticCustomError(
                "image_size",
                "The image may not be greater than {max_kb} kilobytes.",
                {"max_kb": max_kb},
            )
        return value


class ProductBulkPayload(BaseModel):
    products: list[ProductPayload] = Field(..., min_length=1)


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: Decimal
    category_id: int
    image: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[CategoryRead] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
