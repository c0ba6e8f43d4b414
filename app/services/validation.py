from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def error_details(errors: list[dict[str, Any]]) -> dict[str, list[str]]:
    """Group pydantic errors by dotted field path, e.g. ``products.1.price``."""

    details: dict[str, list[str]] = {}
    for error in errors:
        key = ".".join(str(part) for part in error.get("loc", ())) or "body"
        details.setdefault(key, []).append(error["msg"])
    return details


def validate(schema: type[ModelT], data: Any) -> ModelT:
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(error_details(exc.errors())) from exc


# Signed 64-bit range of integer primary keys.
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1


def is_storable_id(value: int) -> bool:
    return MIN_ID <= value <= MAX_ID
