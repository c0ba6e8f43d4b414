from .catalog import (
    CategoryBulkPayload,
    CategoryPayload,
    CategoryRead,
    ProductBulkPayload,
    ProductPayload,
    ProductRead,
)
from .common import ErrorResponse, HealthStatus

__all__ = [
    "CategoryBulkPayload",
    "CategoryPayload",
    "CategoryRead",
    "ErrorResponse",
    "HealthStatus",
    "ProductBulkPayload",
    "ProductPayload",
    "ProductRead",
]
