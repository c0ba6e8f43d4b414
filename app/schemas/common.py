from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
    details: Optional[dict[str, list[str]]] = None


class HealthStatus(BaseModel):
    status: str
    database: str
