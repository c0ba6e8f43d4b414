from typing import Any


class ServiceError(Exception):
    """Base exception for service-level errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class ValidationError(ServiceError):
    status_code = 422

    def __init__(self, details: dict[str, list[str]], message: str = "Validation failed."):
        super().__init__(message)
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


class NotFoundError(ServiceError):
    status_code = 404


class UnhandledError(ServiceError):
    pass


class RetrievalError(UnhandledError):
    pass
