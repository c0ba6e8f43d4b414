import logging
from functools import wraps
from typing import Callable, TypeVar

from .exceptions import ServiceError, UnhandledError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


def guarded(message: str, error_cls: type[UnhandledError] = UnhandledError) -> Callable[[F], F]:
    """Collapse datastore and blob store faults of a service method into ``error_cls``.

    Service errors (validation, not found) pass through untouched. Anything
    else rolls back the service session and is re-raised as ``error_cls``
    carrying ``message``.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except ServiceError:
                raise
            except Exception as exc:
                self.db.rollback()
                logger.exception("%s.%s failed", type(self).__name__, func.__name__)
                raise error_cls(message) from exc

        return wrapper  # type: ignore[return-value]

    return decorator
