import json
from typing import Any

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.db import get_db_session
from app.core.forms import FormStructureError, unflatten_form
from app.core.storage import LocalBlobStore, get_blob_store
from app.services.exceptions import ValidationError

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def get_db() -> Session:
    yield from get_db_session()


def get_storage() -> LocalBlobStore:
    return get_blob_store()


async def get_payload(request: Request) -> Any:
    """Read a JSON, urlencoded or multipart request body into plain data."""

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        try:
            return unflatten_form(form.multi_items())
        except FormStructureError as exc:
            raise ValidationError({exc.field: [exc.message]}) from exc
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError as exc:
        raise ValidationError({"body": ["The request body must be valid JSON."]}) from exc
