from typing import Any

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, get_payload, get_storage
from app.core.storage import BlobStore
from app.schemas import CategoryRead, ErrorResponse
from app.services import CategoryService

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
    responses={500: {"model": ErrorResponse}},
)


@router.get("", response_model=list[CategoryRead])
def list_categories(db: Session = Depends(get_db), storage: BlobStore = Depends(get_storage)):
    service = CategoryService(db, storage)
    return [CategoryRead.model_validate(category) for category in service.list_categories()]


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
def create_category(
    payload: Any = Depends(get_payload),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = CategoryService(db, storage)
    category = service.create_category(payload)
    return CategoryRead.model_validate(category)


@router.post(
    "/bulk",
    response_model=list[CategoryRead],
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
def bulk_create_categories(
    payload: Any = Depends(get_payload),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = CategoryService(db, storage)
    categories = service.bulk_create_categories(payload)
    return [CategoryRead.model_validate(category) for category in categories]


@router.get("/{category_id}", response_model=CategoryRead, responses={404: {"model": ErrorResponse}})
def get_category(
    category_id: int,
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = CategoryService(db, storage)
    return CategoryRead.model_validate(service.get_category(category_id))


@router.put(
    "/{category_id}",
    response_model=CategoryRead,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def update_category(
    category_id: int,
    payload: Any = Depends(get_payload),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = CategoryService(db, storage)
    category = service.update_category(category_id, payload)
    return CategoryRead.model_validate(category)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = CategoryService(db, storage)
    service.delete_category(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
