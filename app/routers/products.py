from typing import Any

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_db, get_payload, get_storage
from app.core.storage import BlobStore
from app.schemas import ErrorResponse, ProductRead
from app.services import ProductService

router = APIRouter(
    prefix="/products",
    tags=["products"],
    responses={500: {"model": ErrorResponse}},
)


@router.get("", response_model=list[ProductRead])
def list_products(db: Session = Depends(get_db), storage: BlobStore = Depends(get_storage)):
    service = ProductService(db, storage)
    return [ProductRead(**service.serialize_product(product)) for product in service.list_products()]


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
def create_product(
    payload: Any = Depends(get_payload),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = ProductService(db, storage)
    product = service.create_product(payload)
    return ProductRead(**service.serialize_product(product))


@router.post(
    "/bulk",
    response_model=list[ProductRead],
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
def bulk_create_products(
    payload: Any = Depends(get_payload),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = ProductService(db, storage)
    products = service.bulk_create_products(payload)
    return [ProductRead(**service.serialize_product(product)) for product in products]


@router.get("/{product_id}", response_model=ProductRead, responses={404: {"model": ErrorResponse}})
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = ProductService(db, storage)
    return ProductRead(**service.serialize_product(service.get_product(product_id)))


@router.put(
    "/{product_id}",
    response_model=ProductRead,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def update_product(
    product_id: int,
    payload: Any = Depends(get_payload),
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = ProductService(db, storage)
    product = service.update_product(product_id, payload)
    return ProductRead(**service.serialize_product(product))


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
):
    service = ProductService(db, storage)
    service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
