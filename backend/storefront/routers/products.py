"""
# `storefront/routers/products.py` — Products

## Public
### `GET /products/`
Lists every product, newest first (`createdAt` DESC).

### `GET /products/{product_id}`
Single product; `404` when it does not exist.

## Admin (prefix `/admin`)
### `POST /admin/products/`
Creates a product (`createdAt` = server timestamp) and returns it.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from storefront.core.security import get_store, require_admin
from storefront.schemas.product import ProductCreate, ProductOut
from storefront.services import catalog
from storefront.services.document_store import DocumentStore

router = APIRouter(prefix="/products", tags=["Products"])
admin_router = APIRouter(prefix="/products", tags=["Admin Products"])


@router.get("/", response_model=List[ProductOut], summary="List Products")
async def list_products(store: DocumentStore = Depends(get_store)):
    return await catalog.list_products(store)


@router.get("/{product_id}", response_model=ProductOut, summary="Get Product")
async def get_product(product_id: str, store: DocumentStore = Depends(get_store)):
    product = await catalog.get_product(store, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return product


@admin_router.post(
    "/",
    response_model=ProductOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_product(payload: ProductCreate, store: DocumentStore = Depends(get_store)):
    return await catalog.create_product(store, payload)
