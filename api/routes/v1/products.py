"""
api/routes/v1/products.py -- Product catalog routes (the protected resource).

Routes:
  POST /products               -- create product, created_by = caller
  GET  /products               -- list active products, newest first
  GET  /products/{product_id}  -- product detail

Every handler receives the gate's AuthResult by value and checks it FIRST:
a Rejected result's pre-built 401 response is returned verbatim and no
catalog work happens. There is no router-level dependency that raises --
the rejection travels as a value, not as an exception.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request

from api.models import ProductCreate, ProductResponse
from auth.dependencies import authenticate
from auth.gate import AuthResult, Rejected
from catalog.models import Product
from catalog.store import ProductStore
from core.errors import NotFoundError

logger = logging.getLogger("gatehouse.catalog")

router = APIRouter()


def _to_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        category=product.category,
        stock=product.stock,
        is_active=product.is_active,
        created_by=product.created_by,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(
    request: Request,
    body: ProductCreate,
    auth: AuthResult = Depends(authenticate),
):
    """Create a catalog product owned by the authenticated caller."""
    if isinstance(auth, Rejected):
        return auth.response

    store: ProductStore = request.app.state.product_store
    product = store.create(
        Product(
            name=body.name,
            description=body.description,
            price=body.price,
            category=body.category,
            stock=body.stock,
            created_by=auth.user_id,
        )
    )
    logger.info("Product %s created by %s", product.id, auth.user_id)
    return _to_response(product)


@router.get("/products", response_model=list[ProductResponse])
def list_products(
    request: Request,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=100),
    auth: AuthResult = Depends(authenticate),
):
    """Return one page of active products, newest first."""
    if isinstance(auth, Rejected):
        return auth.response

    store: ProductStore = request.app.state.product_store
    return [_to_response(p) for p in store.list_active(page=page, page_size=page_size)]


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(
    request: Request,
    product_id: str,
    auth: AuthResult = Depends(authenticate),
):
    """Return a single product. 404 if the id is unknown."""
    if isinstance(auth, Rejected):
        return auth.response

    store: ProductStore = request.app.state.product_store
    product = store.get(product_id)
    if product is None:
        raise NotFoundError("Product not found.")
    return _to_response(product)
