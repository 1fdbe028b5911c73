from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.db import get_db
from marketplace.schemas.catalog_schema import (
    CategoryIn,
    CategoryOut,
    ProductIn,
    ProductOut,
    ProductUpdate,
)
from marketplace.services.catalog_service import CatalogService

categories_router = APIRouter(prefix="/api/categories", tags=["catalogue"])
products_router = APIRouter(prefix="/api/products", tags=["catalogue"])


@categories_router.get("", summary="List categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return CatalogService(db).list_categories()


@categories_router.get("/{category_id}", summary="Get category", response_model=CategoryOut)
def get_category(category_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_category(category_id)


@categories_router.post(
    "", summary="Create category", response_model=CategoryOut, status_code=201
)
def create_category(payload: CategoryIn, db: Session = Depends(get_db)):
    return CatalogService(db).create_category(payload.name)


@categories_router.delete("/{category_id}", summary="Delete category")
def delete_category(category_id: int, db: Session = Depends(get_db)):
    CatalogService(db).delete_category(category_id)
    return {"ok": True}


@products_router.get("", summary="List products", response_model=List[ProductOut])
def list_products(
    category_id: Optional[int] = Query(None, gt=0, description="only this category"),
    db: Session = Depends(get_db),
):
    return CatalogService(db).list_products(category_id=category_id)


@products_router.get("/{product_id}", summary="Get product", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return CatalogService(db).get_product(product_id)


@products_router.post(
    "", summary="Create product", response_model=ProductOut, status_code=201
)
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    return CatalogService(db).create_product(
        name=payload.name,
        price=payload.price,
        stock=payload.stock,
        category_id=payload.category_id,
        description=payload.description,
    )


@products_router.put("/{product_id}", summary="Update product", response_model=ProductOut)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    return CatalogService(db).update_product(
        product_id, **payload.model_dump(exclude_unset=True)
    )


@products_router.delete("/{product_id}", summary="Delete product")
def delete_product(product_id: int, db: Session = Depends(get_db)):
    CatalogService(db).delete_product(product_id)
    return {"ok": True}
