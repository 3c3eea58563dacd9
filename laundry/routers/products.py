from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from laundry.database import get_db
from laundry.deps import get_actor
from laundry.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from laundry.services.authorization import ActorContext, authorize
from laundry.services.product_service import ProductService
from laundry.utils.enums import Role

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductResponse])
def list_products(db: Session = Depends(get_db)):
    return ProductService.list_products(db)


@router.get("/all", response_model=List[ProductResponse])
def list_all_products(db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    return ProductService.list_products(db, include_inactive=True)


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    return ProductService.create_product(db, payload)


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product(product_id: str, payload: ProductUpdate, db: Session = Depends(get_db),
                   actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    product = ProductService.update_product(db, product_id, payload)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
