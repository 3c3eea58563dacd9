import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from laundry.models.product import Product
from laundry.schemas.product import ProductCreate, ProductUpdate
from laundry.services.pricing import D

logger = logging.getLogger("laundry.products")


class ProductService:

    @staticmethod
    def get_product(db: Session, product_id: str) -> Optional[Product]:
        return db.query(Product).filter(Product.product_id == product_id).first()

    @staticmethod
    def get_active_product(db: Session, product_id: str) -> Optional[Product]:
        """Authoritative price lookup; inactive products do not exist for ordering."""
        return (
            db.query(Product)
            .filter(Product.product_id == product_id, Product.is_active.is_(True))
            .first()
        )

    @staticmethod
    def list_products(db: Session, include_inactive: bool = False) -> List[Product]:
        q = db.query(Product)
        if not include_inactive:
            q = q.filter(Product.is_active.is_(True))
        return q.order_by(Product.category, Product.name).all()

    @staticmethod
    def create_product(db: Session, data: ProductCreate) -> Product:
        if ProductService.get_product(db, data.product_id):
            raise HTTPException(status_code=400, detail=f"Product '{data.product_id}' already exists")
        product = Product(
            product_id=data.product_id,
            name=data.name.strip(),
            category=data.category,
            base_price=D(data.base_price),
            pricing_model=data.pricing_model,
            is_active=data.is_active,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        logger.info("product %s created", product.product_id)
        return product

    @staticmethod
    def update_product(db: Session, product_id: str, data: ProductUpdate) -> Optional[Product]:
        product = ProductService.get_product(db, product_id)
        if not product:
            return None
        if data.name is not None:
            product.name = data.name.strip()
        if data.category is not None:
            product.category = data.category
        if data.base_price is not None:
            product.base_price = D(data.base_price)
        if data.is_active is not None:
            product.is_active = data.is_active
        db.commit()
        db.refresh(product)
        return product
