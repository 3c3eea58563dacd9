from sqlalchemy import Column, Integer, String, Boolean, Numeric, Enum

from laundry.database import Base
from laundry.utils.enums import PricingModel


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(64), nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    pricing_model = Column(Enum(PricingModel, name="pricing_model", values_callable=lambda e: [m.value for m in e]),
                           nullable=False, default=PricingModel.FIXED)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
