from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = 'usuarios'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    email = Column(String(150), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)


class Product(Base):
    __tablename__ = 'products'
    __table_args__ = (
        CheckConstraint('quantity >= 0', name='ck_products_quantity_non_negative'),
        CheckConstraint('min_quantity >= 0', name='ck_products_min_quantity_non_negative'),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    sku = Column(String(64), unique=True, index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_quantity = Column(Integer, nullable=False, default=0)
    category = Column(String(100), nullable=False, default='')
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def status(self):
        return stock_status(self.quantity or 0, self.min_quantity or 0)


OUT_OF_STOCK = 'out_of_stock'
LOW_STOCK = 'low_stock'
OK = 'ok'


def stock_status(quantity, min_quantity):
    if quantity == 0:
        return OUT_OF_STOCK
    if quantity <= min_quantity:
        return LOW_STOCK
    return OK
