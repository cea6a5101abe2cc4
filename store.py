"""Database access for users and products.

Uniqueness of emails and SKUs is left to the table constraints: inserts are
attempted directly and an ``IntegrityError`` is turned into a
``ConflictError``, so two concurrent writers cannot both succeed.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import ConflictError, NotFoundError, StoreError
from models import Product, User

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(db: Session, action: str, conflict: str = None):
    try:
        yield
    except IntegrityError:
        db.rollback()
        if conflict is None:
            logger.exception("Integrity error while trying to %s", action)
            raise StoreError(f"Failed to {action}")
        raise ConflictError(conflict)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Database error while trying to %s", action)
        raise StoreError(f"Failed to {action}")


# ----------------------------
# Users
# ----------------------------

def get_user_by_email(db: Session, email: str):
    with _store_errors(db, "look up user"):
        return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


def create_user(db: Session, name: str, email: str, password_hash: str) -> User:
    user = User(name=name, email=email, password_hash=password_hash)
    with _store_errors(db, "register user", conflict="Email already registered"):
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


# ----------------------------
# Products
# ----------------------------

def list_products(db: Session):
    with _store_errors(db, "list products"):
        return db.execute(select(Product).order_by(Product.id)).scalars().all()


def get_product(db: Session, product_id: int) -> Product:
    with _store_errors(db, "load product"):
        product = db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(db: Session, data: dict) -> Product:
    product = Product(**data)
    with _store_errors(db, "create product", conflict="A product with this SKU already exists"):
        db.add(product)
        db.commit()
        db.refresh(product)
    return product


def update_product(db: Session, product_id: int, changes: dict) -> Product:
    product = get_product(db, product_id)
    with _store_errors(db, "update product", conflict="A product with this SKU already exists"):
        for field, value in changes.items():
            setattr(product, field, value)
        db.commit()
        db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> bool:
    """Delete a product; returns False when there was nothing to delete."""
    with _store_errors(db, "delete product"):
        product = db.get(Product, product_id)
        if product is None:
            return False
        db.delete(product)
        db.commit()
    return True
