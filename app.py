import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

import store
from database import get_db, init_db
from errors import AuthError, register_error_handlers
from schemas import (
    AuthResponse,
    LoginRequest,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    RegisterRequest,
    UserResponse,
)
from security import create_token, get_current_user_id, hash_password, verify_password
from settings import CORS_ORIGINS, LOG_LEVEL, PORT

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Configuration
# ------------------------------------------------------------

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging():
    """Set up root logging once; returns False when handlers already exist."""
    root = logging.getLogger()
    if root.handlers:
        return False
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(title="EstoqueHub API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.get("/")
def read_root():
    return {"message": "EstoqueHub API running"}


# ------------------------------------------------------------
# User Registration and Login
# ------------------------------------------------------------

def _auth_response(user) -> dict:
    return {"token": create_token(user.id), "user": UserResponse.model_validate(user)}


@app.post("/auth/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    # the unique constraint on email decides, no lookup beforehand
    user = store.create_user(db, payload.name, payload.email, hash_password(payload.password))
    logger.info("Registered user %s", user.id)
    return _auth_response(user)


@app.post("/auth/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = store.get_user_by_email(db, payload.email)
    # same error for unknown email and wrong password
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login attempt")
        raise AuthError("Invalid credentials")
    return _auth_response(user)


# ------------------------------------------------------------
# Products (JWT-protected)
# ------------------------------------------------------------

@app.get("/products", response_model=List[ProductResponse])
def list_products(db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return store.list_products(db)


@app.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return store.get_product(db, product_id)


@app.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    item: ProductCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    product = store.create_product(db, item.model_dump())
    logger.info("User %s created product %s (%s)", user_id, product.id, product.sku)
    return product


@app.put("/products/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    item: ProductUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    product = store.update_product(db, product_id, item.changes())
    logger.info("User %s updated product %s", user_id, product_id)
    return product


@app.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    if store.delete_product(db, product_id):
        logger.info("User %s deleted product %s", user_id, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=PORT)
