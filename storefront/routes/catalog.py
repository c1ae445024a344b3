from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.errors import NotFoundError
from storefront.models.category import Category
from storefront.models.product import Product

router = APIRouter()


@router.get("/products")
def list_products(
    ids: Optional[str] = None,
    session: Session = Depends(get_session),
):
    query = select(Product).order_by(Product.created_at.desc())

    if ids:
        wanted = [i.strip() for i in ids.split(",") if i.strip()]
        query = query.where(Product.id.in_(wanted))

    return session.exec(query).all()


@router.get("/products/{product_id}")
def get_product(product_id: str, session: Session = Depends(get_session)):
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


@router.get("/categories")
def list_categories(session: Session = Depends(get_session)):
    return session.exec(
        select(Category)
        .where(Category.is_active == True)  # noqa: E712
        .order_by(Category.name)
    ).all()
