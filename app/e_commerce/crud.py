from sqlalchemy.orm import Session
from typing import Optional, List, Tuple
import logging

from .models import Product, ProductSKU, Category, Coupon, UserCoupon, STATUS_ENABLED
from .schemas import ProductQuery, ProductSort
from ..core.pagination import get_offset

logger = logging.getLogger(__name__)


# Category CRUD operations
def get_category(db: Session, category_id: int) -> Optional[Category]:
    """
    Get a live category by ID.
    """
    return db.query(Category).filter(Category.category_id == category_id, Category.alive()).first()


def get_categories(db: Session, visible_only: bool = False) -> List[Category]:
    """
    Get every live category ordered by sort, then ID.
    """
    query = db.query(Category).filter(Category.alive())
    if visible_only:
        query = query.filter(Category.status == STATUS_ENABLED)
    return query.order_by(Category.sort.asc(), Category.category_id.asc()).all()


def get_children(db: Session, parent_id: int) -> List[Category]:
    """
    Get the direct children of a category.
    """
    return (
        db.query(Category)
        .filter(Category.parent_id == parent_id, Category.alive())
        .order_by(Category.sort.asc(), Category.category_id.asc())
        .all()
    )


def count_children(db: Session, category_id: int) -> int:
    return db.query(Category).filter(Category.parent_id == category_id, Category.alive()).count()


def count_products_in_category(db: Session, category_id: int) -> int:
    return db.query(Product).filter(Product.category_id == category_id, Product.alive()).count()


def create_category(db: Session, **fields) -> Category:
    db_category = Category(**fields)
    db.add(db_category)
    db.flush()
    return db_category


# Product CRUD operations
def get_product(db: Session, product_id: int) -> Optional[Product]:
    """
    Get a live product by ID, listed or not.
    """
    return db.query(Product).filter(Product.product_id == product_id, Product.alive()).first()


def get_products(db: Session, query: ProductQuery) -> Tuple[List[Product], int]:
    """
    Get one page of listed products matching the query filters.

    Returns:
        Tuple[List[Product], int]: the page of products and the total match count
    """
    db_query = db.query(Product).filter(Product.alive(), Product.status == STATUS_ENABLED)

    if query.category_id:
        db_query = db_query.filter(Product.category_id == query.category_id)
    if query.keyword:
        db_query = db_query.filter(Product.name.ilike(f"%{query.keyword}%"))
    if query.is_hot:
        db_query = db_query.filter(Product.is_hot.is_(True))
    if query.is_new:
        db_query = db_query.filter(Product.is_new.is_(True))

    total = db_query.count()

    if query.sort == ProductSort.sales:
        db_query = db_query.order_by(Product.sales.desc())
    elif query.sort == ProductSort.price_desc:
        db_query = db_query.order_by(Product.price.desc())
    elif query.sort == ProductSort.price_asc:
        db_query = db_query.order_by(Product.price.asc())
    else:
        db_query = db_query.order_by(Product.sort.desc(), Product.product_id.desc())

    products = db_query.offset(get_offset(query.page, query.page_size)).limit(query.page_size).all()
    return products, total


def get_hot_products(db: Session, limit: int = 10) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.alive(), Product.is_hot.is_(True), Product.status == STATUS_ENABLED)
        .order_by(Product.sales.desc())
        .limit(limit)
        .all()
    )


def get_new_products(db: Session, limit: int = 10) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.alive(), Product.is_new.is_(True), Product.status == STATUS_ENABLED)
        .order_by(Product.created_at.desc(), Product.product_id.desc())
        .limit(limit)
        .all()
    )


def create_product(db: Session, **fields) -> Product:
    db_product = Product(**fields)
    db.add(db_product)
    db.flush()
    return db_product


def create_product_sku(db: Session, product_id: int, **fields) -> ProductSKU:
    db_sku = ProductSKU(product_id=product_id, **fields)
    db.add(db_sku)
    db.flush()
    return db_sku


def get_product_skus(db: Session, product_id: int) -> List[ProductSKU]:
    return (
        db.query(ProductSKU)
        .filter(ProductSKU.product_id == product_id, ProductSKU.alive())
        .order_by(ProductSKU.sku_id.asc())
        .all()
    )


# Coupon CRUD operations
def get_coupon(db: Session, coupon_id: int) -> Optional[Coupon]:
    return db.query(Coupon).filter(Coupon.coupon_id == coupon_id, Coupon.alive()).first()


def get_enabled_coupons(db: Session) -> List[Coupon]:
    """
    Get enabled coupons; the validity window and stock are checked by the caller.
    """
    return (
        db.query(Coupon)
        .filter(Coupon.alive(), Coupon.status == STATUS_ENABLED)
        .order_by(Coupon.coupon_id.desc())
        .all()
    )


def create_coupon(db: Session, **fields) -> Coupon:
    db_coupon = Coupon(**fields)
    db.add(db_coupon)
    db.flush()
    return db_coupon


def get_user_coupon_ids(db: Session, user_id: int) -> List[int]:
    rows = (
        db.query(UserCoupon.coupon_id)
        .filter(UserCoupon.user_id == user_id, UserCoupon.alive())
        .all()
    )
    return [row.coupon_id for row in rows]
