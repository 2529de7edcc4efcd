import json
import random
from datetime import datetime
from enum import IntEnum
from typing import Dict, List

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, SmallInteger, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship

from ..core.database import Base, TimestampMixin, SoftDeleteMixin

ROOT_PARENT_ID = 0

STATUS_ENABLED = 1
STATUS_DISABLED = 0


class CouponType(IntEnum):
    FIXED_AMOUNT = 1
    PERCENTAGE = 2


class UserCouponStatus(IntEnum):
    UNUSED = 0
    USED = 1
    EXPIRED = 2


class PayStatus(IntEnum):
    UNPAID = 0
    PAID = 1


class OrderStatus(IntEnum):
    PENDING_PAYMENT = 0
    TO_SHIP = 1
    SHIPPED = 2
    COMPLETED = 3
    CANCELLED = 4


def generate_order_no(now: datetime = None) -> str:
    """Order number: local timestamp (YYYYmmddHHMMSS) followed by four random digits."""
    now = now or datetime.now()
    return f"{now.strftime('%Y%m%d%H%M%S')}{random.randint(0, 9999):04d}"


class Category(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "categories"
    category_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    parent_id = Column(Integer, default=ROOT_PARENT_ID, nullable=False, index=True)
    level = Column(Integer, default=1, nullable=False)
    sort = Column(Integer, default=0, nullable=False)
    status = Column(SmallInteger, default=STATUS_ENABLED, nullable=False)


class Product(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "products"
    product_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.category_id"), nullable=False, index=True)
    description = Column(Text)
    price = Column(DECIMAL(10, 2), nullable=False)
    original_price = Column(DECIMAL(10, 2), nullable=True)
    stock = Column(Integer, default=0, nullable=False)
    sales = Column(Integer, default=0, nullable=False)
    images_json = Column("images", Text)
    video_url = Column(String(255))
    status = Column(SmallInteger, default=STATUS_ENABLED, nullable=False)
    is_hot = Column(Boolean, default=False, nullable=False)
    is_new = Column(Boolean, default=False, nullable=False)
    sort = Column(Integer, default=0, nullable=False)

    skus = relationship(
        "ProductSKU",
        primaryjoin="and_(ProductSKU.product_id == Product.product_id, ProductSKU.deleted_at.is_(None))",
        order_by="ProductSKU.sku_id",
        viewonly=True,
    )

    @property
    def images(self) -> List[str]:
        if not self.images_json:
            return []
        try:
            return json.loads(self.images_json)
        except ValueError:
            return []

    @images.setter
    def images(self, value: List[str]) -> None:
        self.images_json = json.dumps(list(value or []))


class ProductSKU(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "product_skus"
    sku_id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    specifications_json = Column("specifications", Text, nullable=False, default="{}")
    price = Column(DECIMAL(10, 2), nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    sales = Column(Integer, default=0, nullable=False)
    image = Column(String(255))

    @property
    def specifications(self) -> Dict[str, str]:
        if not self.specifications_json:
            return {}
        try:
            return json.loads(self.specifications_json)
        except ValueError:
            return {}

    @specifications.setter
    def specifications(self, value: Dict[str, str]) -> None:
        self.specifications_json = json.dumps(dict(value or {}), ensure_ascii=False)


class CartItems(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "cart_items"
    cart_item_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False, index=True)
    sku_id = Column(Integer, ForeignKey("product_skus.sku_id"), nullable=False, index=True)
    quantity = Column(Integer, default=1, nullable=False)
    selected = Column(Boolean, default=True, nullable=False)


class Orders(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "orders"
    order_id = Column(Integer, primary_key=True, index=True)
    order_no = Column(String(32), unique=True, nullable=False, default=generate_order_no)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    address_id = Column(Integer, ForeignKey("addresses.address_id"), nullable=False)
    total_amount = Column(DECIMAL(10, 2), nullable=False)
    freight = Column(DECIMAL(10, 2), default=0, nullable=False)
    discount_amount = Column(DECIMAL(10, 2), default=0, nullable=False)
    pay_amount = Column(DECIMAL(10, 2), nullable=False)
    pay_status = Column(SmallInteger, default=PayStatus.UNPAID, nullable=False)
    pay_time = Column(DateTime, nullable=True)
    payment_method = Column(String(20))
    order_status = Column(SmallInteger, default=OrderStatus.PENDING_PAYMENT, nullable=False)
    cancel_reason = Column(String(255))
    cancel_time = Column(DateTime, nullable=True)
    remark = Column(String(255))

    items = relationship("OrderItems", back_populates="order")


class OrderItems(Base, TimestampMixin, SoftDeleteMixin):
    """Line item snapshot; product name, image and specs are frozen at order time."""
    __tablename__ = "order_items"
    order_item_id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.order_id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False, index=True)
    sku_id = Column(Integer, ForeignKey("product_skus.sku_id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    product_image = Column(String(255))
    specifications = Column(Text)
    price = Column(DECIMAL(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_amount = Column(DECIMAL(10, 2), nullable=False)

    order = relationship("Orders", back_populates="items")


class Coupon(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "coupons"
    coupon_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    type = Column(SmallInteger, nullable=False)
    value = Column(DECIMAL(10, 2), nullable=False)
    min_amount = Column(DECIMAL(10, 2), default=0, nullable=False)
    # Validity window kept as "YYYY-MM-DD HH:MM:SS" strings
    start_time = Column(String(19), nullable=False)
    end_time = Column(String(19), nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    used_count = Column(Integer, default=0, nullable=False)
    status = Column(SmallInteger, default=STATUS_ENABLED, nullable=False)


class UserCoupon(Base, TimestampMixin, SoftDeleteMixin):
    __tablename__ = "user_coupons"
    user_coupon_id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    coupon_id = Column(Integer, ForeignKey("coupons.coupon_id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.order_id"), nullable=True, index=True)
    status = Column(SmallInteger, default=UserCouponStatus.UNUSED, nullable=False)
    used_time = Column(DateTime, nullable=True)
