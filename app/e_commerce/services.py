from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple
import json
import logging

from sqlalchemy.orm import Session

from . import crud
from . import coupon as coupon_rules
from .category_tree import build_category_tree
from .models import Category, Product, ROOT_PARENT_ID, STATUS_ENABLED
from .schemas import (
    CategoryCreate, CategoryUpdate, CategoryResponse, ProductCreate, ProductUpdate, ProductQuery,
    ProductResponse, ProductDetailResponse, ProductSKUResponse, CouponCreate, CouponResponse,
    CouponDiscountResponse,
)
from ..core.auth import CurrentUser
from ..core.cache import CacheStore, CATEGORY_LIST_KEY, CATEGORY_TREE_KEY, HOT_PRODUCTS_KEY, NEW_PRODUCTS_KEY
from ..core.config import CATEGORY_TREE_CACHE_TTL
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.invalidation_helpers import invalidate_category_cache, invalidate_product_cache
from ..core.pagination import normalize_pagination

logger = logging.getLogger(__name__)

PRODUCT_LIST_CACHE_TTL = 300


def _money(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


class CategoryService:
    def __init__(self, db: Session, cache: CacheStore):
        self.db = db
        self.cache = cache

    def get_category(self, category_id: int) -> Category:
        category = crud.get_category(self.db, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def list_categories(self) -> List[dict]:
        cached_data = await self.cache.get(CATEGORY_LIST_KEY)
        if cached_data:
            return json.loads(cached_data)

        categories = [
            CategoryResponse.model_validate(c).model_dump(mode="json")
            for c in crud.get_categories(self.db, visible_only=True)
        ]
        await self.cache.set(CATEGORY_LIST_KEY, json.dumps(categories), expire=CATEGORY_TREE_CACHE_TTL)
        return categories

    def list_children(self, category_id: int) -> List[CategoryResponse]:
        self.get_category(category_id)
        return [CategoryResponse.model_validate(c) for c in crud.get_children(self.db, category_id)]

    async def get_tree(self, force_refresh: bool = False) -> List[dict]:
        if not force_refresh:
            cached_data = await self.cache.get(CATEGORY_TREE_KEY)
            if cached_data:
                logger.debug("Returning category tree from cache")
                return json.loads(cached_data)

        categories = crud.get_categories(self.db)
        hidden_ids = {c.category_id for c in categories if c.status != STATUS_ENABLED}
        tree = [node.model_dump(mode="json") for node in build_category_tree(categories, hidden_ids=hidden_ids)]

        await self.cache.set(CATEGORY_TREE_KEY, json.dumps(tree), expire=CATEGORY_TREE_CACHE_TTL)
        return tree

    def _parent_level(self, parent_id: int) -> int:
        if parent_id == ROOT_PARENT_ID:
            return 0
        parent = crud.get_category(self.db, parent_id)
        if not parent:
            raise ValidationError("Parent category not found")
        return parent.level

    def _descendant_ids(self, category_id: int) -> set:
        children_by_parent = {}
        for category in crud.get_categories(self.db):
            children_by_parent.setdefault(category.parent_id, []).append(category.category_id)
        found, stack = set(), [category_id]
        while stack:
            for child_id in children_by_parent.get(stack.pop(), []):
                if child_id not in found:
                    found.add(child_id)
                    stack.append(child_id)
        return found

    def _relevel_subtree(self, category: Category) -> None:
        stack = [category]
        while stack:
            parent = stack.pop()
            for child in crud.get_children(self.db, parent.category_id):
                child.level = parent.level + 1
                stack.append(child)

    async def create_category(self, data: CategoryCreate) -> CategoryResponse:
        level = self._parent_level(data.parent_id) + 1
        try:
            category = crud.create_category(self.db, level=level, **data.model_dump())
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(category)
        await invalidate_category_cache(self.cache)
        logger.info(f"Category {category.category_id} created under parent {category.parent_id}")
        return CategoryResponse.model_validate(category)

    async def update_category(self, category_id: int, data: CategoryUpdate) -> CategoryResponse:
        category = self.get_category(category_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        parent_changed = "parent_id" in changes and changes["parent_id"] != category.parent_id
        if parent_changed:
            new_parent_id = changes["parent_id"]
            if new_parent_id == category_id:
                raise ValidationError("A category cannot be its own parent")
            if new_parent_id in self._descendant_ids(category_id):
                raise ValidationError("A category cannot be moved under its own descendant")
            category.level = self._parent_level(new_parent_id) + 1

        try:
            for field, value in changes.items():
                setattr(category, field, value)
            if parent_changed:
                self._relevel_subtree(category)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(category)
        await invalidate_category_cache(self.cache)
        return CategoryResponse.model_validate(category)

    async def delete_category(self, category_id: int) -> None:
        category = self.get_category(category_id)
        if crud.count_children(self.db, category_id) > 0:
            raise ConflictError("Cannot delete a category that has subcategories")
        if crud.count_products_in_category(self.db, category_id) > 0:
            raise ConflictError("Cannot delete a category that still has products")
        try:
            category.soft_delete()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        await invalidate_category_cache(self.cache)
        logger.info(f"Category {category_id} deleted")

    async def update_status(self, category_id: int, status: int) -> CategoryResponse:
        return await self.update_category(category_id, CategoryUpdate(status=status))


class ProductService:
    def __init__(self, db: Session, cache: CacheStore):
        self.db = db
        self.cache = cache

    def _get_product(self, product_id: int, listed_only: bool = False) -> Product:
        product = crud.get_product(self.db, product_id)
        if not product or (listed_only and product.status != STATUS_ENABLED):
            raise NotFoundError("Product not found")
        return product

    def _check_category(self, category_id: int) -> None:
        if not crud.get_category(self.db, category_id):
            raise ValidationError("Category not found")

    def list_products(self, query: ProductQuery) -> Tuple[List[ProductResponse], int]:
        products, total = crud.get_products(self.db, query)
        return [ProductResponse.model_validate(p) for p in products], total

    def get_product(self, product_id: int) -> ProductDetailResponse:
        return ProductDetailResponse.model_validate(self._get_product(product_id, listed_only=True))

    def get_skus(self, product_id: int) -> List[ProductSKUResponse]:
        self._get_product(product_id, listed_only=True)
        return [ProductSKUResponse.model_validate(s) for s in crud.get_product_skus(self.db, product_id)]

    async def _cached_list(self, cache_key: str, loader) -> List[dict]:
        cached_data = await self.cache.get(cache_key)
        if cached_data:
            return json.loads(cached_data)
        result = [ProductResponse.model_validate(p).model_dump(mode="json") for p in loader()]
        await self.cache.set(cache_key, json.dumps(result), expire=PRODUCT_LIST_CACHE_TTL)
        return result

    async def get_hot_products(self, limit: int) -> List[dict]:
        _, limit = normalize_pagination(1, limit)
        return await self._cached_list(
            HOT_PRODUCTS_KEY.format(limit=limit), lambda: crud.get_hot_products(self.db, limit)
        )

    async def get_new_products(self, limit: int) -> List[dict]:
        _, limit = normalize_pagination(1, limit)
        return await self._cached_list(
            NEW_PRODUCTS_KEY.format(limit=limit), lambda: crud.get_new_products(self.db, limit)
        )

    async def create_product(self, data: ProductCreate) -> ProductDetailResponse:
        self._check_category(data.category_id)
        fields = data.model_dump(exclude={"skus"})
        fields["price"] = _money(fields["price"])
        fields["original_price"] = _money(fields["original_price"])
        try:
            product = crud.create_product(self.db, **fields)
            for sku in data.skus:
                sku_fields = sku.model_dump()
                sku_fields["price"] = _money(sku_fields["price"])
                crud.create_product_sku(self.db, product.product_id, **sku_fields)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(product)
        await invalidate_product_cache(self.cache)
        logger.info(f"Product {product.product_id} created in category {product.category_id}")
        return ProductDetailResponse.model_validate(product)

    async def update_product(self, product_id: int, data: ProductUpdate) -> ProductDetailResponse:
        product = self._get_product(product_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "category_id" in changes:
            self._check_category(changes["category_id"])
        for money_field in ("price", "original_price"):
            if money_field in changes:
                changes[money_field] = _money(changes[money_field])
        try:
            for field, value in changes.items():
                setattr(product, field, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(product)
        await invalidate_product_cache(self.cache)
        return ProductDetailResponse.model_validate(product)

    async def delete_product(self, product_id: int) -> None:
        product = self._get_product(product_id)
        try:
            deleted_at = datetime.now()
            for sku in crud.get_product_skus(self.db, product_id):
                sku.soft_delete(deleted_at)
            product.soft_delete(deleted_at)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        await invalidate_product_cache(self.cache)
        logger.info(f"Product {product_id} deleted")

    async def update_status(self, product_id: int, status: int) -> ProductDetailResponse:
        return await self.update_product(product_id, ProductUpdate(status=status))


class CouponService:
    def __init__(self, db: Session):
        self.db = db

    def _to_response(self, coupon, received: bool = False) -> CouponResponse:
        response = CouponResponse.model_validate(coupon)
        response.display_text = coupon_rules.display_text(coupon)
        response.received = received
        return response

    def list_available(self, current_user: Optional[CurrentUser] = None, now: Optional[datetime] = None) -> List[CouponResponse]:
        now = now or datetime.now()
        held = set(crud.get_user_coupon_ids(self.db, current_user.user_id)) if current_user else set()
        return [
            self._to_response(coupon, received=coupon.coupon_id in held)
            for coupon in crud.get_enabled_coupons(self.db)
            if coupon_rules.is_valid(coupon, now)
        ]

    def preview_discount(self, coupon_id: int, order_total: float, now: Optional[datetime] = None) -> CouponDiscountResponse:
        coupon = crud.get_coupon(self.db, coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        total = _money(order_total)
        amount = coupon_rules.discount(coupon, total, now)
        return CouponDiscountResponse(
            coupon_id=coupon.coupon_id,
            order_total=float(total),
            discount=float(amount),
            pay_amount=float(max(total - amount, Decimal("0"))),
            valid=coupon_rules.is_valid(coupon, now),
            display_text=coupon_rules.display_text(coupon),
        )

    def create_coupon(self, data: CouponCreate) -> CouponResponse:
        fields = data.model_dump()
        fields["type"] = int(data.type)
        fields["value"] = _money(fields["value"])
        fields["min_amount"] = _money(fields["min_amount"])
        try:
            coupon = crud.create_coupon(self.db, **fields)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(coupon)
        logger.info(f"Coupon {coupon.coupon_id} created")
        return self._to_response(coupon)
