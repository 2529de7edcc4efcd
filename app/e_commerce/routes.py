from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging

from ..core.config import API_PREFIX
from ..core.database import get_db
from ..core.cache import CacheStore, get_cache_store
from ..core.auth import CurrentUser, require_admin, get_optional_user
from ..core.exceptions import ValidationError
from ..core.pagination import normalize_pagination
from ..core.responses import success, created, updated, deleted, page_success
from .schemas import (
    CategoryCreate, CategoryUpdate, CategoryResponse, StatusUpdate, ProductCreate, ProductUpdate, ProductQuery,
    ProductSort, CouponCreate,
)
from .services import CategoryService, ProductService, CouponService

logger = logging.getLogger(__name__)

category_router = APIRouter(prefix=f"{API_PREFIX}/categories", tags=["Categories"])
product_router = APIRouter(prefix=f"{API_PREFIX}/products", tags=["Products"])
coupon_router = APIRouter(prefix=f"{API_PREFIX}/coupons", tags=["Coupons"])


def get_category_service(db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache_store)) -> CategoryService:
    return CategoryService(db, cache)


def get_product_service(db: Session = Depends(get_db), cache: CacheStore = Depends(get_cache_store)) -> ProductService:
    return ProductService(db, cache)


def get_coupon_service(db: Session = Depends(get_db)) -> CouponService:
    return CouponService(db)


# Categories
@category_router.get("")
async def list_categories(service: CategoryService = Depends(get_category_service)):
    return success(await service.list_categories())


@category_router.get("/tree")
async def get_category_tree(service: CategoryService = Depends(get_category_service)):
    return success(await service.get_tree())


@category_router.get("/{category_id}")
async def get_category(category_id: int, service: CategoryService = Depends(get_category_service)):
    return success(CategoryResponse.model_validate(service.get_category(category_id)))


@category_router.get("/{category_id}/children")
async def get_category_children(category_id: int, service: CategoryService = Depends(get_category_service)):
    return success(service.list_children(category_id))


@category_router.post("")
async def create_category(
    data: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
    admin: CurrentUser = Depends(require_admin),
):
    category = await service.create_category(data)
    logger.info(f"Admin {admin.user_id} created category {category.category_id}")
    return created(category)


@category_router.put("/{category_id}")
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
    admin: CurrentUser = Depends(require_admin),
):
    return updated(await service.update_category(category_id, data))


@category_router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service),
    admin: CurrentUser = Depends(require_admin),
):
    await service.delete_category(category_id)
    return deleted()


@category_router.put("/{category_id}/status")
async def update_category_status(
    category_id: int,
    data: StatusUpdate,
    service: CategoryService = Depends(get_category_service),
    admin: CurrentUser = Depends(require_admin),
):
    return updated(await service.update_status(category_id, data.status))


# Products
@product_router.get("")
async def list_products(
    page: int = 1,
    page_size: int = 10,
    category_id: Optional[int] = None,
    keyword: Optional[str] = None,
    sort: Optional[str] = None,
    is_hot: bool = False,
    is_new: bool = False,
    service: ProductService = Depends(get_product_service),
):
    page, page_size = normalize_pagination(page, page_size)

    sort_order = None
    if sort:
        try:
            sort_order = ProductSort(sort)
        except ValueError:
            raise ValidationError(f"Invalid sort parameter: {sort}")

    query = ProductQuery(
        page=page,
        page_size=page_size,
        category_id=category_id,
        keyword=keyword.strip() if keyword else None,
        sort=sort_order,
        is_hot=is_hot,
        is_new=is_new,
    )
    products, total = service.list_products(query)
    return page_success(products, total, page, page_size)


@product_router.get("/hot")
async def get_hot_products(limit: int = Query(10), service: ProductService = Depends(get_product_service)):
    return success(await service.get_hot_products(limit))


@product_router.get("/new")
async def get_new_products(limit: int = Query(10), service: ProductService = Depends(get_product_service)):
    return success(await service.get_new_products(limit))


@product_router.get("/{product_id}")
async def get_product(product_id: int, service: ProductService = Depends(get_product_service)):
    return success(service.get_product(product_id))


@product_router.get("/{product_id}/skus")
async def get_product_skus(product_id: int, service: ProductService = Depends(get_product_service)):
    return success(service.get_skus(product_id))


@product_router.post("")
async def create_product(
    data: ProductCreate,
    service: ProductService = Depends(get_product_service),
    admin: CurrentUser = Depends(require_admin),
):
    product = await service.create_product(data)
    logger.info(f"Admin {admin.user_id} created product {product.product_id}")
    return created(product)


@product_router.put("/{product_id}")
async def update_product(
    product_id: int,
    data: ProductUpdate,
    service: ProductService = Depends(get_product_service),
    admin: CurrentUser = Depends(require_admin),
):
    return updated(await service.update_product(product_id, data))


@product_router.delete("/{product_id}")
async def delete_product(
    product_id: int,
    service: ProductService = Depends(get_product_service),
    admin: CurrentUser = Depends(require_admin),
):
    await service.delete_product(product_id)
    return deleted()


@product_router.put("/{product_id}/status")
async def update_product_status(
    product_id: int,
    data: StatusUpdate,
    service: ProductService = Depends(get_product_service),
    admin: CurrentUser = Depends(require_admin),
):
    return updated(await service.update_status(product_id, data.status))


# Coupons
@coupon_router.get("")
async def list_coupons(
    service: CouponService = Depends(get_coupon_service),
    current_user: Optional[CurrentUser] = Depends(get_optional_user),
):
    return success(service.list_available(current_user))


@coupon_router.get("/{coupon_id}/discount")
async def preview_coupon_discount(
    coupon_id: int,
    total: float = Query(..., ge=0, allow_inf_nan=False),
    service: CouponService = Depends(get_coupon_service),
):
    return success(service.preview_discount(coupon_id, total))


@coupon_router.post("")
async def create_coupon(
    data: CouponCreate,
    service: CouponService = Depends(get_coupon_service),
    admin: CurrentUser = Depends(require_admin),
):
    return created(service.create_coupon(data))
