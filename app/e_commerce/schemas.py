# Request and response schemas for the catalog and coupon routes

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from .models import CouponType
from .coupon import parse_coupon_time, COUPON_TIME_FORMAT


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    parent_id: int = Field(0, ge=0)
    sort: int = 0
    status: int = Field(1, ge=0, le=1)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    parent_id: Optional[int] = Field(None, ge=0)
    sort: Optional[int] = None
    status: Optional[int] = Field(None, ge=0, le=1)


class StatusUpdate(BaseModel):
    status: int = Field(..., ge=0, le=1)


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category_id: int
    name: str
    parent_id: int
    level: int
    sort: int
    status: int
    created_at: Optional[datetime] = None


class CategoryTreeNode(CategoryResponse):
    children: List['CategoryTreeNode'] = []


class ProductSort(str, Enum):
    sales = "sales"
    price_desc = "price_desc"
    price_asc = "price_asc"


class ProductSKUBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    specifications: Dict[str, str] = {}
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    image: Optional[str] = None


class ProductSKUCreate(ProductSKUBase):
    pass


class ProductSKUResponse(ProductSKUBase):
    model_config = ConfigDict(from_attributes=True)

    sku_id: int
    product_id: int
    sales: int = 0


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category_id: int = Field(..., ge=1)
    description: Optional[str] = None
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    stock: int = Field(0, ge=0)
    images: List[str] = []
    video_url: Optional[str] = None
    status: int = Field(1, ge=0, le=1)
    is_hot: bool = False
    is_new: bool = False
    sort: int = 0


class ProductCreate(ProductBase):
    skus: List[ProductSKUCreate] = []


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category_id: Optional[int] = Field(None, ge=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    video_url: Optional[str] = None
    status: Optional[int] = Field(None, ge=0, le=1)
    is_hot: Optional[bool] = None
    is_new: Optional[bool] = None
    sort: Optional[int] = None


class ProductResponse(ProductBase):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    sales: int = 0
    created_at: Optional[datetime] = None


class ProductDetailResponse(ProductResponse):
    skus: List[ProductSKUResponse] = []


class ProductQuery(BaseModel):
    page: int = 1
    page_size: int = 10
    category_id: Optional[int] = None
    keyword: Optional[str] = None
    sort: Optional[ProductSort] = None
    is_hot: bool = False
    is_new: bool = False


class CouponCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CouponType
    value: float = Field(..., ge=0, allow_inf_nan=False)
    min_amount: float = Field(0, ge=0, allow_inf_nan=False)
    start_time: str
    end_time: str
    stock: int = Field(0, ge=0)
    status: int = Field(1, ge=0, le=1)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time_format(cls, value: str) -> str:
        if parse_coupon_time(value) is None:
            raise ValueError(f"must use the format {COUPON_TIME_FORMAT}")
        return value

    @model_validator(mode="after")
    def check_window(self):
        if parse_coupon_time(self.end_time) < parse_coupon_time(self.start_time):
            raise ValueError("end_time must not be earlier than start_time")
        return self

    @model_validator(mode="after")
    def check_percentage_rate(self):
        # percentage coupons store the rate paid, so 0.8 means 20% off
        if self.type == CouponType.PERCENTAGE and not 0 < self.value < 1:
            raise ValueError("percentage coupon value must be a rate between 0 and 1 exclusive")
        return self


class CouponResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    coupon_id: int
    name: str
    type: int
    value: float
    min_amount: float
    start_time: str
    end_time: str
    stock: int
    used_count: int
    status: int
    display_text: str = ""
    received: bool = False


class CouponDiscountResponse(BaseModel):
    coupon_id: int
    order_total: float
    discount: float
    pay_amount: float
    valid: bool
    display_text: str
