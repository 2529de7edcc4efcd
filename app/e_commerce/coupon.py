from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import logging

from .models import CouponType, STATUS_ENABLED

logger = logging.getLogger(__name__)

COUPON_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value or 0))


def parse_coupon_time(value: str) -> Optional[datetime]:
    try:
        return datetime.strptime(value, COUPON_TIME_FORMAT)
    except (TypeError, ValueError):
        return None


def is_valid(coupon, now: Optional[datetime] = None) -> bool:
    """
    A coupon is usable when it is enabled, its bounded stock (stock > 0) is not
    used up, and ``now`` falls inside [start_time, end_time].

    Unparsable time bounds make the coupon unusable.
    """
    if coupon.status != STATUS_ENABLED:
        return False

    if coupon.stock > 0 and coupon.used_count >= coupon.stock:
        return False

    start_time = parse_coupon_time(coupon.start_time)
    end_time = parse_coupon_time(coupon.end_time)
    if start_time is None or end_time is None:
        logger.warning(f"Coupon {getattr(coupon, 'coupon_id', None)} has an unparsable validity window: {coupon.start_time!r} - {coupon.end_time!r}")
        return False

    now = now or datetime.now()
    return start_time <= now <= end_time


def discount(coupon, order_total, now: Optional[datetime] = None) -> Decimal:
    """
    Discount granted by ``coupon`` on ``order_total``, rounded to cents.

    Fixed-amount coupons give their face value; percentage coupons store the rate
    the customer pays (0.8 means 20% off) and give ``total * (1 - rate)``.
    Anything invalid yields zero.
    """
    if not is_valid(coupon, now):
        return ZERO

    total = _to_decimal(order_total)
    if not total.is_finite() or total < _to_decimal(coupon.min_amount):
        return ZERO

    value = _to_decimal(coupon.value)
    if coupon.type == CouponType.FIXED_AMOUNT:
        amount = value
    elif coupon.type == CouponType.PERCENTAGE:
        if value >= 1 or value <= 0:
            return ZERO
        amount = total * (1 - value)
    else:
        return ZERO

    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def display_text(coupon) -> str:
    if coupon.type == CouponType.FIXED_AMOUNT:
        return f"Spend {_to_decimal(coupon.min_amount):.2f} get {_to_decimal(coupon.value):.2f} off"
    if coupon.type == CouponType.PERCENTAGE:
        percent_off = (1 - _to_decimal(coupon.value)) * 100
        return f"{percent_off:.0f}% off"
    return ""
