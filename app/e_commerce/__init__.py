from .routes import category_router, product_router, coupon_router

__all__ = ["category_router", "product_router", "coupon_router"]
